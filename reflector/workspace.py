from pathlib import Path
from typing import Optional, Union

from .config import get_settings


class WorkspaceResolver:
    """Maps an agent id to its workspace directory.

    The default agent owns ``workspace_root``; any other agent gets the
    sibling directory ``<workspace_root>-<agent_id>``.
    """

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]] = None,
        default_agent_id: Optional[str] = None,
        memory_subdir: Optional[str] = None
    ):
        settings = get_settings()
        root = workspace_root if workspace_root is not None else settings.workspace_root
        self.workspace_root = Path(root).expanduser()
        self.default_agent_id = default_agent_id or settings.default_agent_id
        self.memory_subdir = memory_subdir or settings.memory_subdir

    def resolve_agent_id(self, agent_id: Optional[str] = None) -> str:
        return (agent_id or "").strip() or self.default_agent_id

    def workspace_dir(self, agent_id: Optional[str] = None) -> Path:
        agent_id = self.resolve_agent_id(agent_id)
        if agent_id == self.default_agent_id:
            return self.workspace_root
        return self.workspace_root.with_name(f"{self.workspace_root.name}-{agent_id}")

    def memory_dir(self, agent_id: Optional[str] = None) -> Path:
        return self.workspace_dir(agent_id) / self.memory_subdir
