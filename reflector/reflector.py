"""
Reflector - session-end summarizer.

Pipeline (per session-end event):
1. Build a clean transcript from the session log (awaited by the trigger)
2. Generate a structured summary (detached; summary model + fallbacks)
3. Generate a filename slug from the summary (slug model + summary model + fallbacks)
4. Save the summary under the agent's memory directory

Everything after step 1 runs as a background task. Failures are logged and
dropped; the trigger never sees them.
"""

from pathlib import Path
from typing import Dict, Optional, Set, Union
import asyncio
import logging

from .archive import ArchiveWriter
from .config import Settings, get_settings
from .generation import GenerationClient
from .models import ReflectorConfig
from .transcript import build_transcript_from_file
from .utils import clean_slug
from .workspace import WorkspaceResolver

logger = logging.getLogger(__name__)

# Constants
SLUG_TIMEOUT_MS = 30000
MIN_TRANSCRIPT_CHARS = 50


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def resolve_config(
    settings: Optional[Settings] = None,
    env: Optional[Dict[str, str]] = None
) -> ReflectorConfig:
    """Layer per-event REFLECTOR_* overrides on top of process settings"""
    settings = settings or get_settings()
    env = env or {}

    fallback_raw = env.get("REFLECTOR_FALLBACK_MODELS")
    if fallback_raw is None:
        fallback_models = settings.get_fallback_models()
    else:
        fallback_models = [m.strip() for m in fallback_raw.split(",") if m.strip()]

    return ReflectorConfig(
        summaryModel=env.get("REFLECTOR_SUMMARY_MODEL") or settings.summary_model,
        slugModel=env.get("REFLECTOR_SLUG_MODEL") or settings.slug_model,
        fallbackModels=fallback_models,
        maxChars=_parse_int(env.get("REFLECTOR_MAX_CHARS"), settings.max_chars),
        timeoutMs=_parse_int(env.get("REFLECTOR_TIMEOUT_MS"), settings.timeout_ms),
    )


def build_summary_prompt(transcript: str) -> str:
    return (
        "Summarize this session for future memory recall. Be concise but complete.\n"
        "Ignore routine heartbeats, empty exchanges, and administrative messages.\n\n"
        "**Style Instruction:** Capture the \"vibe\" and personality of the interaction.\n"
        "If the user was excited, frustrated, or joking, reflect that context.\n"
        "Keep the structure, but write the bullet points in a natural, human-readable tone.\n\n"
        "Format:\n"
        "## Summary\n\n"
        "**Topics**: [Comma separated list]\n\n"
        "**Vibe**: [1-2 sentences capturing the mood/personality of the session]\n\n"
        "**Decisions**:\n"
        "- [Bulleted list]\n\n"
        "**Outcomes**:\n"
        "- [Bulleted list]\n\n"
        "**Open Items**:\n"
        "- [Bulleted list, or \"None\" if nothing is pending]\n\n"
        f"Transcript:\n{transcript}"
    )


def build_slug_prompt(summary: str) -> str:
    return (
        "Based on this summary, generate a concise, lowercase, kebab-case filename slug (3-5 words max).\n"
        "Examples: \"reflector-hook-setup\", \"dj-library-planning\", \"discord-bot-debugging\"\n"
        "Output ONLY the slug, nothing else.\n\n"
        f"Summary:\n{summary}"
    )


class Reflector:
    def __init__(
        self,
        backend,
        workspace: Optional[WorkspaceResolver] = None,
        archive: Optional[ArchiveWriter] = None,
        settings: Optional[Settings] = None
    ):
        self.backend = backend
        self.workspace = workspace or WorkspaceResolver()
        self.archive = archive or ArchiveWriter()
        self.settings = settings or get_settings()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def load_transcript(
        self,
        session_file: Optional[Union[str, Path]],
        max_chars: int
    ) -> Optional[str]:
        """Return the clean transcript, or None when there is nothing to summarize"""
        if not session_file:
            logger.info("No session file found, skipping")
            return None

        logger.info(f"Processing session: {session_file}")
        try:
            transcript = await asyncio.to_thread(build_transcript_from_file, session_file, max_chars)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read session file {session_file}: {e}")
            return None

        if len(transcript) < MIN_TRANSCRIPT_CHARS:
            logger.info("Transcript too short or empty, skipping")
            return None

        logger.info(f"Clean transcript: {len(transcript)} chars")
        return transcript

    async def summarize(
        self,
        transcript: str,
        session_file: Union[str, Path],
        config: ReflectorConfig,
        agent_id: Optional[str] = None
    ) -> Optional[Path]:
        """Generate summary + slug and save. Returns the saved path or None."""
        generator = GenerationClient(self.backend, workspace_dir=self.workspace.workspace_dir(agent_id))

        summary = await generator.call(
            prompt=build_summary_prompt(transcript),
            models=[config.summaryModel, *config.fallbackModels],
            timeout_ms=config.timeoutMs,
            label="summary"
        )
        if not summary:
            logger.error("All models failed for summary generation")
            return None

        raw_slug = await generator.call(
            prompt=build_slug_prompt(summary),
            models=[config.slugModel, config.summaryModel, *config.fallbackModels],
            timeout_ms=SLUG_TIMEOUT_MS,
            label="slug"
        )
        slug = clean_slug(raw_slug)

        memory_dir = self.workspace.memory_dir(agent_id)
        return await asyncio.to_thread(self.archive.save, summary, slug, session_file, memory_dir)

    async def run(
        self,
        transcript: str,
        session_file: Union[str, Path],
        config: ReflectorConfig,
        agent_id: Optional[str] = None
    ) -> Optional[Path]:
        """Best-effort wrapper around summarize(); never raises"""
        try:
            return await self.summarize(transcript, session_file, config, agent_id)
        except asyncio.CancelledError:
            logger.warning(f"Summary generation cancelled for {session_file}")
            raise
        except Exception as e:
            logger.error(f"Error during summary generation: {e}", exc_info=True)
            return None

    async def schedule(
        self,
        session_file: Optional[Union[str, Path]],
        config: Optional[ReflectorConfig] = None,
        agent_id: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """
        Validate the transcript, then start the pipeline without waiting for it.

        Returns:
            The background task, or None when the session was skipped
        """
        config = config or resolve_config(self.settings)
        transcript = await self.load_transcript(session_file, config.maxChars)
        if transcript is None:
            return None

        task = asyncio.create_task(self.run(transcript, session_file, config, agent_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def reflect_file(
        self,
        session_file: Union[str, Path],
        config: Optional[ReflectorConfig] = None,
        agent_id: Optional[str] = None
    ) -> Optional[Path]:
        """Run the whole pipeline in the foreground"""
        config = config or resolve_config(self.settings)
        transcript = await self.load_transcript(session_file, config.maxChars)
        if transcript is None:
            return None
        return await self.run(transcript, session_file, config, agent_id)

    async def wait_for_pending(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for background runs, then cancel the rest"""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info(f"Waiting for {len(tasks)} pending summaries")
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} unfinished summaries")
            await asyncio.gather(*still_running, return_exceptions=True)


# Module-level singleton
_reflector: Optional[Reflector] = None


def init_reflector(backend, workspace: Optional[WorkspaceResolver] = None) -> Reflector:
    """Initialize the reflector"""
    global _reflector
    _reflector = Reflector(backend, workspace=workspace)
    return _reflector


def get_reflector() -> Reflector:
    if _reflector is None:
        raise RuntimeError("Reflector not initialized")
    return _reflector
