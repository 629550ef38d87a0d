"""
Archive writer: persists summaries as Markdown under the agent's memory dir.

Filenames are ``<date>-reflector-<slug>.md``; taken names get ``-2``, ``-3``,
... The probe-then-write sequence is not safe against concurrent writers to
the same directory. Invocations are serialized per session by the trigger,
so this race is accepted.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union
import logging
import os
import tempfile

from .models import SummaryDocument

logger = logging.getLogger(__name__)

MAX_SUFFIX_PROBES = 1000


class ArchiveCollisionError(Exception):
    """No free filename was found within the probe bound"""


class ArchiveWriter:
    def __init__(self, max_probes: int = MAX_SUFFIX_PROBES):
        self.max_probes = max_probes

    @staticmethod
    def _today(now: Optional[datetime] = None) -> str:
        return (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")

    def resolve_path(self, destination_dir: Path, date: str, slug: str) -> Path:
        base = f"{date}-reflector-{slug}"
        candidate = destination_dir / f"{base}.md"
        if not candidate.exists():
            return candidate
        for i in range(2, self.max_probes + 2):
            candidate = destination_dir / f"{base}-{i}.md"
            if not candidate.exists():
                return candidate
        raise ArchiveCollisionError(
            f"No free filename for {base} in {destination_dir} after {self.max_probes} attempts"
        )

    @staticmethod
    def _write_atomic(path: Path, content: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".reflector-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def save(
        self,
        summary: str,
        slug: str,
        session_id: Union[str, Path],
        destination_dir: Union[str, Path],
        now: Optional[datetime] = None
    ) -> Path:
        """
        Write the summary document and return its path.

        ``session_id`` is the source session file (or its name); only the
        base filename is recorded in the front matter.
        """
        destination = Path(destination_dir)
        destination.mkdir(parents=True, exist_ok=True)

        date = self._today(now)
        document = SummaryDocument(
            date=date,
            session=Path(str(session_id)).name,
            slug=slug,
            body=summary,
        )
        path = self.resolve_path(destination, date, slug)
        self._write_atomic(path, document.render())
        logger.info(f"Saved summary to {path}")
        return path
