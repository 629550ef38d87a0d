"""
Transcript builder.

Turns a raw session log (JSONL, one event per line) into a clean, labeled
transcript for summarization:
- Only user/assistant message records are kept
- Heartbeats, slash commands and system notices are dropped
- Tool execution annotations are stripped line by line
- Output is bounded; when over budget the most recent text wins
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence, Union
import json
import logging
import re

from pydantic import ValidationError

from .models import RawRecord
from .utils import is_noise

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "message"
SKIPPED_ROLES = {"tool", "system"}
ROLE_LABELS = {"user": "USER", "assistant": "ASSISTANT"}
TRUNCATION_MARKER = "...(earlier conversation truncated)...\n\n"

_TOOL_LINE_PREFIXES = ("🛠️ Exec:", "🛠️ Read:")
_SYSTEM_LINE_RE = re.compile(r"^System: \[")


def parse_record(line: str) -> Optional[RawRecord]:
    """Parse one JSONL line; malformed or non-object lines yield None"""
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(entry, dict):
        return None
    try:
        return RawRecord.model_validate(entry)
    except ValidationError:
        return None


def load_records(path: Union[str, Path]) -> List[RawRecord]:
    """Read a session log. Blank and malformed lines are skipped silently."""
    records: List[RawRecord] = []
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            record = parse_record(line)
            if record is not None:
                records.append(record)
    return records


def extract_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            block["text"]
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
            and isinstance(block.get("text"), str) and block["text"]
        )
    return ""


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, role.upper())


def _strip_tool_lines(text: str) -> str:
    kept = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith(_TOOL_LINE_PREFIXES):
            continue
        if _SYSTEM_LINE_RE.match(trimmed):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def clean_line(record: RawRecord) -> Optional[str]:
    """Return the labeled transcript line for a record, or None if it is dropped"""
    if record.type != MESSAGE_TYPE or record.message is None:
        return None

    msg = record.message
    if not msg.role or msg.role in SKIPPED_ROLES:
        return None

    text = extract_text(msg.content)
    if not text:
        return None

    # Pure tool-call turns have no readable text
    if msg.role == "assistant" and msg.tool_calls and not text.strip():
        return None

    if is_noise(text):
        return None

    cleaned = _strip_tool_lines(text)
    if not cleaned:
        return None

    return f"{role_label(msg.role)}: {cleaned}"


def build_clean_transcript(records: Sequence[RawRecord], max_chars: int) -> str:
    lines: List[str] = []
    for record in records:
        line = clean_line(record)
        if line is not None:
            lines.append(line)

    joined = "\n\n".join(lines)
    if len(joined) > max_chars:
        # Recent context matters more than the start of the session
        return TRUNCATION_MARKER + joined[len(joined) - max_chars:]
    return joined


def build_transcript_from_file(path: Union[str, Path], max_chars: int) -> str:
    records = load_records(path)
    transcript = build_clean_transcript(records, max_chars)
    logger.debug(f"Built transcript from {len(records)} records ({len(transcript)} chars)")
    return transcript
