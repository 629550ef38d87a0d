from datetime import datetime, timezone
from typing import Optional, Tuple
import re


# Administrative chatter that never carries narrative value. Matched against
# the trimmed text only.
NOISE_PATTERNS = (
    re.compile(r"^HEARTBEAT_OK$"),
    re.compile(r"^NO_REPLY$"),
    re.compile(r"^Read HEARTBEAT\.md"),
    re.compile(r"^System: \[.*\] Exec finished"),
    re.compile(r"^System: \[.*\] Exec started"),
    re.compile(r"^An async command you ran earlier"),
    re.compile(r"^Approval required \(id"),
)

SLUG_MAX_CHARS = 40
SLUG_MIN_CHARS = 3


def is_noise(text: str) -> bool:
    """Check if a message is noise (empty, slash command or admin notice)"""
    trimmed = (text or "").strip()
    if not trimmed:
        return True
    if trimmed.startswith("/"):
        return True
    return any(pattern.search(trimmed) for pattern in NOISE_PATTERNS)


def split_provider_model(model_ref: str) -> Tuple[Optional[str], str]:
    """Split "provider/model" on the first slash; provider is None without one"""
    provider, sep, model = model_ref.partition("/")
    if not sep:
        return None, model_ref
    return provider, model


def fallback_slug(now: Optional[datetime] = None) -> str:
    """Time derived slug: HHMMSS (UTC) cut down to 4 characters"""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%H%M%S")[:4]


def clean_slug(raw: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Normalize model output into a filename slug.

    Strips code fences, lowercases, maps anything outside [a-z0-9-] to "-",
    collapses and trims hyphens and caps the length. Missing or too short
    results fall back to a time token.
    """
    slug = ""
    if raw:
        slug = raw.replace("```", "").strip().lower()
        slug = re.sub(r"[^a-z0-9-]", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        slug = slug.strip("-")[:SLUG_MAX_CHARS]
    if len(slug) < SLUG_MIN_CHARS:
        return fallback_slug(now)
    return slug
