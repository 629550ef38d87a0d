from datetime import datetime, timezone

import pytest

from reflector.utils import clean_slug, fallback_slug, is_noise, split_provider_model


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   \n\t ",
        "HEARTBEAT_OK",
        "  HEARTBEAT_OK\n",
        "NO_REPLY",
        "/new",
        "  /status please",
        "Read HEARTBEAT.md and follow it",
        "System: [2025-01-01 10:00] Exec started (pid 42)",
        "System: [2025-01-01 10:00] Exec finished with code 0",
        "An async command you ran earlier has completed",
        "Approval required (id 7f3a): run rm -rf build",
    ],
)
def test_is_noise_matches_admin_patterns(text):
    assert is_noise(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "HEARTBEAT_OK but also, can we talk about the release?",
        "HEARTBEAT _OK",
        "Let's plan the DJ library",
        "I saw NO_REPLY in the logs, what does it mean?",
        "path/to/file is broken",
    ],
)
def test_is_noise_keeps_real_messages(text):
    assert is_noise(text) is False


def test_is_noise_is_idempotent():
    for text in ["HEARTBEAT_OK", "hello there, how are you", " /cmd "]:
        assert is_noise(text) == is_noise(text)
        assert is_noise(text) == is_noise(text.strip())


def test_split_provider_model():
    assert split_provider_model("google/gemini-2.5-flash") == ("google", "gemini-2.5-flash")
    assert split_provider_model("openrouter/meta/llama-3") == ("openrouter", "meta/llama-3")
    assert split_provider_model("gpt-4o-mini") == (None, "gpt-4o-mini")


def test_clean_slug_normalizes_model_output():
    assert clean_slug("  Reflector Hook Setup!! ") == "reflector-hook-setup"
    assert clean_slug("```\ndj-library-planning\n```") == "dj-library-planning"
    assert clean_slug("--Discord__Bot   Debugging--") == "discord-bot-debugging"


def test_clean_slug_caps_length():
    slug = clean_slug("a" * 30 + " " + "b" * 30)
    assert len(slug) == 40
    assert slug == "a" * 30 + "-" + "b" * 9


def test_clean_slug_falls_back_to_time_token():
    now = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)
    assert fallback_slug(now) == "0926"
    assert clean_slug(None, now=now) == "0926"
    assert clean_slug("", now=now) == "0926"
    assert clean_slug("!!", now=now) == "0926"
    assert clean_slug("a!", now=now) == "0926"


def test_fallback_slug_shape():
    token = fallback_slug()
    assert len(token) == 4
    assert token.isdigit()
    assert ":" not in token
