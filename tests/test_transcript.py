from pathlib import Path

from reflector.models import RawRecord
from reflector.transcript import (
    TRUNCATION_MARKER,
    build_clean_transcript,
    build_transcript_from_file,
    extract_text,
    load_records,
    parse_record,
)

FIXTURE = Path(__file__).parent / "fixtures" / "session.jsonl"


def _msg(role, content, **extra):
    return RawRecord.model_validate({"type": "message", "message": {"role": role, "content": content, **extra}})


def test_extract_text_handles_strings_and_blocks():
    assert extract_text("hello") == "hello"
    assert extract_text([
        {"type": "text", "text": "first"},
        {"type": "image", "url": "x.png"},
        {"type": "text", "text": ""},
        {"type": "text", "text": "second"},
    ]) == "first\nsecond"
    assert extract_text([
        {"type": "text", "text": 42},
        {"type": "text", "text": ["nested"]},
        {"type": "text", "text": "kept"},
    ]) == "kept"
    assert extract_text(None) == ""
    assert extract_text({"text": "not a list"}) == ""
    assert extract_text(42) == ""


def test_parse_record_skips_malformed_lines():
    assert parse_record("not json") is None
    assert parse_record("[1, 2, 3]") is None
    assert parse_record('{"type": "message", "message": {"role": null}}') is None
    record = parse_record('{"type": "message", "message": {"role": "user", "content": "hi"}}')
    assert record.message.role == "user"


def test_all_noise_produces_empty_transcript():
    records = [
        _msg("assistant", "HEARTBEAT_OK"),
        _msg("user", "/new"),
        _msg("user", ""),
        _msg("user", "   "),
        _msg("assistant", "NO_REPLY"),
        _msg("system", "You are a helpful assistant."),
        _msg("tool", "exit code 0"),
        RawRecord.model_validate({"type": "custom", "message": {"role": "user", "content": "ignored"}}),
    ]
    assert build_clean_transcript(records, 80000) == ""
    assert build_clean_transcript([], 80000) == ""


def test_labels_and_separators():
    records = [
        _msg("user", "What should we call the project?"),
        _msg("assistant", [{"type": "text", "text": "How about Reflector?"}]),
        _msg("narrator", "Meanwhile, the build went green."),
    ]
    assert build_clean_transcript(records, 80000) == (
        "USER: What should we call the project?\n\n"
        "ASSISTANT: How about Reflector?\n\n"
        "NARRATOR: Meanwhile, the build went green."
    )


def test_tool_and_system_lines_are_stripped():
    text = "\n".join([
        "Let me check the config.",
        "🛠️ Exec: ls -la",
        "   🛠️ Read: ~/.openclaw/config.json",
        "System: [10:00] something happened",
        "Found it, the hook is registered.",
    ])
    records = [_msg("assistant", text)]
    assert build_clean_transcript(records, 80000) == (
        "ASSISTANT: Let me check the config.\nFound it, the hook is registered."
    )


def test_record_dropped_when_only_tool_lines_remain():
    records = [_msg("assistant", "🛠️ Exec: make test\n🛠️ Read: README.md")]
    assert build_clean_transcript(records, 80000) == ""


def test_assistant_tool_call_without_text_is_skipped():
    records = [
        _msg("assistant", "   ", tool_calls=[{"id": "call_1"}]),
        _msg("assistant", "Running it now.", tool_calls=[{"id": "call_2"}]),
    ]
    assert build_clean_transcript(records, 80000) == "ASSISTANT: Running it now."


def test_truncation_keeps_the_tail():
    records = [_msg("user", f"message number {i} with some padding text") for i in range(50)]
    full = build_clean_transcript(records, 10**6)
    max_chars = 200
    truncated = build_clean_transcript(records, max_chars)
    assert truncated == TRUNCATION_MARKER + full[-max_chars:]
    assert truncated != TRUNCATION_MARKER + full[:max_chars]
    assert "message number 49" in truncated
    assert "message number 0 " not in truncated


def test_no_truncation_at_exact_budget():
    records = [_msg("user", "exactly sized")]
    full = build_clean_transcript(records, 10**6)
    assert build_clean_transcript(records, len(full)) == full


def test_session_fixture_keeps_only_substantive_lines():
    records = load_records(FIXTURE)
    transcript = build_clean_transcript(records, 80000)
    blocks = transcript.split("\n\n")
    assert len(blocks) == 3
    assert blocks[0].startswith("USER: Can you help me set up the reflector hook")
    assert blocks[1] == "ASSISTANT: Sure! First we register the hook on the new-session command."
    assert blocks[2].startswith("USER: Great, and please keep the summaries short")
    assert "HEARTBEAT_OK" not in transcript
    assert "/new" not in transcript
    assert "exit code" not in transcript


def test_build_transcript_from_file(tmp_path):
    path = tmp_path / "empty.jsonl"
    path.write_text("\n\n{broken\n", encoding="utf-8")
    assert build_transcript_from_file(path, 80000) == ""
    assert build_transcript_from_file(FIXTURE, 80000).startswith("USER:")


def test_non_string_text_blocks_do_not_break_the_build():
    records = [
        _msg("user", [{"type": "text", "text": 42}]),
        _msg("user", "This message survives the malformed one before it."),
    ]
    assert build_clean_transcript(records, 80000) == (
        "USER: This message survives the malformed one before it."
    )


def test_records_without_role_are_skipped():
    records = [
        RawRecord.model_validate({"type": "message", "message": {"content": "orphaned text"}}),
        _msg("", "blank role"),
        _msg("user", "real question"),
    ]
    assert build_clean_transcript(records, 80000) == "USER: real question"
