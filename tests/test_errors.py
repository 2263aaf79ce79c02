"""Tests for error classification and diagnostic context."""

import errno

import pytest

from mcp_multi_edit.core.error_codes import RETRYABLE_CODES, ErrorCode, is_retryable
from mcp_multi_edit.core.errors import (
    DiagnosticOptions,
    build_edit_status,
    classify_error,
    create_error_descriptor,
    extract_file_context,
    extract_match_locations,
    get_recovery_hints,
)
from mcp_multi_edit.core.matching import find_all_matches
from mcp_multi_edit.response_models import EditOperation, ErrorDescriptor


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (FileNotFoundError(errno.ENOENT, "No such file"), ErrorCode.FILE_NOT_FOUND),
        (PermissionError(errno.EACCES, "Permission denied"), ErrorCode.PERMISSION_DENIED),
        (PermissionError(errno.EPERM, "Operation not permitted"), ErrorCode.PERMISSION_DENIED),
        (OSError(errno.ENOSPC, "No space left"), ErrorCode.DISK_FULL),
        (OSError(errno.EROFS, "Read-only"), ErrorCode.READ_ONLY_FS),
        (OSError(errno.ELOOP, "Too many links"), ErrorCode.SYMLINK_LOOP),
        (OSError("something odd"), ErrorCode.UNKNOWN_ERROR),
    ],
)
def test_classify_by_errno(error: OSError, expected: ErrorCode) -> None:
    code, message = classify_error(error, "/tmp/x.py")

    assert code == expected
    assert message


def test_classify_message_names_path() -> None:
    _, message = classify_error(FileNotFoundError(errno.ENOENT, "No such file"), "/srv/app.py")

    assert message == "File not found: /srv/app.py"


def test_classify_invalid_utf8() -> None:
    try:
        b"\xff".decode("utf-8")
    except UnicodeDecodeError as e:
        code, _ = classify_error(e, "/tmp/x.bin")

    assert code == ErrorCode.INVALID_ENCODING


def test_classify_uses_fallback_for_unknown_errors() -> None:
    code, _ = classify_error(OSError("boom"), fallback=ErrorCode.WRITE_FAILED)

    assert code == ErrorCode.WRITE_FAILED


def test_message_mentioning_encoding_keeps_stage_fallback() -> None:
    error = OSError("unsupported transfer encoding on network share")

    write_code, _ = classify_error(error, "/srv/a.py", fallback=ErrorCode.WRITE_FAILED)
    backup_code, _ = classify_error(error, "/srv/a.py.bak", fallback=ErrorCode.BACKUP_FAILED)

    assert write_code == ErrorCode.WRITE_FAILED
    assert backup_code == ErrorCode.BACKUP_FAILED


@pytest.mark.parametrize("code", list(ErrorCode))
def test_every_code_has_hints(code: ErrorCode) -> None:
    assert get_recovery_hints(code)


def test_hints_are_copies() -> None:
    get_recovery_hints(ErrorCode.MATCH_NOT_FOUND).append("mutated")

    assert "mutated" not in get_recovery_hints(ErrorCode.MATCH_NOT_FOUND)


def test_retryable_split() -> None:
    assert is_retryable(ErrorCode.MATCH_NOT_FOUND)
    assert is_retryable("AMBIGUOUS_MATCH")
    assert not is_retryable(ErrorCode.FILE_NOT_FOUND)
    assert not is_retryable(ErrorCode.DISK_FULL)
    assert ErrorCode.UNKNOWN_ERROR not in RETRYABLE_CODES


def test_ambiguous_hints_prefer_more_context() -> None:
    hints = get_recovery_hints(ErrorCode.AMBIGUOUS_MATCH)

    assert hints[0].startswith("Make old_string more specific")
    assert "replace_all" in hints[1]


# ──────────────────────────────────────────────────────────────────────
# Context extraction
# ──────────────────────────────────────────────────────────────────────


def numbered_lines(count: int) -> list[str]:
    return [f"line {n}" for n in range(1, count + 1)]


def test_file_context_anchors_on_partial_match() -> None:
    lines = numbered_lines(30)
    lines[19] = "def process_data(items):"
    content = "\n".join(lines)

    context = extract_file_context(content, "def process_data(items, verbose):")

    snippet_lines = context.snippet.split("\n")
    assert snippet_lines[0] == "line 13"
    assert snippet_lines[-1] == "line 27"
    assert "def process_data(items):" in snippet_lines


def test_file_context_ignores_leading_whitespace() -> None:
    lines = numbered_lines(5)
    lines[2] = "return compute_total(values)"
    content = "\n".join(lines)

    context = extract_file_context(content, "        return compute_total(values, tax)")

    assert "return compute_total(values)" in context.snippet


def test_file_context_falls_back_to_file_head() -> None:
    content = "\n".join(numbered_lines(40))

    context = extract_file_context(content, "zzzzzzzzzzzzzzzzzzzzzzzzzz")

    assert context.snippet.split("\n") == numbered_lines(15)


def test_file_context_sizes_are_configurable() -> None:
    content = "\n".join(numbered_lines(40))

    context = extract_file_context(
        content, "zzzzzzzzzzzzzzzzzzzzzzzzzz", options=DiagnosticOptions(fallback_head_lines=3)
    )

    assert context.snippet == "line 1\nline 2\nline 3"


def test_file_context_empty_file() -> None:
    assert extract_file_context("", "anything") is None


def test_match_locations_capped() -> None:
    content = "x\n" * 8
    spans = find_all_matches(content, "x")

    context = extract_match_locations(content, spans)

    assert [loc.line for loc in context.match_locations] == [1, 2, 3, 4, 5]
    assert context.match_locations[0].snippet == "x\nx\nx\nx"
    assert context.snippet == "5 of 8 matches shown (3 omitted)"


def test_match_locations_all_shown() -> None:
    content = "a = 1\nb = 2\na = 1\n"
    spans = find_all_matches(content, "a = 1")

    context = extract_match_locations(content, spans)

    assert [loc.line for loc in context.match_locations] == [1, 3]
    assert context.snippet is None


def test_edit_status_lists_failed_and_skipped() -> None:
    edits = [
        EditOperation(old_string="first", new_string="1"),
        EditOperation(old_string="second", new_string="2"),
        EditOperation(old_string="third", new_string="3"),
    ]

    status = build_edit_status(edits, 1, ErrorCode.MATCH_NOT_FOUND, "not found")

    assert [(s.edit_index, s.status) for s in status] == [(1, "failed"), (2, "skipped")]
    assert status[0].error_code == "MATCH_NOT_FOUND"
    assert status[1].old_string_preview == "third"


# ──────────────────────────────────────────────────────────────────────
# Descriptor
# ──────────────────────────────────────────────────────────────────────


def test_descriptor_derives_retryable_and_hints() -> None:
    descriptor = create_error_descriptor(
        ErrorCode.MATCH_NOT_FOUND, "not found", file_path="/a.py", edit_index=None
    )

    assert descriptor.success is False
    assert descriptor.retryable is True
    assert descriptor.recovery_hints == get_recovery_hints(ErrorCode.MATCH_NOT_FOUND)
    assert "edit_index" not in descriptor.model_dump(exclude_none=True)


def test_descriptor_rejects_inconsistent_retryable() -> None:
    with pytest.raises(ValueError):
        ErrorDescriptor(
            error_code=ErrorCode.FILE_NOT_FOUND,
            message="gone",
            retryable=True,
            recovery_hints=["check path"],
        )


def test_descriptor_requires_hints() -> None:
    with pytest.raises(ValueError):
        ErrorDescriptor(
            error_code=ErrorCode.MATCH_NOT_FOUND,
            message="missing",
            retryable=True,
            recovery_hints=[],
        )
