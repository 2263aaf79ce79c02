"""Tests for result formatting and failure descriptors."""

from pathlib import Path

import pytest

from mcp_multi_edit.core import editor, transaction
from mcp_multi_edit.core.editor import IOFailure, apply_edits, simulate_edits
from mcp_multi_edit.core.error_codes import ErrorCode
from mcp_multi_edit.core.reporter import (
    DRY_RUN_MESSAGE,
    describe_edit_failure,
    format_multi_edit_files_response,
    format_multi_edit_response,
    generate_diff_preview,
    truncate_for_display,
)
from mcp_multi_edit.core.transaction import apply_all
from mcp_multi_edit.response_models import (
    EditOperation,
    ErrorDescriptor,
    FileEdits,
    MultiEditFilesResponse,
    MultiEditResponse,
)


def edit(old: str, new: str, **flags) -> EditOperation:
    return EditOperation(old_string=old, new_string=new, **flags)


def test_truncate_for_display() -> None:
    assert truncate_for_display("short", 10) == "short"
    assert truncate_for_display("a" * 20, 10) == "aaaaaaa..."


def test_diff_preview_lists_changed_lines() -> None:
    preview = generate_diff_preview("a\nb\nc", "a\nB\nc", "/f.py")

    assert preview.split("\n") == [
        "--- /f.py (original)",
        "+++ /f.py (modified)",
        "L2: - b",
        "L2: + B",
    ]


def test_diff_preview_no_changes() -> None:
    assert generate_diff_preview("same", "same", "/f.py") == "No changes"


def test_dry_run_response(temp_workspace: Path) -> None:
    target = temp_workspace / "app.py"
    target.write_text("x = 1\n")
    edits = [edit("x = 1", "x = 2")]

    response = format_multi_edit_response(
        apply_edits(target, edits, dry_run=True), edits, include_content=True
    )

    assert isinstance(response, MultiEditResponse)
    assert response.message == DRY_RUN_MESSAGE
    assert "L1: + x = 2" in response.diff_preview
    assert response.final_content == "x = 2\n"
    assert response.edits[0].occurrences_replaced == 1


def test_success_response_omits_content_by_default(temp_workspace: Path) -> None:
    target = temp_workspace / "app.py"
    target.write_text("x = 1\n")
    edits = [edit("x", "y")]

    response = format_multi_edit_response(apply_edits(target, edits), edits)

    dumped = response.model_dump(exclude_none=True)
    assert dumped["success"] is True
    assert dumped["edits_applied"] == 1
    assert "final_content" not in dumped
    assert "diff_preview" not in dumped
    assert dumped["backup_path"] == str(temp_workspace / "app.py.bak")


def test_not_found_descriptor() -> None:
    content = "def load(path):\n    return open(path).read()\n"
    edits = [edit("def load(", "def read("), edit("    return open(path, 'rb')", "x")]

    descriptor = describe_edit_failure(simulate_edits("/f.py", content, edits), edits)

    assert descriptor.error_code == "MATCH_NOT_FOUND"
    assert descriptor.retryable is True
    assert descriptor.edit_index == 1
    assert descriptor.message.startswith("Edit 2 of 2 failed:")
    # Context comes from the buffer after edit 1
    assert "def read(path):" in descriptor.context.snippet
    assert [s.status for s in descriptor.edit_status] == ["failed"]


def test_ambiguous_descriptor_has_locations() -> None:
    content = "total = 0\nprint(total)\ntotal = 0\n"
    edits = [edit("total = 0", "total = 1"), edit("print", "log")]

    descriptor = describe_edit_failure(simulate_edits("/f.py", content, edits), edits)

    assert descriptor.error_code == "AMBIGUOUS_MATCH"
    assert [loc.line for loc in descriptor.context.match_locations] == [1, 3]
    assert [s.status for s in descriptor.edit_status] == ["failed", "skipped"]


def test_backup_failure_descriptor_adds_backup_hints(
    temp_workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = temp_workspace / "app.py"
    target.write_text("x = 1\n")

    def fail_backup(path, original, suffix):
        raise OSError("nope")

    monkeypatch.setattr(editor, "create_backup", fail_backup)
    edits = [edit("1", "2")]

    descriptor = format_multi_edit_response(apply_edits(target, edits), edits)

    assert isinstance(descriptor, ErrorDescriptor)
    assert descriptor.error_code == "BACKUP_FAILED"
    assert descriptor.retryable is False
    assert any("backup: false" in hint for hint in descriptor.recovery_hints)


def test_files_response_summary(temp_workspace: Path) -> None:
    a = temp_workspace / "a.py"
    b = temp_workspace / "b.py"
    a.write_text("a = 1\n")
    b.write_text("b = 1\nc = 1\n")

    outcome = apply_all(
        [
            FileEdits(file_path=str(a), edits=[edit("1", "2")]),
            FileEdits(file_path=str(b), edits=[edit("b = 1", "b = 2"), edit("c = 1", "c = 2")]),
        ],
        dry_run=True,
    )
    response = format_multi_edit_files_response(outcome)

    assert isinstance(response, MultiEditFilesResponse)
    assert response.summary.total_files == 2
    assert response.summary.total_edits == 3
    assert response.summary.files_failed == 0
    assert [r.status for r in response.file_results] == ["previewed", "previewed"]
    assert all(r.final_content is None for r in response.file_results)
    assert "L1: + b = 2" in response.file_results[1].diff_preview


def test_files_failure_before_commit_message(temp_workspace: Path) -> None:
    a = temp_workspace / "a.py"
    b = temp_workspace / "b.py"
    a.write_text("a = 1\n")
    b.write_text("b = 1\n")

    outcome = apply_all(
        [
            FileEdits(file_path=str(a), edits=[edit("1", "2")]),
            FileEdits(file_path=str(b), edits=[edit("missing", "x")]),
        ]
    )
    descriptor = format_multi_edit_files_response(outcome)

    assert descriptor.failed_file_index == 1
    assert descriptor.message.startswith(f"File 2 of 2 failed ({b}):")
    assert descriptor.message.endswith("No files were changed.")
    assert descriptor.rollback is None
    assert [s.status for s in descriptor.file_status] == ["skipped", "failed"]


def test_files_incomplete_rollback_hint_first(
    temp_workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    a = temp_workspace / "a.py"
    b = temp_workspace / "b.py"
    a.write_text("a = 1\n")
    b.write_text("b = 1\n")

    real_write = transaction.write_content

    def fail_b_and_restores(path, content):
        # Restores are written as bytes
        if path == b or isinstance(content, bytes):
            return IOFailure(stage="write", error_code=ErrorCode.WRITE_FAILED, error="denied")
        return real_write(path, content)

    monkeypatch.setattr(transaction, "write_content", fail_b_and_restores)

    outcome = apply_all(
        [
            FileEdits(file_path=str(a), edits=[edit("1", "2")]),
            FileEdits(file_path=str(b), edits=[edit("1", "2")]),
        ]
    )
    descriptor = format_multi_edit_files_response(outcome)

    assert descriptor.error_code == "WRITE_FAILED"
    assert descriptor.recovery_hints[0].startswith("Restore files marked rollback_failed")
    assert descriptor.rollback.complete is False
    assert [s.status for s in descriptor.file_status] == ["rollback_failed", "failed"]
    assert descriptor.file_status[0].backup_path == str(temp_workspace / "a.py.bak")
