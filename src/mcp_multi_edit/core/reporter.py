"""Result formatting and reporting.

Builds the downstream payloads from engine and coordinator outcomes:
a success response, or exactly one ErrorDescriptor.
"""

from ..helpers.file_helpers import split_lines
from ..response_models import (
    EditOperation,
    EditSummary,
    ErrorDescriptor,
    FileResult,
    FilesSummary,
    FileStatusEntry,
    MultiEditFilesResponse,
    MultiEditResponse,
)
from .editor import EditOutcome, EditResult
from .error_codes import ErrorCode
from .errors import (
    DEFAULT_DIAGNOSTIC_OPTIONS,
    DiagnosticOptions,
    build_edit_status,
    create_error_descriptor,
    extract_file_context,
    extract_match_locations,
    get_recovery_hints,
)
from .matching import find_all_matches
from .transaction import TransactionOutcome

DRY_RUN_MESSAGE = "DRY RUN - No changes made to file"
DRY_RUN_FILES_MESSAGE = "DRY RUN - No changes made to any file"

_SUMMARY_OLD_STRING_LEN = 50


def truncate_for_display(text: str, max_len: int) -> str:
    """Truncate a string for display, adding an ellipsis if truncated."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def generate_diff_preview(original: str, new: str, file_path: str) -> str:
    """Line-by-line diff with 1-based line numbers, for dry runs."""
    if original == new:
        return "No changes"

    original_lines = split_lines(original)
    new_lines = split_lines(new)

    changes = [f"--- {file_path} (original)", f"+++ {file_path} (modified)"]
    for i in range(max(len(original_lines), len(new_lines))):
        old_line = original_lines[i] if i < len(original_lines) else None
        new_line = new_lines[i] if i < len(new_lines) else None
        if old_line == new_line:
            continue
        if old_line is not None:
            changes.append(f"L{i + 1}: - {old_line}")
        if new_line is not None:
            changes.append(f"L{i + 1}: + {new_line}")

    return "\n".join(changes)


def build_edit_summaries(results: list[EditResult]) -> list[EditSummary]:
    return [
        EditSummary(
            old_string=truncate_for_display(r.old_string, _SUMMARY_OLD_STRING_LEN),
            matched=r.matches > 0,
            occurrences_replaced=r.replaced,
        )
        for r in results
    ]


# ──────────────────────────────────────────────────────────────────────
# Failure descriptors
# ──────────────────────────────────────────────────────────────────────


def describe_edit_failure(
    outcome: EditOutcome,
    edits: list[EditOperation],
    *,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> ErrorDescriptor:
    """Build the descriptor for a failed engine outcome.

    Simulation aborts get per-edit status and match context, taken from the
    working buffer the failing edit was matched against. I/O failures get
    their classified code and stage-specific hints.
    """
    code = outcome.error_code or ErrorCode.UNKNOWN_ERROR
    raw_error = outcome.error or "Unknown error"

    if outcome.failed_edit_index is None:
        hints = get_recovery_hints(code)
        if outcome.stage == "backup":
            for hint in get_recovery_hints(ErrorCode.BACKUP_FAILED):
                if hint not in hints:
                    hints.append(hint)
        return create_error_descriptor(
            code,
            raw_error,
            recovery_hints=hints,
            file_path=outcome.file_path,
            backup_path=outcome.backup_path,
        )

    index = outcome.failed_edit_index
    edit = edits[index]
    buffer = outcome.final_content or ""

    context = None
    if code == ErrorCode.MATCH_NOT_FOUND:
        context = extract_file_context(
            buffer, edit.old_string, case_insensitive=edit.case_insensitive, options=options
        )
    elif code == ErrorCode.AMBIGUOUS_MATCH:
        spans = find_all_matches(buffer, edit.old_string, case_insensitive=edit.case_insensitive)
        context = extract_match_locations(buffer, spans, options=options)

    return create_error_descriptor(
        code,
        f"Edit {index + 1} of {len(edits)} failed: {raw_error}",
        file_path=outcome.file_path,
        edit_index=index,
        context=context,
        edit_status=build_edit_status(edits, index, code, raw_error, options=options),
    )


def describe_transaction_failure(
    outcome: TransactionOutcome,
    *,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> ErrorDescriptor:
    """Build the descriptor for a failed multi-file transaction."""
    failed = outcome.failed_state
    if failed is None or failed.outcome is None:
        msg = "describe_transaction_failure called without a failed file"
        raise ValueError(msg)

    base = describe_edit_failure(failed.outcome, failed.edits, options=options)
    total = len(outcome.states)
    message = f"File {failed.index + 1} of {total} failed ({failed.path}): {base.message}"
    hints = list(base.recovery_hints)

    report = outcome.rollback
    if report is None:
        message += " No files were changed."
    elif report.complete:
        message += (
            f" Rolled back {report.files_rolled_back} already committed file(s);"
            " no files were changed."
        )
    else:
        message += (
            f" Rollback failed for {report.files_failed_rollback} file(s);"
            " those files still contain the new content."
        )
        hints.insert(
            0,
            "Restore files marked rollback_failed from their backup_path before retrying",
        )

    file_status = []
    for state in outcome.states:
        file_status.append(
            FileStatusEntry(
                file_index=state.index,
                file_path=str(state.path),
                status=outcome.file_status(state.index),
                error_code=base.error_code if state.index == failed.index else None,
                backup_path=str(state.backup_path) if state.backup_path else None,
            ),
        )

    return base.model_copy(
        update={
            "message": message,
            "recovery_hints": hints,
            "failed_file_index": failed.index,
            "file_status": file_status,
            "rollback": report,
        },
    )


# ──────────────────────────────────────────────────────────────────────
# Responses
# ──────────────────────────────────────────────────────────────────────


def format_multi_edit_response(
    outcome: EditOutcome,
    edits: list[EditOperation],
    *,
    include_content: bool = False,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> MultiEditResponse | ErrorDescriptor:
    """Format a multi_edit outcome."""
    if not outcome.success:
        return describe_edit_failure(outcome, edits, options=options)

    response = MultiEditResponse(
        file_path=outcome.file_path,
        edits_applied=outcome.edits_applied,
        dry_run=outcome.dry_run,
        edits=build_edit_summaries(outcome.results),
        backup_path=outcome.backup_path,
    )

    if outcome.dry_run:
        response.message = DRY_RUN_MESSAGE
        if outcome.original_content is not None and outcome.final_content is not None:
            response.diff_preview = generate_diff_preview(
                outcome.original_content, outcome.final_content, outcome.file_path
            )

    if include_content:
        response.final_content = outcome.final_content

    return response


def format_multi_edit_files_response(
    outcome: TransactionOutcome,
    *,
    include_content: bool = False,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> MultiEditFilesResponse | ErrorDescriptor:
    """Format a multi_edit_files outcome.

    final_content is stripped from every file unless include_content is set.
    """
    if not outcome.success:
        return describe_transaction_failure(outcome, options=options)

    file_results = []
    for state in outcome.states:
        result = state.outcome
        file_result = FileResult(
            file_path=str(state.path),
            status=outcome.file_status(state.index),
            edits_applied=result.edits_applied,
            edits=build_edit_summaries(result.results),
            backup_path=result.backup_path,
        )
        if outcome.dry_run:
            file_result.diff_preview = generate_diff_preview(
                state.original_content or "", result.final_content or "", str(state.path)
            )
        if include_content:
            file_result.final_content = result.final_content
        file_results.append(file_result)

    total = len(file_results)
    return MultiEditFilesResponse(
        files_edited=total,
        dry_run=outcome.dry_run,
        message=DRY_RUN_FILES_MESSAGE if outcome.dry_run else None,
        file_results=file_results,
        summary=FilesSummary(
            total_files=total,
            files_succeeded=total,
            files_failed=0,
            total_edits=sum(r.edits_applied for r in file_results),
        ),
    )
