"""Single-file edit engine.

Applies an ordered list of search/replace edits to one file with
all-or-nothing semantics.

Sequential simulation: each edit is matched against the working buffer
produced by the edits before it, not against the original file, because an
earlier edit may create or destroy the text a later edit searches for.
The first edit that matches nowhere, or matches several times without
replace_all, aborts the call and nothing is written.

The physical write is a backup (optional) followed by an atomic
temp-file-then-rename, so the target is never observed half written.
Expected failures are returned as EditOutcome values, never raised.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..helpers.file_helpers import (
    DEFAULT_BACKUP_SUFFIX,
    atomic_write,
    backup_path_for,
    create_backup,
    create_scratch_backup,
    read_file_validated,
)
from ..response_models import EditOperation
from .error_codes import ErrorCode
from .errors import classify_error
from .matching import find_all_matches, get_line_number, replace_spans

logger = logging.getLogger(__name__)

_MESSAGE_PREVIEW_LEN = 60


@dataclass
class EditResult:
    """Match and replacement counts of one simulated edit."""

    old_string: str
    matches: int
    replaced: int


@dataclass
class IOFailure:
    """A classified filesystem failure at one stage of the engine."""

    stage: str  # "read" | "backup" | "write"
    error_code: ErrorCode
    error: str


@dataclass
class EditOutcome:
    """Tagged result of an engine call.

    On success final_content is the computed content. On a simulation abort
    it is the working buffer at the moment of failure (what the failed edit
    was matched against) and failed_edit_index is set. On an I/O failure
    stage says where it happened.
    """

    success: bool
    file_path: str
    dry_run: bool = False
    results: list[EditResult] = field(default_factory=list)
    final_content: str | None = None
    original_content: str | None = None
    failed_edit_index: int | None = None
    error_code: ErrorCode | None = None
    error: str | None = None
    stage: str | None = None
    match_lines: list[int] = field(default_factory=list)
    backup_path: str | None = None

    @property
    def edits_applied(self) -> int:
        """Number of edits that were simulated successfully."""
        return len(self.results)

    @property
    def replaced_total(self) -> int:
        return sum(r.replaced for r in self.results)

    def with_failure(self, failure: IOFailure) -> "EditOutcome":
        """Mark this outcome failed by an I/O error, keeping computed state."""
        self.success = False
        self.error_code = failure.error_code
        self.error = failure.error
        self.stage = failure.stage
        return self


def _message_preview(text: str) -> str:
    preview = text[:_MESSAGE_PREVIEW_LEN] + "..." if len(text) > _MESSAGE_PREVIEW_LEN else text
    return preview.replace("\n", "\\n").replace("\r", "\\r")


def simulate_edits(
    file_path: str,
    content: str,
    edits: list[EditOperation],
    *,
    dry_run: bool = False,
) -> EditOutcome:
    """Apply edits to content in memory (no file I/O).

    Args:
        file_path: Path reported in the outcome
        content: Current file content
        edits: Edits, applied in order, each on the result of the previous
        dry_run: Recorded in the outcome

    Returns:
        EditOutcome with final_content on success, or failed_edit_index and
        error_code (MATCH_NOT_FOUND / AMBIGUOUS_MATCH) on abort

    """
    results: list[EditResult] = []
    buffer = content

    for i, edit in enumerate(edits):
        spans = find_all_matches(buffer, edit.old_string, case_insensitive=edit.case_insensitive)

        if not spans:
            logger.debug(f"{file_path}: edit {i} matched nothing")
            return EditOutcome(
                success=False,
                file_path=file_path,
                dry_run=dry_run,
                results=results,
                final_content=buffer,
                original_content=content,
                failed_edit_index=i,
                error_code=ErrorCode.MATCH_NOT_FOUND,
                error=f'"{_message_preview(edit.old_string)}" not found in file',
                stage="simulate",
            )

        if len(spans) > 1 and not edit.replace_all:
            lines = [get_line_number(buffer, start) for start, _ in spans]
            logger.debug(f"{file_path}: edit {i} matched {len(spans)} times")
            return EditOutcome(
                success=False,
                file_path=file_path,
                dry_run=dry_run,
                results=results,
                final_content=buffer,
                original_content=content,
                failed_edit_index=i,
                error_code=ErrorCode.AMBIGUOUS_MATCH,
                error=(
                    f"Found {len(spans)} matches at lines {', '.join(map(str, lines))}. "
                    "Use replace_all: true to replace all occurrences."
                ),
                stage="simulate",
                match_lines=lines,
            )

        targets = spans if edit.replace_all else spans[:1]
        buffer = replace_spans(buffer, targets, edit.new_string)
        results.append(
            EditResult(old_string=edit.old_string, matches=len(spans), replaced=len(targets)),
        )

    return EditOutcome(
        success=True,
        file_path=file_path,
        dry_run=dry_run,
        results=results,
        final_content=buffer,
        original_content=content,
    )


def load_content(file_path: Path) -> tuple[str, bytes] | IOFailure:
    """Read and decode a file, classifying any failure.

    A file that disappeared after validation is reported as FILE_NOT_FOUND.
    """
    try:
        return read_file_validated(file_path)
    except (OSError, UnicodeDecodeError) as e:
        code, message = classify_error(e, str(file_path))
        logger.debug(f"Read failed for {file_path}: {code.value}")
        return IOFailure(stage="read", error_code=code, error=message)


def write_backup(
    file_path: Path,
    original: bytes,
    suffix: str = DEFAULT_BACKUP_SUFFIX,
    *,
    scratch: bool = False,
) -> Path | IOFailure:
    """Copy the original bytes to the sibling backup path.

    With scratch=True the copy goes to a unique sibling name instead, so an
    existing backup file is left alone.
    """
    try:
        if scratch:
            return create_scratch_backup(file_path, original, suffix)
        return create_backup(file_path, original, suffix)
    except OSError as e:
        backup_path = backup_path_for(file_path, suffix)
        code, message = classify_error(e, str(backup_path), fallback=ErrorCode.BACKUP_FAILED)
        logger.debug(f"Backup failed for {file_path}: {code.value}")
        return IOFailure(stage="backup", error_code=code, error=f"Backup failed: {message}")


def write_content(file_path: Path, content: str | bytes) -> IOFailure | None:
    """Atomically replace the file's content.

    Returns:
        None if successful, or the classified failure. On failure the
        target still holds its previous content.

    """
    try:
        atomic_write(file_path, content)
    except OSError as e:
        code, message = classify_error(e, str(file_path), fallback=ErrorCode.WRITE_FAILED)
        logger.debug(f"Write failed for {file_path}: {code.value}")
        return IOFailure(stage="write", error_code=code, error=message)
    return None


def apply_edits(
    file_path: Path,
    edits: list[EditOperation],
    *,
    dry_run: bool = False,
    backup: bool = True,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> EditOutcome:
    """Apply edits to a file atomically.

    Args:
        file_path: Absolute, symlink-resolved path to an existing file
        edits: Edit operations, applied sequentially
        dry_run: Compute the outcome without writing anything
        backup: Write original bytes to file_path + backup_suffix first
        backup_suffix: Fixed suffix of the backup file

    Returns:
        EditOutcome. Failure leaves the file byte-for-byte unchanged.

    """
    path_str = str(file_path)

    loaded = load_content(file_path)
    if isinstance(loaded, IOFailure):
        return EditOutcome(success=False, file_path=path_str, dry_run=dry_run).with_failure(loaded)
    content, original_bytes = loaded

    outcome = simulate_edits(path_str, content, edits, dry_run=dry_run)
    if not outcome.success or dry_run:
        return outcome

    if backup:
        backup_result = write_backup(file_path, original_bytes, backup_suffix)
        if isinstance(backup_result, IOFailure):
            return outcome.with_failure(backup_result)
        outcome.backup_path = str(backup_result)

    write_failure = write_content(file_path, outcome.final_content or "")
    if write_failure is not None:
        return outcome.with_failure(write_failure)

    logger.debug(
        f"Applied {outcome.edits_applied} edit(s), "
        f"{outcome.replaced_total} replacement(s) to {file_path}",
    )
    return outcome
