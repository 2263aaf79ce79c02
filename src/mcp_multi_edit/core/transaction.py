"""Multi-file transaction coordinator.

Runs the edit engine across N files as one unit: either every file's edits
are durably written, or every file this call touched is restored to its
pre-call content.

Protocol (files in caller order):
    Phase 1 - read + compute: load each file and simulate its edits.
        Any failure aborts the batch before anything is written.
    Phase 2 - commit: for each file, write a backup, then atomically write
        the computed content.
    Rollback: when a commit step fails on file k, files 1..k-1 are restored
        from their original bytes through the same atomic write. A restore
        that fails is reported as rollback_failed, never swallowed.

Backup policy: every committed file gets an on-disk copy of its original
content, so a crash mid-batch always leaves a recovery copy. When the
caller asked for backups it is <file><suffix>. Otherwise it is a uniquely
named sibling scratch file, so an existing <file><suffix> is never touched,
and it is removed once the call finishes, except for files whose rollback
failed (the copy is then the only record of the original content).

All per-call state lives in a list of FileTransactionState owned by
apply_all's frame; nothing persists between calls.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..helpers.file_helpers import DEFAULT_BACKUP_SUFFIX
from ..response_models import FileEdits, FileStatus, RollbackDetail, RollbackReport
from .editor import (
    EditOutcome,
    IOFailure,
    load_content,
    simulate_edits,
    write_backup,
    write_content,
)

logger = logging.getLogger(__name__)


class WriteStatus(str, Enum):
    """Physical state of one file during a transaction."""

    PENDING = "pending"
    WRITTEN = "written"
    ROLLED_BACK = "rolled_back"
    ROLLBACK_FAILED = "rollback_failed"


@dataclass
class FileTransactionState:
    """Bookkeeping for one target file, discarded at the end of the call."""

    index: int
    path: Path
    edits: list
    original_content: str | None = None
    original_bytes: bytes | None = None
    pending_content: str | None = None
    write_status: WriteStatus = WriteStatus.PENDING
    backup_path: Path | None = None
    outcome: EditOutcome | None = None
    rollback_error: str | None = None


@dataclass
class TransactionOutcome:
    """Result of apply_all."""

    success: bool
    dry_run: bool
    states: list[FileTransactionState] = field(default_factory=list)
    failed_file_index: int | None = None
    rollback: RollbackReport | None = None

    @property
    def failed_state(self) -> FileTransactionState | None:
        if self.failed_file_index is None:
            return None
        return self.states[self.failed_file_index]

    def file_status(self, index: int) -> FileStatus:
        """Final reported state of the file at index."""
        state = self.states[index]
        if self.success:
            return FileStatus.PREVIEWED if self.dry_run else FileStatus.COMMITTED
        if index == self.failed_file_index:
            return FileStatus.FAILED
        if state.write_status is WriteStatus.ROLLED_BACK:
            return FileStatus.ROLLED_BACK
        if state.write_status is WriteStatus.ROLLBACK_FAILED:
            return FileStatus.ROLLBACK_FAILED
        return FileStatus.SKIPPED


def _rollback(states: list[FileTransactionState]) -> RollbackReport:
    """Restore every WRITTEN file from its original bytes, newest first."""
    details: list[RollbackDetail] = []

    for state in reversed(states):
        if state.write_status is not WriteStatus.WRITTEN:
            continue

        failure = write_content(state.path, state.original_bytes or b"")
        backup = str(state.backup_path) if state.backup_path else None
        if failure is None:
            state.write_status = WriteStatus.ROLLED_BACK
            logger.debug(f"Rolled back {state.path}")
            details.append(
                RollbackDetail(file_path=str(state.path), status="restored", backup_path=backup),
            )
        else:
            state.write_status = WriteStatus.ROLLBACK_FAILED
            state.rollback_error = failure.error
            logger.error(
                f"Rollback failed for {state.path}: {failure.error}. Original kept at {backup}",
            )
            details.append(
                RollbackDetail(
                    file_path=str(state.path),
                    status="failed",
                    backup_path=backup,
                    error=failure.error,
                ),
            )

    details.reverse()
    failed = sum(1 for d in details if d.status == "failed")
    return RollbackReport(
        files_rolled_back=len(details) - failed,
        files_failed_rollback=failed,
        complete=failed == 0,
        details=details,
    )


def _discard_backups(states: list[FileTransactionState]) -> None:
    """Remove rollback backups the caller did not ask to keep."""
    for state in states:
        if state.backup_path is None or state.write_status is WriteStatus.ROLLBACK_FAILED:
            continue
        try:
            state.backup_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove backup {state.backup_path}: {e}")
            continue
        state.backup_path = None
        if state.outcome is not None:
            state.outcome.backup_path = None


def _fail_state(state: FileTransactionState, failure: IOFailure) -> None:
    if state.outcome is None:
        state.outcome = EditOutcome(success=False, file_path=str(state.path))
    state.outcome.with_failure(failure)


def apply_all(
    file_requests: list[FileEdits],
    *,
    dry_run: bool = False,
    backup: bool = True,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> TransactionOutcome:
    """Apply edits to several files as one atomic unit.

    Args:
        file_requests: Files (absolute, resolved, distinct) and their edits
        dry_run: Compute every file's outcome without writing
        backup: Keep backup files after the call
        backup_suffix: Fixed suffix of backup files

    Returns:
        TransactionOutcome with per-file state and, after a commit failure,
        the rollback report

    """
    states = [
        FileTransactionState(index=i, path=Path(req.file_path), edits=list(req.edits))
        for i, req in enumerate(file_requests)
    ]

    # Phase 1: read + compute every file before writing anything
    for state in states:
        loaded = load_content(state.path)
        if isinstance(loaded, IOFailure):
            _fail_state(state, loaded)
            state.outcome.dry_run = dry_run
            logger.warning(f"Batch aborted before commit: cannot read {state.path}")
            return TransactionOutcome(
                success=False, dry_run=dry_run, states=states, failed_file_index=state.index
            )
        state.original_content, state.original_bytes = loaded

        outcome = simulate_edits(str(state.path), state.original_content, state.edits, dry_run=dry_run)
        state.outcome = outcome
        if not outcome.success:
            logger.warning(
                f"Batch aborted before commit: edit {outcome.failed_edit_index} "
                f"failed for {state.path}",
            )
            return TransactionOutcome(
                success=False, dry_run=dry_run, states=states, failed_file_index=state.index
            )
        state.pending_content = outcome.final_content

    if dry_run:
        return TransactionOutcome(success=True, dry_run=True, states=states)

    # Phase 2: commit file by file
    try:
        for state in states:
            backup_result = write_backup(
                state.path, state.original_bytes or b"", backup_suffix, scratch=not backup
            )
            if isinstance(backup_result, IOFailure):
                _fail_state(state, backup_result)
                return _abort_commit(states, state, keep_backups=backup)
            state.backup_path = backup_result
            state.outcome.backup_path = str(backup_result)

            write_failure = write_content(state.path, state.pending_content or "")
            if write_failure is not None:
                _fail_state(state, write_failure)
                return _abort_commit(states, state, keep_backups=backup)
            state.write_status = WriteStatus.WRITTEN
            logger.debug(f"Committed {state.path}")
    except BaseException:
        # Cancellation mid-commit still restores what was already written
        logger.exception("Commit interrupted; rolling back written files")
        _rollback(states)
        if not backup:
            _discard_backups(states)
        raise

    if not backup:
        _discard_backups(states)

    return TransactionOutcome(success=True, dry_run=False, states=states)


def _abort_commit(
    states: list[FileTransactionState],
    failed: FileTransactionState,
    *,
    keep_backups: bool,
) -> TransactionOutcome:
    written = sum(1 for s in states if s.write_status is WriteStatus.WRITTEN)
    logger.warning(
        f"Commit failed for {failed.path} ({failed.outcome.error_code.value}); "
        f"rolling back {written} file(s)",
    )
    report = _rollback(states) if written else None
    if not keep_backups:
        _discard_backups(states)
    return TransactionOutcome(
        success=False,
        dry_run=False,
        states=states,
        failed_file_index=failed.index,
        rollback=report,
    )
