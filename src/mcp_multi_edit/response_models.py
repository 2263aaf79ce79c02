"""Shared request and response models for the multi-edit MCP tools.

Provides consistent structure across both tools:
- multi_edit (single file)
- multi_edit_files (coordinated multi-file transaction)

Every failure, whatever its origin, is reported as one ErrorDescriptor.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .core.error_codes import ErrorCode, is_retryable

# ──────────────────────────────────────────────────────────────────────
# Requests
# ──────────────────────────────────────────────────────────────────────


class EditOperation(BaseModel):
    """A single exact-substring search/replace."""

    old_string: str = Field(min_length=1, description="Exact text to find (whitespace included)")
    new_string: str = Field(description="Replacement text (empty string deletes the match)")
    replace_all: bool = Field(default=False, description="Replace every occurrence")
    case_insensitive: bool = Field(default=False, description="Match ignoring case")


class MultiEditInput(BaseModel):
    """Arguments of the multi_edit tool."""

    file_path: str = Field(min_length=1, description="Absolute path to the file to modify")
    edits: list[EditOperation] = Field(min_length=1, description="Edits, applied sequentially")
    dry_run: bool = Field(default=False, description="Compute the result without writing")
    backup: bool = Field(default=True, description="Write a backup copy before editing")
    include_content: bool = Field(default=False, description="Return the final file content")


class FileEdits(BaseModel):
    """Edits targeting one file inside a multi_edit_files batch."""

    file_path: str = Field(min_length=1, description="Absolute path to the file")
    edits: list[EditOperation] = Field(min_length=1)


class MultiEditFilesInput(BaseModel):
    """Arguments of the multi_edit_files tool."""

    files: list[FileEdits] = Field(min_length=1, description="Files and their edits, in order")
    dry_run: bool = False
    backup: bool = Field(
        default=True,
        description="Keep backup files after success (rollback backups are always taken)",
    )
    include_content: bool = False


# ──────────────────────────────────────────────────────────────────────
# Success responses
# ──────────────────────────────────────────────────────────────────────


class FileStatus(str, Enum):
    """Per-file state reported by multi_edit_files."""

    COMMITTED = "committed"
    PREVIEWED = "previewed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    SKIPPED = "skipped"
    ROLLBACK_FAILED = "rollback_failed"


class EditSummary(BaseModel):
    """Outcome of one applied edit."""

    old_string: str = Field(description="Searched text, truncated for display")
    matched: bool
    occurrences_replaced: int


class MultiEditResponse(BaseModel):
    """Success response of multi_edit."""

    success: Literal[True] = True
    file_path: str
    edits_applied: int
    dry_run: bool
    message: str | None = None
    diff_preview: str | None = None
    edits: list[EditSummary] = Field(default_factory=list)
    backup_path: str | None = None
    final_content: str | None = None


class FileResult(BaseModel):
    """Per-file section of a successful multi_edit_files response."""

    file_path: str
    status: FileStatus
    edits_applied: int
    edits: list[EditSummary] = Field(default_factory=list)
    backup_path: str | None = None
    diff_preview: str | None = None
    final_content: str | None = None

    model_config = ConfigDict(use_enum_values=True)


class FilesSummary(BaseModel):
    """Totals for a multi_edit_files call."""

    total_files: int
    files_succeeded: int
    files_failed: int
    total_edits: int


class MultiEditFilesResponse(BaseModel):
    """Success response of multi_edit_files."""

    success: Literal[True] = True
    files_edited: int
    dry_run: bool
    message: str | None = None
    file_results: list[FileResult] = Field(default_factory=list)
    summary: FilesSummary


# ──────────────────────────────────────────────────────────────────────
# Error descriptor
# ──────────────────────────────────────────────────────────────────────


class MatchLocation(BaseModel):
    """One occurrence of an ambiguous search string."""

    line: int = Field(description="1-based line of the occurrence")
    snippet: str = Field(description="Raw surrounding lines, no line numbers")


class ErrorContext(BaseModel):
    """File content attached to match errors."""

    snippet: str | None = None
    match_locations: list[MatchLocation] | None = None


class EditStatusEntry(BaseModel):
    """Status of a failed or skipped edit. Edits not listed succeeded."""

    edit_index: int
    status: Literal["failed", "skipped"]
    error_code: ErrorCode | None = None
    message: str | None = None
    old_string_preview: str | None = None

    model_config = ConfigDict(use_enum_values=True)


class RollbackDetail(BaseModel):
    """Result of restoring one already-committed file."""

    file_path: str
    status: Literal["restored", "failed"]
    backup_path: str | None = None
    error: str | None = None


class RollbackReport(BaseModel):
    """Rollback results across every committed file."""

    files_rolled_back: int
    files_failed_rollback: int
    complete: bool = Field(description="False when at least one file could not be restored")
    details: list[RollbackDetail] = Field(default_factory=list)


class FileStatusEntry(BaseModel):
    """Final state of one file in a failed multi_edit_files call."""

    file_index: int
    file_path: str
    status: FileStatus
    error_code: ErrorCode | None = None
    backup_path: str | None = None

    model_config = ConfigDict(use_enum_values=True)


class ErrorDescriptor(BaseModel):
    """Canonical failure shape - every error produces this."""

    success: Literal[False] = False
    error_code: ErrorCode
    message: str
    retryable: bool
    file_path: str | None = None
    edit_index: int | None = None
    recovery_hints: list[str]
    context: ErrorContext | None = None
    edit_status: list[EditStatusEntry] | None = None
    backup_path: str | None = None
    failed_file_index: int | None = None
    file_status: list[FileStatusEntry] | None = None
    rollback: RollbackReport | None = None

    model_config = ConfigDict(use_enum_values=True)

    def model_post_init(self, __context, /) -> None:
        """Validate descriptor invariants."""
        if not self.recovery_hints:
            msg = "ErrorDescriptor requires at least one recovery hint"
            raise ValueError(msg)
        if self.retryable != is_retryable(self.error_code):
            msg = f"retryable={self.retryable} is inconsistent with code {self.error_code}"
            raise ValueError(msg)
