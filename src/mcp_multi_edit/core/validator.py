"""Input validation for the multi-edit tools.

Layered checks run before the engine touches file content:
1. Schema: pydantic models (field presence/types, non-empty edits and old_string)
2. Path shape: absolute, no '..' segments
3. Duplicates: old_string unique per file, file paths unique per batch
4. Existence: resolve symlinks to a concrete regular file

Each problem becomes a ValidationIssue. One issue is reported with its own
code; several are folded into VALIDATION_FAILED with one hint per issue.
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..response_models import (
    EditOperation,
    ErrorDescriptor,
    MultiEditFilesInput,
    MultiEditInput,
)
from .error_codes import ErrorCode
from .errors import classify_error, create_error_descriptor, get_recovery_hints

_DISPLAY_LEN = 50


@dataclass
class ValidationIssue:
    """A single validation problem."""

    code: ErrorCode
    message: str
    path: list[str]
    recovery_hint: str


def _display(text: str) -> str:
    return text if len(text) <= _DISPLAY_LEN else text[: _DISPLAY_LEN - 3] + "..."


def _issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Map schema errors to codes (empty edits / empty old_string get their own)."""
    issues = []
    for err in error.errors():
        loc = [str(part) for part in err["loc"]]
        field_path = ".".join(loc) or "<input>"
        if loc and loc[-1] == "edits" and err["type"] == "too_short":
            code = ErrorCode.EMPTY_EDITS
        elif loc and loc[-1] == "old_string" and err["type"] == "string_too_short":
            code = ErrorCode.EMPTY_OLD_STRING
        else:
            code = ErrorCode.VALIDATION_FAILED
        issues.append(
            ValidationIssue(
                code=code,
                message=f"{field_path}: {err['msg']}",
                path=loc,
                recovery_hint=get_recovery_hints(code)[0],
            ),
        )
    return issues


def validate_path(file_path: str, field: list[str] | None = None) -> ValidationIssue | None:
    """Check path shape. Returns None if valid."""
    field = field or ["file_path"]
    if not os.path.isabs(file_path):
        return ValidationIssue(
            code=ErrorCode.RELATIVE_PATH,
            message=f'Path must be absolute, received: "{_display(file_path)}"',
            path=field,
            recovery_hint="Use an absolute path (e.g. /home/user/project/file.py)",
        )
    if ".." in PurePath(file_path).parts:
        return ValidationIssue(
            code=ErrorCode.PATH_TRAVERSAL,
            message=f'Path contains directory traversal (..): "{_display(file_path)}"',
            path=field,
            recovery_hint="Use the resolved absolute path without '..' segments",
        )
    return None


def resolve_existing_file(file_path: str, field: list[str] | None = None) -> Path | ValidationIssue:
    """Resolve symlinks and confirm the target is an existing regular file.

    Returns:
        Resolved Path if successful, or a ValidationIssue

    """
    field = field or ["file_path"]
    try:
        resolved = Path(file_path).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        code, message = classify_error(e, file_path)
        return ValidationIssue(
            code=code,
            message=message,
            path=field,
            recovery_hint=get_recovery_hints(code)[0],
        )

    if not resolved.is_file():
        return ValidationIssue(
            code=ErrorCode.VALIDATION_FAILED,
            message=f'Not a regular file: "{_display(file_path)}"',
            path=field,
            recovery_hint="Point file_path at a regular file, not a directory or device",
        )
    return resolved


def find_duplicate_old_strings(
    edits: list[EditOperation], field: list[str] | None = None
) -> list[ValidationIssue]:
    """Report every edit whose old_string repeats an earlier one."""
    field = field or ["edits"]
    seen: dict[str, int] = {}
    issues = []
    for i, edit in enumerate(edits):
        if edit.old_string in seen:
            issues.append(
                ValidationIssue(
                    code=ErrorCode.DUPLICATE_OLD_STRING,
                    message=(
                        f'Duplicate old_string at edit {i} (also edit {seen[edit.old_string]}): '
                        f'"{_display(edit.old_string)}"'
                    ),
                    path=[*field, str(i), "old_string"],
                    recovery_hint=get_recovery_hints(ErrorCode.DUPLICATE_OLD_STRING)[0],
                ),
            )
        else:
            seen[edit.old_string] = i
    return issues


def issues_to_descriptor(issues: list[ValidationIssue]) -> ErrorDescriptor:
    """Fold validation issues into one descriptor."""
    if len(issues) == 1:
        issue = issues[0]
        hints = [issue.recovery_hint]
        hints.extend(h for h in get_recovery_hints(issue.code) if h not in hints)
        return create_error_descriptor(issue.code, issue.message, recovery_hints=hints)

    return create_error_descriptor(
        ErrorCode.VALIDATION_FAILED,
        f"Input validation failed ({len(issues)} problems)",
        recovery_hints=[f"{i.code.value}: {i.message} ({i.recovery_hint})" for i in issues],
    )


def _with_default_backup(args: dict[str, Any], default_backup: bool) -> dict[str, Any]:
    if args.get("backup") is None:
        return {**args, "backup": default_backup}
    return args


def validate_multi_edit_input(
    args: dict[str, Any],
    *,
    default_backup: bool = True,
) -> MultiEditInput | ErrorDescriptor:
    """Validate multi_edit arguments.

    Returns:
        MultiEditInput with file_path resolved to a concrete path, or the
        descriptor of every problem found

    """
    try:
        parsed = MultiEditInput.model_validate(_with_default_backup(args, default_backup))
    except PydanticValidationError as e:
        return issues_to_descriptor(_issues_from_pydantic(e))

    issues: list[ValidationIssue] = []
    path_issue = validate_path(parsed.file_path)
    if path_issue:
        issues.append(path_issue)
    issues.extend(find_duplicate_old_strings(parsed.edits))
    if issues:
        return issues_to_descriptor(issues)

    resolved = resolve_existing_file(parsed.file_path)
    if isinstance(resolved, ValidationIssue):
        return issues_to_descriptor([resolved])

    return parsed.model_copy(update={"file_path": str(resolved)})


def validate_multi_edit_files_input(
    args: dict[str, Any],
    *,
    default_backup: bool = True,
) -> MultiEditFilesInput | ErrorDescriptor:
    """Validate multi_edit_files arguments.

    Paths are resolved before the duplicate check, so two spellings of the
    same file (e.g. via a symlink) are rejected too.
    """
    try:
        parsed = MultiEditFilesInput.model_validate(_with_default_backup(args, default_backup))
    except PydanticValidationError as e:
        return issues_to_descriptor(_issues_from_pydantic(e))

    issues: list[ValidationIssue] = []
    resolved_files = []
    seen_paths: dict[Path, int] = {}

    for i, file_edits in enumerate(parsed.files):
        field = ["files", str(i), "file_path"]
        path_issue = validate_path(file_edits.file_path, field)
        if path_issue:
            issues.append(path_issue)
            continue
        issues.extend(find_duplicate_old_strings(file_edits.edits, ["files", str(i), "edits"]))

        resolved = resolve_existing_file(file_edits.file_path, field)
        if isinstance(resolved, ValidationIssue):
            issues.append(resolved)
            continue

        if resolved in seen_paths:
            issues.append(
                ValidationIssue(
                    code=ErrorCode.DUPLICATE_FILE_PATH,
                    message=(
                        f"files[{i}] refers to the same file as files[{seen_paths[resolved]}]: "
                        f'"{_display(str(resolved))}"'
                    ),
                    path=field,
                    recovery_hint=get_recovery_hints(ErrorCode.DUPLICATE_FILE_PATH)[0],
                ),
            )
            continue
        seen_paths[resolved] = i
        resolved_files.append(file_edits.model_copy(update={"file_path": str(resolved)}))

    if issues:
        return issues_to_descriptor(issues)

    return parsed.model_copy(update={"files": resolved_files})
