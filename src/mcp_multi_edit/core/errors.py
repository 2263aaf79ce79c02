"""Error classification and diagnostic context.

Turns raw failures into the pieces of an ErrorDescriptor:
- classify_error: OSError / UnicodeDecodeError -> (ErrorCode, message)
- get_recovery_hints: general, ordered guidance per code
- extract_file_context: nearby content for MATCH_NOT_FOUND
- extract_match_locations: every occurrence for AMBIGUOUS_MATCH
- build_edit_status: failed + skipped edits (absence means success)
- create_error_descriptor: the canonical envelope

Nothing here touches the filesystem. Context is built from content the
engine already loaded, as raw text without line numbers, so a snippet can
be pasted back into a corrected old_string.
"""

import errno
import logging
from dataclasses import dataclass

from ..helpers.file_helpers import split_lines
from ..response_models import (
    EditOperation,
    EditStatusEntry,
    ErrorContext,
    ErrorDescriptor,
    MatchLocation,
)
from .error_codes import ErrorCode, is_retryable
from .matching import find_all_matches, get_line_number

logger = logging.getLogger(__name__)

# Prefix lengths tried, longest first, when looking for a partial match
_PREFIX_LENGTHS = (40, 20, 10, 5)


@dataclass(frozen=True)
class DiagnosticOptions:
    """Sizes used when building error context."""

    no_match_context_lines: int = 7
    fallback_head_lines: int = 15
    ambiguous_context_lines: int = 3
    max_match_locations: int = 5
    preview_length: int = 40


DEFAULT_DIAGNOSTIC_OPTIONS = DiagnosticOptions()


_ERRNO_CODES: dict[int, ErrorCode] = {
    errno.ENOENT: ErrorCode.FILE_NOT_FOUND,
    errno.EACCES: ErrorCode.PERMISSION_DENIED,
    errno.EPERM: ErrorCode.PERMISSION_DENIED,
    errno.ENOSPC: ErrorCode.DISK_FULL,
    errno.EROFS: ErrorCode.READ_ONLY_FS,
    errno.ELOOP: ErrorCode.SYMLINK_LOOP,
}
if hasattr(errno, "EDQUOT"):
    _ERRNO_CODES[errno.EDQUOT] = ErrorCode.DISK_FULL

_CODE_LABELS: dict[ErrorCode, str] = {
    ErrorCode.FILE_NOT_FOUND: "File not found",
    ErrorCode.PERMISSION_DENIED: "Permission denied",
    ErrorCode.DISK_FULL: "No space left on device",
    ErrorCode.READ_ONLY_FS: "Read-only file system",
    ErrorCode.SYMLINK_LOOP: "Too many levels of symbolic links",
}

_RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.MATCH_NOT_FOUND: [
        "Check for whitespace or indentation differences between old_string and the file",
        "Re-read the file to see its current content before retrying",
        "If an earlier edit in this request changed this region, search for the edited text",
    ],
    ErrorCode.AMBIGUOUS_MATCH: [
        "Make old_string more specific (include surrounding lines) to match one location",
        "Use replace_all: true to replace every occurrence",
    ],
    ErrorCode.FILE_NOT_FOUND: [
        "Check that the file path is correct and the file still exists",
    ],
    ErrorCode.PERMISSION_DENIED: [
        "Check file and directory permissions or run with appropriate access",
    ],
    ErrorCode.VALIDATION_FAILED: [
        "Check that the input matches the tool schema",
    ],
    ErrorCode.RELATIVE_PATH: [
        "Provide an absolute file path",
    ],
    ErrorCode.PATH_TRAVERSAL: [
        "Remove '..' segments from the file path",
    ],
    ErrorCode.EMPTY_EDITS: [
        "Provide at least one edit operation",
    ],
    ErrorCode.EMPTY_OLD_STRING: [
        "Each edit needs a non-empty old_string",
    ],
    ErrorCode.DUPLICATE_OLD_STRING: [
        "Each edit for a file needs a unique old_string",
        "Combine the edits or make the old_strings more specific",
    ],
    ErrorCode.DUPLICATE_FILE_PATH: [
        "List each file only once and put all of its edits in that entry",
    ],
    ErrorCode.INVALID_ENCODING: [
        "Only UTF-8 encoded text files can be edited",
    ],
    ErrorCode.DISK_FULL: [
        "Free up disk space, then retry",
    ],
    ErrorCode.READ_ONLY_FS: [
        "Check that the file system is mounted writable",
    ],
    ErrorCode.SYMLINK_LOOP: [
        "Check the path for circular symbolic links",
    ],
    ErrorCode.BACKUP_FAILED: [
        "Check write permissions for the directory holding the backup file",
        "Use backup: false to skip backup creation",
    ],
    ErrorCode.WRITE_FAILED: [
        "Check write permissions for the target file and its directory",
    ],
    ErrorCode.UNKNOWN_TOOL: [
        "Check that the tool name is multi_edit or multi_edit_files",
    ],
}

_DEFAULT_HINTS = ["Check the error details, then retry"]


def classify_error(
    error: BaseException,
    file_path: str | None = None,
    *,
    fallback: ErrorCode = ErrorCode.UNKNOWN_ERROR,
) -> tuple[ErrorCode, str]:
    """Classify a caught exception into an error code and message.

    Args:
        error: The exception raised by a filesystem operation
        file_path: Path involved, used in the message
        fallback: Code used when the platform error is not in the taxonomy

    Returns:
        Tuple of (error_code, human-readable message)

    """
    target = file_path or getattr(error, "filename", None) or "<unknown>"

    if isinstance(error, UnicodeDecodeError):
        return (
            ErrorCode.INVALID_ENCODING,
            f"File contains invalid UTF-8 encoding: {target}",
        )

    if isinstance(error, OSError) and error.errno in _ERRNO_CODES:
        code = _ERRNO_CODES[error.errno]
        return code, f"{_CODE_LABELS[code]}: {target}"

    text = str(error)
    lowered = text.lower()
    if "symlink loop" in lowered or "symbolic link loop" in lowered:
        return ErrorCode.SYMLINK_LOOP, f"{_CODE_LABELS[ErrorCode.SYMLINK_LOOP]}: {target}"
    # Only guess from the message when the caller has no stage-specific code
    if fallback is ErrorCode.UNKNOWN_ERROR and ("utf-8" in lowered or "utf8" in lowered):
        return ErrorCode.INVALID_ENCODING, text

    return fallback, text or f"Unknown error on {target}"


def get_recovery_hints(error_code: ErrorCode | str) -> list[str]:
    """Return general recovery guidance for a code, most likely fix first."""
    return list(_RECOVERY_HINTS.get(ErrorCode(error_code), _DEFAULT_HINTS))


def _window(lines: list[str], center: int, radius: int) -> str:
    """Join lines[center-radius : center+radius+1], clamped to the file."""
    start = max(0, center - radius)
    end = min(len(lines), center + radius + 1)
    return "\n".join(lines[start:end])


def _candidate_prefixes(search: str) -> list[str]:
    """Progressively shorter prefixes of search, also with leading whitespace removed."""
    candidates: list[str] = []
    for text in (search, search.lstrip()):
        for length in _PREFIX_LENGTHS:
            if length >= len(text):
                continue
            prefix = text[:length]
            if prefix.strip() and prefix not in candidates:
                candidates.append(prefix)
    return sorted(candidates, key=len, reverse=True)


def extract_file_context(
    content: str,
    search: str,
    *,
    case_insensitive: bool = False,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> ErrorContext | None:
    """Extract raw content near the most plausible location of a missing search string.

    Tries shrinking prefixes of the search text. The first prefix found
    anchors a window of lines around it; when nothing matches at any length
    the first lines of the file are returned instead.
    """
    if not content:
        return None

    lines = split_lines(content)

    for prefix in _candidate_prefixes(search):
        spans = find_all_matches(content, prefix, case_insensitive=case_insensitive)
        if spans:
            line_index = get_line_number(content, spans[0][0]) - 1
            logger.debug(f"Partial match for {prefix!r} at line {line_index + 1}")
            return ErrorContext(
                snippet=_window(lines, line_index, options.no_match_context_lines),
            )

    return ErrorContext(snippet="\n".join(lines[: options.fallback_head_lines]))


def extract_match_locations(
    content: str,
    spans: list[tuple[int, int]],
    *,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> ErrorContext | None:
    """Extract every occurrence of an ambiguous search string with nearby lines.

    At most options.max_match_locations are reported; the snippet notes how
    many were left out.
    """
    if not spans:
        return None

    lines = split_lines(content)
    shown = spans[: options.max_match_locations]

    locations = []
    for start, _ in shown:
        line_number = get_line_number(content, start)
        locations.append(
            MatchLocation(
                line=line_number,
                snippet=_window(lines, line_number - 1, options.ambiguous_context_lines),
            ),
        )

    context = ErrorContext(match_locations=locations)
    if len(spans) > len(shown):
        omitted = len(spans) - len(shown)
        context.snippet = (
            f"{len(shown)} of {len(spans)} matches shown ({omitted} omitted)"
        )
    return context


def _preview(text: str, length: int) -> str:
    return text[:length]


def build_edit_status(
    edits: list[EditOperation],
    failed_index: int,
    failed_code: ErrorCode,
    failed_message: str,
    *,
    options: DiagnosticOptions = DEFAULT_DIAGNOSTIC_OPTIONS,
) -> list[EditStatusEntry]:
    """List the failed edit and every edit after it (skipped).

    Edits before failed_index succeeded and are omitted.
    """
    status = [
        EditStatusEntry(
            edit_index=failed_index,
            status="failed",
            error_code=failed_code,
            message=failed_message,
            old_string_preview=_preview(edits[failed_index].old_string, options.preview_length),
        ),
    ]
    status.extend(
        EditStatusEntry(
            edit_index=i,
            status="skipped",
            old_string_preview=_preview(edits[i].old_string, options.preview_length),
        )
        for i in range(failed_index + 1, len(edits))
    )
    return status


def create_error_descriptor(
    error_code: ErrorCode,
    message: str,
    *,
    recovery_hints: list[str] | None = None,
    **fields,
) -> ErrorDescriptor:
    """Create the canonical error descriptor.

    retryable is derived from the code; hints default to the code's hints.
    Extra keyword fields (file_path, edit_index, context, ...) are passed
    through when not None.
    """
    hints = recovery_hints or get_recovery_hints(error_code)
    return ErrorDescriptor(
        error_code=error_code,
        message=message,
        retryable=is_retryable(error_code),
        recovery_hints=hints,
        **{key: value for key, value in fields.items() if value is not None},
    )


def describe_exception(error: BaseException, file_path: str | None = None) -> ErrorDescriptor:
    """Classify an exception and wrap it in a descriptor."""
    code, message = classify_error(error, file_path)
    return create_error_descriptor(code, message, file_path=file_path)
