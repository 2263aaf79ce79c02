"""Error code taxonomy.

Every failure the server reports carries exactly one of these codes.
Retryability is a fixed property of the code:

Retryable (caller can fix its input and retry):
    VALIDATION_FAILED, RELATIVE_PATH, PATH_TRAVERSAL, EMPTY_EDITS,
    EMPTY_OLD_STRING, DUPLICATE_OLD_STRING, DUPLICATE_FILE_PATH,
    MATCH_NOT_FOUND, AMBIGUOUS_MATCH

Not retryable (environment must change first):
    FILE_NOT_FOUND, PERMISSION_DENIED, INVALID_ENCODING, DISK_FULL,
    READ_ONLY_FS, SYMLINK_LOOP, BACKUP_FAILED, WRITE_FAILED,
    UNKNOWN_ERROR, UNKNOWN_TOOL
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    # Validation errors
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RELATIVE_PATH = "RELATIVE_PATH"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    EMPTY_EDITS = "EMPTY_EDITS"
    EMPTY_OLD_STRING = "EMPTY_OLD_STRING"
    DUPLICATE_OLD_STRING = "DUPLICATE_OLD_STRING"
    DUPLICATE_FILE_PATH = "DUPLICATE_FILE_PATH"

    # Match errors
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    AMBIGUOUS_MATCH = "AMBIGUOUS_MATCH"

    # File system errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_ENCODING = "INVALID_ENCODING"
    DISK_FULL = "DISK_FULL"
    READ_ONLY_FS = "READ_ONLY_FS"
    SYMLINK_LOOP = "SYMLINK_LOOP"
    BACKUP_FAILED = "BACKUP_FAILED"
    WRITE_FAILED = "WRITE_FAILED"

    # Other
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"


RETRYABLE_CODES: frozenset[ErrorCode] = frozenset(
    {
        ErrorCode.VALIDATION_FAILED,
        ErrorCode.RELATIVE_PATH,
        ErrorCode.PATH_TRAVERSAL,
        ErrorCode.EMPTY_EDITS,
        ErrorCode.EMPTY_OLD_STRING,
        ErrorCode.DUPLICATE_OLD_STRING,
        ErrorCode.DUPLICATE_FILE_PATH,
        ErrorCode.MATCH_NOT_FOUND,
        ErrorCode.AMBIGUOUS_MATCH,
    },
)


def is_retryable(code: ErrorCode | str) -> bool:
    """Return True if the caller can likely succeed by correcting its input."""
    return ErrorCode(code) in RETRYABLE_CODES
