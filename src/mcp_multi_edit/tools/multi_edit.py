"""multi_edit tool - several search/replace edits on one file, atomically.

All edits are applied in order to an in-memory buffer; the file is written
once, only if every edit succeeded. On failure the file is untouched and the
result is an ErrorDescriptor with the failing edit, the skipped edits and
nearby file content.
"""

import logging
from pathlib import Path

from ..core.editor import apply_edits
from ..core.reporter import format_multi_edit_response
from ..core.validator import validate_multi_edit_input
from ..helpers.config_loader import ToolSettings
from ..response_models import ErrorDescriptor

logger = logging.getLogger(__name__)


def multi_edit(
    file_path: str,
    edits: list[dict],
    *,
    dry_run: bool = False,
    backup: bool | None = None,
    include_content: bool = False,
    settings: ToolSettings | None = None,
) -> dict:
    """Apply multiple edits to one file atomically.

    Args:
        file_path: Absolute path to the file
        edits: List of dicts with old_string, new_string and optional
            replace_all / case_insensitive
        dry_run: Compute and report without writing
        backup: Write <file_path><suffix> first (None = configured default)
        include_content: Return the final content
        settings: Backup suffix, default backup flag and diagnostic sizes

    Returns:
        dict with success=True and per-edit results, or an ErrorDescriptor
        dict (success=False, error_code, retryable, recovery_hints, ...)

    """
    settings = settings or ToolSettings()

    validated = validate_multi_edit_input(
        {
            "file_path": file_path,
            "edits": edits,
            "dry_run": dry_run,
            "backup": backup,
            "include_content": include_content,
        },
        default_backup=settings.default_backup,
    )
    if isinstance(validated, ErrorDescriptor):
        logger.info(f"multi_edit rejected: {validated.error_code}")
        return validated.model_dump(mode="json", exclude_none=True)

    outcome = apply_edits(
        Path(validated.file_path),
        validated.edits,
        dry_run=validated.dry_run,
        backup=validated.backup,
        backup_suffix=settings.backup_suffix,
    )
    response = format_multi_edit_response(
        outcome,
        validated.edits,
        include_content=validated.include_content,
        options=settings.diagnostics,
    )
    return response.model_dump(mode="json", exclude_none=True)
