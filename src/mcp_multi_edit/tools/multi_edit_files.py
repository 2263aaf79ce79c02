"""multi_edit_files tool - coordinated edits across several files.

Every file's edits are computed before anything is written. Files are then
committed one by one (backup + atomic write); if a commit fails, the files
already committed are restored. Files whose restore fails are reported as
rollback_failed together with the backup holding their original content.
"""

import logging

from ..core.reporter import format_multi_edit_files_response
from ..core.transaction import apply_all
from ..core.validator import validate_multi_edit_files_input
from ..helpers.config_loader import ToolSettings
from ..response_models import ErrorDescriptor

logger = logging.getLogger(__name__)


def multi_edit_files(
    files: list[dict],
    *,
    dry_run: bool = False,
    backup: bool | None = None,
    include_content: bool = False,
    settings: ToolSettings | None = None,
) -> dict:
    """Apply edits to several files as one atomic unit.

    Args:
        files: List of dicts with file_path and edits
        dry_run: Compute and report without writing
        backup: Keep backup files after success (None = configured default).
            Backups are always taken during the commit for rollback.
        include_content: Return each file's final content
        settings: Backup suffix, default backup flag and diagnostic sizes

    Returns:
        dict with success=True, per-file results and summary, or an
        ErrorDescriptor dict with file_status and rollback report

    """
    settings = settings or ToolSettings()

    validated = validate_multi_edit_files_input(
        {
            "files": files,
            "dry_run": dry_run,
            "backup": backup,
            "include_content": include_content,
        },
        default_backup=settings.default_backup,
    )
    if isinstance(validated, ErrorDescriptor):
        logger.info(f"multi_edit_files rejected: {validated.error_code}")
        return validated.model_dump(mode="json", exclude_none=True)

    outcome = apply_all(
        validated.files,
        dry_run=validated.dry_run,
        backup=validated.backup,
        backup_suffix=settings.backup_suffix,
    )
    response = format_multi_edit_files_response(
        outcome,
        include_content=validated.include_content,
        options=settings.diagnostics,
    )
    return response.model_dump(mode="json", exclude_none=True)
