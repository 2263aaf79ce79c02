"""End-to-end tests for the multi_edit and multi_edit_files tools."""

from pathlib import Path

from mcp_multi_edit.core.errors import DiagnosticOptions
from mcp_multi_edit.helpers.config_loader import ToolSettings
from mcp_multi_edit.tools.multi_edit import multi_edit
from mcp_multi_edit.tools.multi_edit_files import multi_edit_files


def test_multi_edit_applies_all_edits(temp_workspace: Path) -> None:
    target = temp_workspace / "service.py"
    target.write_text("class Service:\n    def start(self):\n        return 'started'\n")

    result = multi_edit(
        str(target),
        [
            {"old_string": "class Service:", "new_string": "class Worker:"},
            {"old_string": "'started'", "new_string": "'running'"},
        ],
    )

    assert result["success"] is True
    assert result["edits_applied"] == 2
    assert target.read_text() == "class Worker:\n    def start(self):\n        return 'running'\n"
    assert result["backup_path"] == str(target.resolve()) + ".bak"


def test_multi_edit_dry_run(temp_workspace: Path) -> None:
    target = temp_workspace / "service.py"
    target.write_text("debug = False\n")

    result = multi_edit(
        str(target),
        [{"old_string": "False", "new_string": "True"}],
        dry_run=True,
        include_content=True,
    )

    assert result["success"] is True
    assert result["dry_run"] is True
    assert result["final_content"] == "debug = True\n"
    assert "L1: - debug = False" in result["diff_preview"]
    assert target.read_text() == "debug = False\n"


def test_multi_edit_failure_is_descriptor(temp_workspace: Path) -> None:
    target = temp_workspace / "service.py"
    target.write_text("def handler(event):\n    return event\n")

    result = multi_edit(
        str(target),
        [{"old_string": "def handler(event, context):", "new_string": "def handler(event):"}],
    )

    assert result["success"] is False
    assert result["error_code"] == "MATCH_NOT_FOUND"
    assert result["retryable"] is True
    assert result["edit_index"] == 0
    assert "def handler(event):" in result["context"]["snippet"]
    assert result["recovery_hints"]
    assert not (temp_workspace / "service.py.bak").exists()


def test_multi_edit_validation_error(temp_workspace: Path) -> None:
    result = multi_edit("relative.py", [{"old_string": "a", "new_string": "b"}])

    assert result["success"] is False
    assert result["error_code"] == "RELATIVE_PATH"


def test_multi_edit_uses_settings(temp_workspace: Path) -> None:
    target = temp_workspace / "service.py"
    target.write_text("x\nx\nx\n")
    settings = ToolSettings(
        backup_suffix=".orig",
        default_backup=False,
        diagnostics=DiagnosticOptions(max_match_locations=2),
    )

    failed = multi_edit(str(target), [{"old_string": "x", "new_string": "y"}], settings=settings)
    assert len(failed["context"]["match_locations"]) == 2

    ok = multi_edit(
        str(target),
        [{"old_string": "x", "new_string": "y", "replace_all": True}],
        backup=True,
        settings=settings,
    )
    assert ok["success"] is True
    assert (temp_workspace / "service.py.orig").read_text() == "x\nx\nx\n"


def test_multi_edit_default_backup_from_settings(temp_workspace: Path) -> None:
    target = temp_workspace / "service.py"
    target.write_text("x = 1\n")

    result = multi_edit(
        str(target),
        [{"old_string": "1", "new_string": "2"}],
        settings=ToolSettings(default_backup=False),
    )

    assert result["success"] is True
    assert "backup_path" not in result
    assert not (temp_workspace / "service.py.bak").exists()


def test_multi_edit_files_commits_all(temp_workspace: Path) -> None:
    models = temp_workspace / "models.py"
    views = temp_workspace / "views.py"
    models.write_text("class User:\n    pass\n")
    views.write_text("from models import User\n")

    result = multi_edit_files(
        [
            {"file_path": str(models), "edits": [{"old_string": "class User", "new_string": "class Account"}]},
            {"file_path": str(views), "edits": [{"old_string": "import User", "new_string": "import Account"}]},
        ],
        backup=False,
    )

    assert result["success"] is True
    assert result["files_edited"] == 2
    assert result["summary"]["total_edits"] == 2
    assert [r["status"] for r in result["file_results"]] == ["committed", "committed"]
    assert views.read_text() == "from models import Account\n"
    assert not (temp_workspace / "models.py.bak").exists()


def test_multi_edit_files_failure_changes_nothing(temp_workspace: Path) -> None:
    models = temp_workspace / "models.py"
    views = temp_workspace / "views.py"
    models.write_text("class User:\n    pass\n")
    views.write_text("from models import User\n")

    result = multi_edit_files(
        [
            {"file_path": str(models), "edits": [{"old_string": "class User", "new_string": "class Account"}]},
            {"file_path": str(views), "edits": [{"old_string": "import Users", "new_string": "import Account"}]},
        ]
    )

    assert result["success"] is False
    assert result["error_code"] == "MATCH_NOT_FOUND"
    assert result["failed_file_index"] == 1
    assert [s["status"] for s in result["file_status"]] == ["skipped", "failed"]
    assert models.read_text() == "class User:\n    pass\n"


def test_multi_edit_files_duplicate_path(temp_workspace: Path) -> None:
    target = temp_workspace / "models.py"
    target.write_text("a\n")

    result = multi_edit_files(
        [
            {"file_path": str(target), "edits": [{"old_string": "a", "new_string": "b"}]},
            {"file_path": str(target), "edits": [{"old_string": "a", "new_string": "c"}]},
        ]
    )

    assert result["error_code"] == "DUPLICATE_FILE_PATH"
    assert target.read_text() == "a\n"
