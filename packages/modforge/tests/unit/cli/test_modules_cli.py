"""Unit tests — CLI add-module / delete-module commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from modforge.cli.main import app
from modforge.config import PROJECT_CONFIG_NAME

runner = CliRunner()


@pytest.fixture
def project(current_project: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    (current_project / PROJECT_CONFIG_NAME).write_text(
        "formatter:\n  enabled: false\nlock:\n  timeout_seconds: 0\n"
    )
    return current_project


def _invoke(*args: str):
    return runner.invoke(app, ["--log-level", "error", *args])


@pytest.mark.unit
class TestHelp:
    def test_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "add-module" in result.output
        assert "delete-module" in result.output

    def test_name_is_required(self, project: Path) -> None:
        result = _invoke("add-module", "--module", "server", "--root", str(project))
        assert result.exit_code != 0


@pytest.mark.unit
class TestAddModule:
    def test_creates_module(self, project: Path) -> None:
        result = _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 0, result.output
        assert "successfully created" in result.output
        assert (project / "modules/blog/server-ts/package.json").is_file()

    def test_legacy_flag_uses_legacy_layout(self, project: Path) -> None:
        result = _invoke("add-module", "-n", "blog", "-m", "server", "--old", "--root", str(project))
        # The fixture project has no legacy templates or registry.
        assert result.exit_code == 12
        assert not (project / "packages/server/src/modules/blog").exists()

    def test_existing_module_exit_code(self, project: Path) -> None:
        _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        result = _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 10

    def test_invalid_name_exit_code(self, project: Path) -> None:
        result = _invoke("add-module", "-n", "blog-post", "-m", "server", "--root", str(project))
        assert result.exit_code == 2
        assert not (project / "modules/blog-post").exists()

    def test_json_output(self, project: Path) -> None:
        result = _invoke(
            "add-module", "-n", "blog", "-m", "client", "--root", str(project), "--json"
        )
        assert result.exit_code == 0, result.output
        assert '"operation": "add"' in result.output
        assert '"package": "client-react"' in result.output

    def test_explicit_config_file(self, project: Path, tmp_path: Path) -> None:
        extra = tmp_path / "extra.yaml"
        extra.write_text("layout:\n  version_range: workspace:*\nformatter:\n  enabled: false\n")
        result = _invoke(
            "add-module", "-n", "blog", "-m", "server", "--root", str(project), "-c", str(extra)
        )
        assert result.exit_code == 0, result.output
        assert '"@gqlapp/blog-server-ts": "workspace:*"' in (
            project / "packages/server/package.json"
        ).read_text()

    def test_formatter_invoked_when_enabled(self, project: Path) -> None:
        (project / PROJECT_CONFIG_NAME).write_text("lock:\n  timeout_seconds: 0\n")
        with patch("modforge.workspace.formatter.subprocess.run") as mock_run:
            mock_run.return_value.returncode = 0
            result = _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 0, result.output
        assert mock_run.call_count == 2
        assert mock_run.call_args_list[0].args[0][:3] == ["npx", "prettier", "--write"]

    def test_filesystem_failure_exit_code(self, project: Path) -> None:
        with patch(
            "modforge.workspace.templates.shutil.copytree",
            side_effect=PermissionError("permission denied"),
        ):
            result = _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 20
        assert "permission denied" in " ".join(result.output.split())
        assert not (project / "modules/blog").exists()


@pytest.mark.unit
class TestDeleteModule:
    def test_deletes_module(self, project: Path) -> None:
        _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        result = _invoke("delete-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 0, result.output
        assert "successfully deleted" in result.output
        assert not (project / "modules/blog").exists()
        assert "blog" not in (project / "packages/server/src/modules.ts").read_text()

    def test_location_both(self, project: Path) -> None:
        for kind in ("client", "server"):
            _invoke("add-module", "-n", "blog", "-m", kind, "--root", str(project))
        result = _invoke(
            "delete-module", "-n", "blog", "-m", "server", "-l", "both", "--root", str(project)
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("successfully deleted") == 2
        assert not (project / "modules/blog").exists()

    def test_missing_directory_warns(self, project: Path) -> None:
        result = _invoke("delete-module", "-n", "ghost", "-m", "server", "--root", str(project))
        assert result.exit_code == 0, result.output
        assert "! Module directory" in result.output

    def test_broken_manifest_exit_code(self, project: Path) -> None:
        (project / "packages/server/package.json").write_text('{"name": "x"}\n')
        result = _invoke("delete-module", "-n", "core", "-m", "server", "--root", str(project))
        assert result.exit_code == 14
        assert "core" in (project / "packages/server/src/modules.ts").read_text()


@pytest.mark.unit
class TestConfiguration:
    def test_invalid_value_exit_code(self, project: Path) -> None:
        (project / PROJECT_CONFIG_NAME).write_text("lock:\n  timeout_seconds: -5\n")
        result = _invoke("add-module", "-n", "blog", "-m", "server", "--root", str(project))
        assert result.exit_code == 3
        assert "Invalid configuration" in result.output
        assert not (project / "modules/blog").exists()

    def test_malformed_yaml_exit_code(self, project: Path) -> None:
        (project / PROJECT_CONFIG_NAME).write_text("formatter: [unclosed\n")
        result = _invoke("delete-module", "-n", "core", "-m", "server", "--root", str(project))
        assert result.exit_code == 3

    def test_logging_block_applies_without_flags(self, project: Path) -> None:
        (project / PROJECT_CONFIG_NAME).write_text(
            "formatter:\n  enabled: false\nlock:\n  timeout_seconds: 0\nlogging:\n  level: debug\n"
        )
        result = runner.invoke(
            app, ["delete-module", "-n", "ghost", "-m", "server", "--root", str(project)]
        )
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.DEBUG

    def test_log_level_flag_wins_over_logging_block(self, project: Path) -> None:
        (project / PROJECT_CONFIG_NAME).write_text(
            "formatter:\n  enabled: false\nlock:\n  timeout_seconds: 0\nlogging:\n  level: debug\n"
        )
        result = _invoke("delete-module", "-n", "ghost", "-m", "server", "--root", str(project))
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.ERROR

    def test_logging_block_file(self, project: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "modforge.log"
        (project / PROJECT_CONFIG_NAME).write_text(
            "formatter:\n  enabled: false\nlock:\n  timeout_seconds: 0\n"
            f"logging:\n  level: info\n  format: json\n  file: {log_file}\n"
        )
        result = runner.invoke(
            app, ["add-module", "-n", "blog", "-m", "server", "--root", str(project)]
        )
        assert result.exit_code == 0, result.output
        assert '"event": "module_added"' in log_file.read_text()
