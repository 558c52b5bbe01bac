"""End-to-end CLI coverage for the commands exposed by lib_config_resolver.

These tests exercise the documented workflows (resolve, env-prefix, info) and
double as regression tests for the README examples.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import lib_cli_exit_tools

from lib_config_resolver import cli
from lib_config_resolver.domain.errors import ProviderFailed


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def _write(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_cli_resolve_merges_files_in_order(tmp_path: Path) -> None:
    """Later ``--file`` options win; untouched keys survive from earlier ones."""

    base = _write(tmp_path / "base.yaml", "db:\n  host: localhost\n  port: 5432\n")
    local = _write(tmp_path / "local.json", '{"db": {"port": 6543}}')
    result = _runner().invoke(cli.cli, ["resolve", "--file", str(base), "--file", str(local)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"db": {"host": "localhost", "port": 6543}}


def test_cli_resolve_env_and_overrides(tmp_path: Path) -> None:
    """Environment beats files and ``--set`` beats everything."""

    base = _write(tmp_path / "config.toml", "[service]\ntimeout = 15\nname = \"demo\"\n")
    result = _runner().invoke(
        cli.cli,
        [
            "resolve",
            "--file",
            str(base),
            "--env-prefix",
            "DEMO",
            "--set",
            "service.name=cli",
            "--indent",
            "2",
        ],
        env={"DEMO_SERVICE__TIMEOUT": "30"},
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"service": {"timeout": "30", "name": "cli"}}
    assert "\n  " in result.output


def test_cli_resolve_with_provenance(tmp_path: Path) -> None:
    base = _write(tmp_path / "config.yaml", "service:\n  timeout: 15\n  retries: 2\n")
    result = _runner().invoke(
        cli.cli,
        ["resolve", "--file", str(base), "--set", "service.retries=5", "--provenance"],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["config"] == {"service": {"timeout": 15, "retries": "5"}}
    expected = {"layer": f"file:{base}", "path": str(base), "key": "service.timeout"}
    assert payload["provenance"]["service.timeout"] == expected
    assert payload["provenance"]["service.retries"]["layer"] == "cli-override"


def test_cli_resolve_skips_missing_optional_files(tmp_path: Path) -> None:
    result = _runner().invoke(cli.cli, ["resolve", "--file", str(tmp_path / "absent.yaml")])
    assert result.exit_code == 0
    assert json.loads(result.output) == {}


def test_cli_resolve_required_missing_file_fails(tmp_path: Path) -> None:
    missing = tmp_path / "absent.yaml"
    result = _runner().invoke(cli.cli, ["resolve", "--require-files", "--file", str(missing)])
    assert result.exit_code != 0
    assert isinstance(result.exception, ProviderFailed)
    assert result.exception.provider == f"file:{missing}"


def test_cli_resolve_rejects_malformed_override() -> None:
    result = _runner().invoke(cli.cli, ["resolve", "--set", "no-equals-sign"])
    assert result.exit_code == 2
    assert "expected KEY=VALUE" in result.output


def test_cli_env_prefix_command() -> None:
    """`cli env-prefix` should echo the canonical uppercase prefix for a slug."""

    result = _runner().invoke(cli.cli, ["env-prefix", "config-kit"])
    assert result.exit_code == 0
    assert result.output.strip() == "CONFIG_KIT"


def test_cli_info_handles_missing_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag(tmp_path: Path) -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    base = _write(tmp_path / "config.yaml", "value: 1\n")
    exit_code = cli.main(["--traceback", "resolve", "--file", str(base)], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_reports_failures_with_nonzero_exit(tmp_path: Path) -> None:
    broken = _write(tmp_path / "config.yaml", "value: [1\n")
    exit_code = cli.main(["resolve", "--file", str(broken)])
    assert exit_code != 0


def test_cli_resolve_prints_document_dates_as_strings(tmp_path: Path) -> None:
    yaml_doc = _write(tmp_path / "config.yaml", "release: 2024-01-01\n")
    toml_doc = _write(tmp_path / "extra.toml", "[window]\nopens = 2024-02-01T08:00:00\n")
    exit_code = cli.main(["resolve", "--file", str(yaml_doc), "--file", str(toml_doc)])
    assert exit_code == 0

    result = _runner().invoke(cli.cli, ["resolve", "--file", str(yaml_doc), "--file", str(toml_doc)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"release": "2024-01-01", "window": {"opens": "2024-02-01T08:00:00"}}
