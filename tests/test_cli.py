# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end tests for the Typer command-line interface."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from functools import partial
from pathlib import Path
from types import SimpleNamespace

import pytest
from filelock import FileLock
from typer.testing import CliRunner

import enman
from enman import __version__
from enman.acquisition import AcquisitionPipeline
from enman.archive import ArchiveFormat
from enman.bindings import write_global
from enman.catalog import NODE_INDEX_URL, RemoteCatalog
from enman.cli import app
from enman.cli.main import main, run_shim
from enman.dispatch import ShimDispatcher
from enman.download import SourceDownloader
from enman.layout import EnmanLayout, relative_binary_path
from enman.platform import detect_platform
from enman.sources import VersionSource, resolve_sources
from enman.tools import ToolId

ARCHIVE_URL = "https://downloads.example/node.tar.gz"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    monkeypatch.chdir(directory)
    return directory


@pytest.fixture
def cli_env(enman_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    manager = tmp_path / "bin" / "enman"
    manager.parent.mkdir()
    manager.write_text("#!/bin/sh\n")
    monkeypatch.setattr("enman.cli.shared.manager_entry_point", lambda: manager)
    monkeypatch.setenv("ENMAN_ROOT", str(enman_root))
    return {"ENMAN_ROOT": str(enman_root), "PATH": os.environ.get("PATH", "")}


def _preinstall(root: Path, tool: ToolId, version: str) -> Path:
    binary = EnmanLayout(root).canonical_binary_path(tool, version, detect_platform())
    binary.parent.mkdir(parents=True)
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o755)
    return binary


def test_version_flag(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"enman {__version__}" in result.output


def test_init_creates_layout_and_path_hint(runner: CliRunner, cli_env: dict[str, str], enman_root: Path) -> None:
    result = runner.invoke(app, ["--no-emoji", "init"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert f"Initialized enman in {enman_root}" in result.output
    assert "export PATH=" in result.output
    assert all(directory.is_dir() for directory in EnmanLayout(enman_root).directories())


def test_install_already_installed_skips_download(
    runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path
) -> None:
    _preinstall(enman_root, ToolId.NODE, "20.10.0")

    result = runner.invoke(app, ["--no-emoji", "install", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "node@20.10.0 already installed" in result.output
    assert "Installing" not in result.output


def _pipeline_factory(fake_session, source_url: str | None):
    def resolver(tool: ToolId, version: str, platform) -> VersionSource:
        if source_url is None:
            return resolve_sources(tool, version, platform)
        return VersionSource(tool, version, platform, (source_url,), ArchiveFormat.TAR_GZ)

    def build(settings, *, downloader=None):
        quiet = SourceDownloader(fake_session, retry_limit=1, retry_backoff=0.0, sleep=lambda _: None)
        return AcquisitionPipeline(settings, downloader=quiet, source_resolver=resolver)

    return build


def test_install_downloads_and_creates_shim(
    runner: CliRunner,
    cli_env: dict[str, str],
    enman_root: Path,
    workdir: Path,
    tmp_path: Path,
    fake_session,
    ok,
    make_tar_gz,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    platform = detect_platform()
    member = f"node-v20.10.0/{relative_binary_path(ToolId.NODE, platform)}"
    archive = make_tar_gz(tmp_path / "node.tar.gz", {member: b"#!/bin/sh\n"})
    fake_session.routes[ARCHIVE_URL] = [ok(archive.read_bytes())]
    monkeypatch.setattr("enman.cli.shared.AcquisitionPipeline", _pipeline_factory(fake_session, ARCHIVE_URL))

    result = runner.invoke(app, ["--no-emoji", "install", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Installing node@20.10.0" in result.output
    assert "Installed node@20.10.0 to" in result.output
    layout = EnmanLayout(enman_root)
    assert layout.is_installed(ToolId.NODE, "20.10.0", platform)
    shim = layout.shim_path(ToolId.NODE, platform)
    assert shim.exists() or shim.is_symlink()


def test_install_failure_exits_with_remedy(
    runner: CliRunner,
    cli_env: dict[str, str],
    workdir: Path,
    fake_session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("enman.cli.shared.AcquisitionPipeline", _pipeline_factory(fake_session, None))

    result = runner.invoke(app, ["--no-emoji", "install", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 1
    assert "All 2 download source(s) failed" in result.output
    assert "Retry later or check your network, then run: enman install node@20.10.0" in result.output


def test_malformed_spec_exits_one(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["--no-emoji", "install", "node20"], env=cli_env)

    assert result.exit_code == 1
    assert "Expected tool@version" in result.output


def test_global_then_list(runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path) -> None:
    _preinstall(enman_root, ToolId.NODE, "18.0.0")
    _preinstall(enman_root, ToolId.NODE, "20.10.0")

    result = runner.invoke(app, ["--no-emoji", "global", "node@20.10.0"], env=cli_env)
    assert result.exit_code == 0, result.output
    assert "Switching to node@20.10.0" in result.output
    assert "Set global node to version 20.10.0" in result.output
    assert (enman_root / "global" / "node").read_text() == "20.10.0"

    listed = runner.invoke(app, ["list"], env=cli_env)
    assert listed.output.splitlines() == ["node@20.10.0"]

    versions = runner.invoke(app, ["list", "node"], env=cli_env)
    assert versions.output.splitlines() == ["  18.0.0", "* 20.10.0 (global)"]


def test_use_writes_local_marker(runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path) -> None:
    _preinstall(enman_root, ToolId.NODE, "20.10.0")

    result = runner.invoke(app, ["--no-emoji", "use", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert (workdir / ".enman-version").read_text() == "node@20.10.0"
    assert f"Set local node to version 20.10.0 in {workdir}" in result.output


def test_use_service_on_non_database_warns(
    runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path
) -> None:
    _preinstall(enman_root, ToolId.NODE, "20.10.0")

    result = runner.invoke(app, ["--no-emoji", "use", "--service", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "node has no background service" in result.output


def test_uninstall_active_global_is_refused(
    runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path
) -> None:
    binary = _preinstall(enman_root, ToolId.NODE, "20.10.0")
    runner.invoke(app, ["global", "node@20.10.0"], env=cli_env)

    result = runner.invoke(app, ["--no-emoji", "uninstall", "node@20.10.0"], env=cli_env)

    assert result.exit_code == 1
    assert "it is the active global version" in result.output
    assert "Run: enman global node@<other_version>" in result.output
    assert binary.is_file()


def test_uninstall_reports_missing_and_removed(
    runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path
) -> None:
    missing = runner.invoke(app, ["--no-emoji", "uninstall", "java@17"], env=cli_env)
    assert missing.exit_code == 0
    assert "java@17 is not installed" in missing.output

    _preinstall(enman_root, ToolId.JAVA, "17")
    removed = runner.invoke(app, ["--no-emoji", "uninstall", "java@17"], env=cli_env)
    assert removed.exit_code == 0, removed.output
    assert "Uninstalled java@17" in removed.output
    assert not (enman_root / "installs" / "java").exists()


def test_config_init_show_and_apply(
    runner: CliRunner, cli_env: dict[str, str], enman_root: Path, workdir: Path
) -> None:
    missing = runner.invoke(app, ["--no-emoji", "config", "show"], env=cli_env)
    assert "Config file not found" in missing.output

    created = runner.invoke(app, ["--no-emoji", "config", "init"], env=cli_env)
    assert created.exit_code == 0
    assert "Created new config file" in created.output
    again = runner.invoke(app, ["--no-emoji", "config", "init"], env=cli_env)
    assert "Config file already exists" in again.output

    (workdir / ".enmanrc").write_text('[tools]\nnode = "20.10.0"\n')
    _preinstall(enman_root, ToolId.NODE, "20.10.0")
    shown = runner.invoke(app, ["--no-emoji", "config", "show"], env=cli_env)
    assert "  node: 20.10.0" in shown.output.splitlines()

    applied = runner.invoke(app, ["--no-emoji", "config", "apply"], env=cli_env)
    assert applied.exit_code == 0, applied.output
    assert "Applied 1 tool version(s)" in applied.output


def test_invalid_settings_file_exits_one(runner: CliRunner, cli_env: dict[str, str], enman_root: Path) -> None:
    enman_root.mkdir()
    (enman_root / "config.toml").write_text("[settings]\nretry_limit = 0\n")

    result = runner.invoke(app, ["--no-emoji", "init"], env=cli_env)

    assert result.exit_code == 1
    assert f"Fix or remove {enman_root / 'config.toml'}" in result.output


def test_shim_without_binding_reports_remedy(
    cli_env: dict[str, str], workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_shim(ToolId.PYTHON, ["--version"]) == 1

    captured = capsys.readouterr()
    assert "No version of 'python' is configured" in captured.err
    assert "Run: enman global python@<version>" in captured.err


def test_main_dispatches_when_invoked_as_tool(cli_env: dict[str, str], workdir: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["/somewhere/shims/mysql", "-e", "select 1"])

    assert excinfo.value.code == 1


def test_list_available_names_installable_tools(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["list", "--available"], env=cli_env)

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "Tools enman can install:"
    assert any(line.startswith("  node ") for line in lines)
    assert any(line.startswith("  mariadb") and line.endswith("[no remote listing]") for line in lines)
    assert "enman list --remote <tool>" in lines[-1]


def test_list_remote_uses_the_release_index(
    runner: CliRunner, cli_env: dict[str, str], fake_session, response, monkeypatch: pytest.MonkeyPatch
) -> None:
    index = [{"version": "v20.10.0", "lts": "Iron"}, {"version": "v21.5.0", "lts": False}]
    fake_session.routes[NODE_INDEX_URL] = [response(status_code=200, body=json.dumps(index).encode())]
    catalog = SimpleNamespace(from_settings=lambda settings: RemoteCatalog.from_settings(settings, session=fake_session))
    monkeypatch.setattr("enman.cli.commands.list_cmd.RemoteCatalog", catalog)

    result = runner.invoke(app, ["list", "--remote", "nodejs", "--limit", "5"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["Latest node versions:", "  21.5.0", "  20.10.0 (LTS: Iron)"]
    assert fake_session.headers["User-Agent"].startswith("enman/")


def test_list_remote_requires_a_tool(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["list", "--remote"], env=cli_env)

    assert result.exit_code == 2
    assert "--remote needs a TOOL" in result.output


def test_list_remote_for_database_exits_with_remedy(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["--no-emoji", "list", "--remote", "mysql"], env=cli_env)

    assert result.exit_code == 1
    assert "Remote version listing is not available for mysql" in result.output
    assert "Browse https://downloads.mysql.com/archives/community/" in result.output


def test_install_lock_timeout_prints_hint(
    runner: CliRunner,
    cli_env: dict[str, str],
    enman_root: Path,
    workdir: Path,
    fake_session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("enman.cli.shared.AcquisitionPipeline", _pipeline_factory(fake_session, ARCHIVE_URL))
    lock_path = EnmanLayout(enman_root).lock_file(ToolId.NODE, "20.10.0")
    lock_path.parent.mkdir(parents=True)
    holder = FileLock(str(lock_path))
    holder.acquire()
    try:
        result = runner.invoke(
            app,
            ["--no-emoji", "install", "node@20.10.0"],
            env={**cli_env, "ENMAN_LOCK_TIMEOUT": "0.05"},
        )
    finally:
        holder.release()

    assert result.exit_code == 1
    assert "Timed out after 0.05s" in result.output
    assert f"Retry once the other enman process finishes, or delete {lock_path}" in result.output
    assert fake_session.calls == []


def test_shim_exec_failure_reports_reinstall_hint(
    cli_env: dict[str, str],
    enman_root: Path,
    workdir: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _preinstall(enman_root, ToolId.NODE, "20.10.0")
    write_global(EnmanLayout(enman_root), ToolId.NODE, "20.10.0")

    def refuse(path: str, argv: object) -> None:
        raise OSError(8, "Exec format error", path)

    monkeypatch.setattr("enman.cli.main.ShimDispatcher", partial(ShimDispatcher, prefer_exec=True, execv=refuse))

    assert run_shim(ToolId.NODE, ["--version"]) == 1

    captured = capsys.readouterr()
    assert "Failed to execute" in captured.err
    assert "Run: enman uninstall node@20.10.0, then enman install node@20.10.0" in captured.err


@pytest.mark.skipif(os.name == "nt", reason="process image replacement is POSIX only")
def test_shim_replaces_process_and_propagates_exit_status(enman_root: Path, workdir: Path) -> None:
    binary = _preinstall(enman_root, ToolId.NODE, "20.10.0")
    binary.write_text('#!/bin/sh\n[ "$1" = "--flag" ] || exit 3\nexit 7\n')
    write_global(EnmanLayout(enman_root), ToolId.NODE, "20.10.0")
    source_root = Path(enman.__file__).resolve().parents[1]
    python_path = os.pathsep.join(filter(None, [str(source_root), os.environ.get("PYTHONPATH")]))
    env = {**os.environ, "ENMAN_ROOT": str(enman_root), "PYTHONPATH": python_path}

    completed = subprocess.run(
        [sys.executable, "-c", "from enman.cli.main import main; main(['/x/shims/node', '--flag'])"],
        cwd=workdir,
        env=env,
        capture_output=True,
        timeout=60,
        check=False,
    )

    assert completed.returncode == 7, completed.stderr
