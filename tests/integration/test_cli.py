"""Integration tests for the ci-cache CLI with a scripted command runner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ci_cache.cli import main as cli_main
from tests.fakes.fake_runner import FakeCommandRunner

GITVERSION_JSON = json.dumps({
    "Major": 2,
    "Minor": 0,
    "Patch": 1,
    "MajorMinorPatch": "2.0.1",
    "SemVer": "2.0.1",
    "FullSemVer": "2.0.1",
    "BranchName": "main",
    "Sha": "4f2a9c1d8e7b6a5f4e3d2c1b0a9f8e7d6c5b4a39",
    "ShortSha": "4f2a9c1",
})

cli = CliRunner()


@pytest.fixture
def runner_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, Path]:
    home = tmp_path / "home"
    workspace = tmp_path / "workspace"
    home.mkdir()
    workspace.mkdir()
    output_file = tmp_path / "github_output"
    for name, value in {
        "RUNNER_OS": "Linux",
        "HOME": str(home),
        "GITHUB_WORKSPACE": str(workspace),
        "GITHUB_REPOSITORY": "octo-org/octo-repo",
        "GITHUB_REF": "refs/heads/main",
        "GITHUB_SHA": "4f2a9c1d8e7b6a5f4e3d2c1b0a9f8e7d6c5b4a39",
        "GITHUB_OUTPUT": str(output_file),
    }.items():
        monkeypatch.setenv(name, value)
    (workspace / "Install-RequiredModule.ps1").write_text("param()\n", encoding="utf-8")
    monkeypatch.setenv("CICACHE_MODULES_INSTALL_SCRIPT", "Install-RequiredModule.ps1")
    monkeypatch.setattr(cli_main, "setup_logging", lambda *a, **kw: None)
    return {"home": home, "workspace": workspace, "output": output_file, "store": tmp_path / "store"}


def _install_fake_runner(monkeypatch: pytest.MonkeyPatch, fake: FakeCommandRunner) -> None:
    monkeypatch.setattr(cli_main, "CommandRunner", lambda *a, **kw: fake)


class TestGitVersionCommand:
    def test_publishes_outputs_and_caches_tool(
        self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def install(argv: list[str]) -> None:
            tools = runner_env["home"] / ".dotnet" / "tools"
            tools.mkdir(parents=True, exist_ok=True)
            (tools / "gitversion.dll").write_text("stub", encoding="utf-8")

        fake = FakeCommandRunner({"dotnet-gitversion": GITVERSION_JSON}, side_effects={"dotnet": install})
        _install_fake_runner(monkeypatch, fake)

        args = ["gitversion", "--backend", "file", "--store-path", str(runner_env["store"])]
        first = cli.invoke(cli_main.app, args)
        second = cli.invoke(cli_main.app, args)

        assert first.exit_code == 0, first.output
        assert second.exit_code == 0, second.output
        assert "2.0.1" in first.output
        assert len(fake.calls_to("dotnet")) == 1
        assert len(fake.calls_to("dotnet-gitversion")) == 2
        assert (runner_env["store"] / "Linux-dotnet-tools-GitVersion.Tool.tar.gz").is_file()
        written = runner_env["output"].read_text(encoding="utf-8")
        assert written.count("\nSemVer=2.0.1\n") == 2
        assert "PreReleaseTag=\n" in written

    def test_install_failure_exits_non_zero(
        self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeCommandRunner(failing=["dotnet"])
        _install_fake_runner(monkeypatch, fake)

        result = cli.invoke(cli_main.app, ["gitversion", "--backend", "memory"])

        assert result.exit_code == 1
        assert "::error::Command 'dotnet' exited with status 1" in result.output
        assert fake.calls_to("dotnet-gitversion") == []

    def test_unexpected_runner_error_is_reported(
        self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def denied(argv: list[str]) -> None:
            raise PermissionError(13, "Permission denied")

        _install_fake_runner(monkeypatch, FakeCommandRunner(side_effects={"dotnet": denied}))

        result = cli.invoke(cli_main.app, ["gitversion", "--backend", "memory"])

        assert result.exit_code == 1
        assert "::error::PermissionError: [Errno 13] Permission denied" in result.output
        assert not isinstance(result.exception, PermissionError)

    def test_bad_gitversion_output_exits_non_zero(
        self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _install_fake_runner(monkeypatch, FakeCommandRunner({"dotnet-gitversion": "not json"}))

        result = cli.invoke(cli_main.app, ["gitversion", "--backend", "memory"])

        assert result.exit_code == 1
        assert "::error::Error parsing GitVersion JSON" in result.output


class TestInstallModulesCommand:
    def test_miss_then_hit(self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        (runner_env["workspace"] / "RequiredModules.psd1").write_text("@{ Pester = '5.5.0' }\n", encoding="utf-8")
        modules = runner_env["home"] / "Modules"

        def pwsh(argv: list[str]) -> None:
            if "-file" in argv:
                (modules / "Pester").mkdir(parents=True, exist_ok=True)
                (modules / "Pester" / "Pester.psd1").write_text("@{}", encoding="utf-8")

        fake = FakeCommandRunner({"pwsh": str(modules)}, side_effects={"pwsh": pwsh})
        _install_fake_runner(monkeypatch, fake)
        args = ["install-modules", "--backend", "file", "--store-path", str(runner_env["store"])]

        first = cli.invoke(cli_main.app, args)
        installs_after_first = sum("-file" in c for c in fake.calls)
        second = cli.invoke(cli_main.app, args)

        assert first.exit_code == 0, first.output
        assert second.exit_code == 0, second.output
        assert installs_after_first == 1
        assert sum("-file" in c for c in fake.calls) == 1
        written = runner_env["output"].read_text(encoding="utf-8")
        assert written == "cache-hit=false\ncache-hit=true\n"

    def test_install_error_outside_hierarchy_is_reported(
        self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (runner_env["workspace"] / "RequiredModules.psd1").write_text("@{ Pester = '5.5.0' }\n", encoding="utf-8")
        modules = runner_env["home"] / "Modules"

        def pwsh(argv: list[str]) -> None:
            if "-file" in argv:
                raise PermissionError(13, "Permission denied")

        _install_fake_runner(
            monkeypatch, FakeCommandRunner({"pwsh": str(modules)}, side_effects={"pwsh": pwsh})
        )

        result = cli.invoke(cli_main.app, ["install-modules", "--backend", "memory"])

        assert result.exit_code == 1
        assert "::error::PermissionError" in result.output
        assert not runner_env["output"].exists()

    def test_missing_manifest(self, runner_env: dict[str, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        _install_fake_runner(monkeypatch, FakeCommandRunner())

        result = cli.invoke(cli_main.app, ["install-modules", "--backend", "memory"])

        assert result.exit_code == 1
        assert "::error::No RequiredModules manifest found" in result.output


class TestCacheKeyCommand:
    def test_prints_exact_and_fallbacks(self) -> None:
        result = cli.invoke(cli_main.app, ["cache-key", "Linux", "psmodules", "ABC123"])

        assert result.exit_code == 0
        assert "Linux-psmodules-ABC123" in result.output
        assert "Linux-psmodules" in result.output

    def test_rejects_delimiter_in_component(self) -> None:
        result = cli.invoke(cli_main.app, ["cache-key", "Linux", "some-tool"])
        assert result.exit_code != 0
