"""
Tests for CLI commands — run, plan, check, patch, config, global options.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from omnetsetup.main import cli

from tests.fakes import MAKEFILE_INC, FakeRunner, make_archive


@pytest.fixture
def fake() -> FakeRunner:
    return FakeRunner(archive_bytes=make_archive())


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "OMNeT++ setup" in result.output
        for command in ("run", "plan", "check", "patch", "config"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_config_file(self, tmp_path: Path):
        bad = tmp_path / "omnet-setup.yml"
        bad.write_text("build:\n  jobs: zero\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(bad), "plan"])
        assert result.exit_code == 1
        assert "Invalid setup configuration" in result.output


class TestRunCommand:
    """Tests for the full setup run."""

    def test_bare_invocation_runs_setup(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, [], obj={"runner": fake})
        assert result.exit_code == 0, result.output
        assert "Checking prerequisites" in result.output
        assert "Compiling OMNeT++" in result.output
        assert "Installation Complete" in result.output
        assert "mamba activate omnet" in result.output
        assert "source setenv" in result.output
        assert (tmp_path / "omnetpp-6.2.0" / "Makefile.inc.bak").is_file()

    def test_jobs_and_workdir(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        work = tmp_path / "build-area"
        runner = CliRunner()
        result = runner.invoke(
            cli, ["run", "--jobs", "2", "--workdir", str(work)], obj={"runner": fake},
        )
        assert result.exit_code == 0, result.output
        assert "Using 2 cores" in result.output
        assert (work / "omnetpp-6.2.0-macos-aarch64.tgz").is_file()
        assert fake.lines()[-1].endswith("make -j2")

    def test_missing_manager_exits_1(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["run"], obj={"runner": FakeRunner(tools=("curl",))})
        assert result.exit_code == 1
        assert "Miniforge" in result.output
        assert "Setup stopped at 'preflight'" in result.output
        assert "Installation Complete" not in result.output

    def test_build_failure_exit_code(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        fake.fail_on("make -j", returncode=2)
        runner = CliRunner()
        result = runner.invoke(cli, ["run"], obj={"runner": fake})
        assert result.exit_code == 2
        assert "Setup stopped at 'build'" in result.output

    def test_config_found_in_workdir(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        work = tmp_path / "work"
        work.mkdir()
        (work / "omnet-setup.yml").write_text("environment:\n  name: sim\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--workdir", str(work)], obj={"runner": fake})
        assert result.exit_code == 0, result.output
        assert fake.count("create --name sim") == 1
        assert "mamba activate sim" in result.output

    def test_failed_step_reported(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        fake.fail_on("./configure", returncode=5)
        runner = CliRunner()
        result = runner.invoke(cli, ["run"], obj={"runner": fake})
        assert result.exit_code == 5
        assert "Setup stopped at 'configure'" in result.output
        assert "Not run: patch, build" in result.output
        assert "Installation Complete" not in result.output

    def test_run_json(self, tmp_path: Path, fake: FakeRunner):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["run", "--workdir", str(tmp_path), "--json"], obj={"runner": fake},
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert [r["step"] for r in data["receipts"]][-1] == "build"


class TestPlanCommand:
    """Tests for the plan command."""

    def test_plan_runs_nothing(self, tmp_path: Path, fake: FakeRunner):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["plan", "--workdir", str(tmp_path), "-j", "6"], obj={"runner": fake},
        )
        assert result.exit_code == 0
        assert "OMNeT++ 6.2.0" in result.output
        assert "$ aria2c -x 16" in result.output
        assert "mamba create --name omnet" in result.output
        assert "make -j6" in result.output
        assert fake.calls == []
        assert list(tmp_path.iterdir()) == []

    def test_plan_reads_config_from_workdir(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        work = tmp_path / "work"
        work.mkdir()
        (work / "omnet-setup.yml").write_text('release:\n  version: "6.1.0"\n')
        runner = CliRunner()
        result = runner.invoke(cli, ["plan", "--workdir", str(work)], obj={"runner": fake})
        assert result.exit_code == 0
        assert "OMNeT++ 6.1.0" in result.output

    def test_plan_json(self, tmp_path: Path, fake: FakeRunner):
        (tmp_path / "omnetpp-6.2.0-macos-aarch64.tgz").write_bytes(b"x")
        runner = CliRunner()
        result = runner.invoke(
            cli, ["plan", "--workdir", str(tmp_path), "--json"], obj={"runner": fake},
        )
        assert result.exit_code == 0
        steps = json.loads(result.output)
        assert [s["step"] for s in steps] == [
            "preflight", "fetch", "provision", "unpack",
            "requirements", "configure", "patch", "build",
        ]
        assert steps[1]["commands"] == []
        assert "already present" in steps[1]["detail"]


class TestCheckCommand:
    def test_all_present(self, tmp_path: Path, monkeypatch, fake: FakeRunner):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["check"], obj={"runner": fake})
        assert result.exit_code == 0
        assert "mamba" in result.output

    def test_missing(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["check"], obj={"runner": FakeRunner(tools=())})
        assert result.exit_code == 1
        assert "mamba" in result.output


class TestPatchCommand:
    def test_patch_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "Makefile.inc"
        target.write_text(MAKEFILE_INC)
        runner = CliRunner()
        result = runner.invoke(cli, ["patch", str(target)])
        assert result.exit_code == 0
        assert "(3 replaced)" in result.output
        assert "(2 replaced)" in result.output
        assert "Original saved as Makefile.inc.bak" in result.output
        assert "arm64-apple-darwin20.0.0-" not in target.read_text()

    def test_strict_unmatched(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "Makefile.inc"
        target.write_text("CC = clang\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["patch", str(target), "--strict"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_missing_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["patch", str(tmp_path / "Makefile.inc")])
        assert result.exit_code == 1

    def test_latin1_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "Makefile.inc"
        target.write_bytes(b"# caf\xe9\nLDFLAGS = -no_warn_duplicate_libraries\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["patch", str(target)])
        assert result.exit_code == 0, result.output
        assert result.exception is None
        assert "(1 replaced)" in result.output
        assert target.read_bytes() == b"# caf\xe9\nLDFLAGS = \n"

    def test_json(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "Makefile.inc"
        target.write_text(MAKEFILE_INC)
        runner = CliRunner()
        result = runner.invoke(cli, ["patch", str(target), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["unmatched"] == []


class TestConfigCommands:
    """Tests for config check / config show."""

    def test_check_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "check"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "using defaults" in result.output

    def test_check_file(self, tmp_path: Path):
        path = tmp_path / "omnet-setup.yml"
        path.write_text(textwrap.dedent("""\
            release:
              version: "6.1.0"
            environment:
              name: sim
        """))
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(path), "config", "check", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["release"] == "6.1.0"
        assert data["environment"] == "sim"

    def test_check_invalid(self, tmp_path: Path):
        path = tmp_path / "omnet-setup.yml"
        path.write_text("patch:\n  rules:\n    - pattern: ''\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(path), "config", "check"])
        assert result.exit_code == 1
        assert "Configuration errors" in result.output

    def test_show_json(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["release"]["version"] == "6.2.0"
        assert data["environment"]["manager"] == "mamba"

    def test_show_yaml(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "release:" in result.output
        assert "version: 6.2.0" in result.output
