"""
Tests for the setup pipeline — full chain, re-runs, fail-fast.
"""

from pathlib import Path

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.engine.pipeline import STEPS, Step, run_pipeline

from tests.fakes import FakeRunner


class TestFullRun:
    def test_fresh_setup(self, build_ctx: BuildContext, fake_runner: FakeRunner):
        report = run_pipeline(build_ctx)

        assert report.ok
        assert report.exit_code == 0
        assert [r.step for r in report.receipts] == [s.name for s in STEPS]
        assert report.not_run == []

        makefile = build_ctx.source_dir / "Makefile.inc"
        content = makefile.read_text()
        assert "arm64-apple-darwin20.0.0-" not in content
        assert "-no_warn_duplicate_libraries" not in content
        assert "arm64-apple-darwin20.0.0-" in (
            build_ctx.source_dir / "Makefile.inc.bak"
        ).read_text()

        assert fake_runner.lines()[-1] == (
            "mamba run -n omnet bash -c source setenv && make -j4"
        )

    def test_step_order_of_commands(self, build_ctx: BuildContext, fake_runner: FakeRunner):
        run_pipeline(build_ctx)
        lines = fake_runner.lines()

        def first(fragment: str) -> int:
            return next(i for i, line in enumerate(lines) if fragment in line)

        assert first("aria2c") < first("create --name omnet")
        assert first("create --name omnet") < first("pip install --no-input -r")
        assert first("./configure") < first("make -j4")

    def test_rerun_reuses_archive_and_recreates_environment(
        self, build_ctx: BuildContext, fake_runner: FakeRunner,
    ):
        assert run_pipeline(build_ctx).ok
        (build_ctx.source_dir / "stale.o").write_text("old object")

        report = run_pipeline(build_ctx)

        assert report.ok
        assert report.receipt("fetch").status == "skipped"
        assert fake_runner.count("aria2c") == 1
        assert fake_runner.count("create --name omnet") == 2
        assert fake_runner.count("env remove --name omnet") == 1
        assert report.receipt("provision").metadata["replaced"] is True
        assert not (build_ctx.source_dir / "stale.o").exists()

    def test_operation_id(self, build_ctx: BuildContext):
        report = run_pipeline(build_ctx)
        assert report.operation_id.startswith("setup-")
        assert report.to_dict()["operation_id"] == report.operation_id


class TestFailFast:
    def test_missing_tool_stops_before_any_command(self, tmp_path: Path, config):
        runner = FakeRunner(tools=("curl", "bash"))
        ctx = BuildContext(config=config, work_dir=tmp_path, runner=runner)

        report = run_pipeline(ctx)

        assert not report.ok
        assert report.exit_code == 1
        assert report.failed_step.step == "preflight"
        assert report.not_run == [
            "fetch", "provision", "unpack", "requirements",
            "configure", "patch", "build",
        ]
        assert runner.calls == []

    def test_build_failure_exit_code(self, build_ctx: BuildContext, fake_runner: FakeRunner):
        fake_runner.fail_on("make -j", returncode=2)
        report = run_pipeline(build_ctx)
        assert report.failed_step.step == "build"
        assert report.exit_code == 2
        assert report.not_run == []

    def test_provision_failure_leaves_tree_alone(
        self, build_ctx: BuildContext, fake_runner: FakeRunner,
    ):
        fake_runner.fail_on("create --name", returncode=3)
        report = run_pipeline(build_ctx)
        assert report.exit_code == 3
        assert report.not_run[0] == "unpack"
        assert not build_ctx.source_dir.exists()
        assert fake_runner.count("./configure") == 0

    def test_exception_becomes_failed_receipt(self, build_ctx: BuildContext):
        def explode(ctx):
            raise RuntimeError("disk on fire")

        steps = (
            Step("first", "First", explode),
            Step("second", "Second", lambda ctx: None),
        )
        report = run_pipeline(build_ctx, steps)

        failed = report.failed_step
        assert failed.step == "first"
        assert "disk on fire" in failed.error
        assert report.exit_code == 1
        assert report.not_run == ["second"]

    def test_callbacks(self, build_ctx: BuildContext):
        started, done = [], []
        run_pipeline(
            build_ctx,
            on_start=lambda step: started.append(step.name),
            on_done=lambda step, receipt: done.append((step.name, receipt.status)),
        )
        assert started == [s.name for s in STEPS]
        assert done[1] == ("fetch", "ok")
