"""
Pipeline — the fixed, fail-fast chain of setup steps.

Flow:
    preflight → fetch → provision → unpack → requirements
              → configure → patch → build

Each step takes the BuildContext and returns a Receipt. The first
failed receipt stops the chain; nothing already done is rolled
back. Its exit code becomes the run's exit code.

``requirements`` belongs to provisioning but reads a file from the
unpacked tree, hence its place after ``unpack``.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt
from omnetsetup.core.services.build import run_build
from omnetsetup.core.services.configure import run_configure
from omnetsetup.core.services.fetch import run_fetch
from omnetsetup.core.services.patcher import run_patch
from omnetsetup.core.services.preflight import run_preflight
from omnetsetup.core.services.provision import run_provision, run_requirements
from omnetsetup.core.services.unpack import run_unpack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """One link of the chain."""

    name: str
    label: str
    run: Callable[[BuildContext], Receipt]


STEPS: tuple[Step, ...] = (
    Step("preflight", "Checking prerequisites", run_preflight),
    Step("fetch", "Downloading OMNeT++ source code", run_fetch),
    Step("provision", "Setting up the mamba environment", run_provision),
    Step("unpack", "Unpacking source code", run_unpack),
    Step("requirements", "Installing Python requirements", run_requirements),
    Step("configure", "Configuring the build", run_configure),
    Step("patch", "Applying patches to the generated makefile", run_patch),
    Step("build", "Compiling OMNeT++", run_build),
)


@dataclass
class PipelineReport:
    """Result of one pipeline run."""

    operation_id: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    not_run: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.receipts)

    @property
    def failed_step(self) -> Receipt | None:
        return next((r for r in self.receipts if r.failed), None)

    @property
    def exit_code(self) -> int:
        failed = self.failed_step
        return failed.exit_code if failed else 0

    def receipt(self, step: str) -> Receipt | None:
        return next((r for r in self.receipts if r.step == step), None)

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "ok": self.ok,
            "exit_code": self.exit_code,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
            "not_run": list(self.not_run),
        }


def run_step(step: Step, ctx: BuildContext) -> Receipt:
    """Run one step; an escaping exception becomes a failed receipt."""
    start = time.monotonic()
    try:
        receipt = step.run(ctx)
    except Exception as e:
        logger.exception("Step %s raised", step.name)
        receipt = Receipt.failure(step.name, error=f"Unexpected error: {e}")
    receipt.duration_ms = int((time.monotonic() - start) * 1000)
    receipt.ended_at = datetime.now(UTC).isoformat()
    return receipt


def run_pipeline(
    ctx: BuildContext,
    steps: tuple[Step, ...] = STEPS,
    *,
    on_start: Callable[[Step], None] | None = None,
    on_done: Callable[[Step, Receipt], None] | None = None,
) -> PipelineReport:
    """Run ``steps`` in order, stopping at the first failure.

    Args:
        ctx: Run context shared by all steps.
        steps: The chain; the default is the full setup.
        on_start: Called before each step (progress display).
        on_done: Called with each step's receipt.
    """
    report = PipelineReport(operation_id=generate_operation_id())

    for index, step in enumerate(steps):
        if on_start:
            on_start(step)

        receipt = run_step(step, ctx)
        report.receipts.append(receipt)

        marker = "✓" if receipt.status == "ok" else "⊘" if receipt.status == "skipped" else "✗"
        logger.info("%s %s → %s (%dms)", marker, step.name, receipt.status, receipt.duration_ms)

        if on_done:
            on_done(step, receipt)

        if receipt.failed:
            report.not_run = [s.name for s in steps[index + 1:]]
            logger.error("Step %s failed: %s", step.name, receipt.error)
            break

    return report


def generate_operation_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"setup-{now}-{short}"
