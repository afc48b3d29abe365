"""
Receipt model — the result contract of every pipeline step.

Steps and adapters never raise into the pipeline: failures are
captured in a Receipt, and the pipeline decides whether to go on.
The ``exit_code`` of the first failed receipt becomes the process
exit status.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Outcome of a single step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    exit_code: int = 0

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the step succeeded (or was skipped as already done)."""
        return self.status != "failed"

    @property
    def failed(self) -> bool:
        """Whether the step failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        error: str,
        exit_code: int = 1,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt.

        ``exit_code`` is forced to be non-zero: a failed step must
        never let the process exit cleanly.
        """
        return cls(
            step=step,
            status="failed",
            error=error,
            exit_code=exit_code or 1,
            **kwargs,
        )

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt (work already done)."""
        return cls(step=step, status="skipped", output=reason, **kwargs)
