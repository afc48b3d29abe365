"""
Patcher — literal, whole-file substitutions on a generated file.

The file's format is not ours (configure generates it), so nothing
is parsed: each PatchRule replaces every occurrence of its pattern.
Every rule reports how many occurrences it replaced, so a pattern
that no longer appears upstream shows up as *unmatched* instead of
passing silently.

Before the file is rewritten, its current content is copied to a
backup sibling (``Makefile.inc.bak`` by default).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AnyStr

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt
from omnetsetup.core.models.setup import PatchRule

logger = logging.getLogger(__name__)

STEP = "patch"


class PatchError(Exception):
    """Raised when the patch target cannot be read or written."""


@dataclass
class RuleOutcome:
    """What one rule did to the file."""

    rule: PatchRule
    replacements: int = 0

    @property
    def matched(self) -> bool:
        return self.replacements > 0

    def to_dict(self) -> dict:
        return {
            "pattern": self.rule.pattern,
            "replacement": self.rule.replacement,
            "description": self.rule.description,
            "replacements": self.replacements,
        }


@dataclass
class PatchReport:
    """Result of applying a rule list to one file."""

    path: Path
    backup: Path
    outcomes: list[RuleOutcome] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(o.matched for o in self.outcomes)

    @property
    def unmatched(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if not o.matched]

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "backup": str(self.backup),
            "changed": self.changed,
            "rules": [o.to_dict() for o in self.outcomes],
            "unmatched": [o.rule.pattern for o in self.unmatched],
        }


def apply_rules(data: AnyStr, rules: list[PatchRule]) -> tuple[AnyStr, list[RuleOutcome]]:
    """Apply ``rules`` in order to ``data``. Pure; no I/O.

    ``data`` may be text or raw bytes; for bytes the rules are
    UTF-8 encoded and everything else in the file is left as is.
    """
    binary = isinstance(data, bytes)
    outcomes = []
    for rule in rules:
        old, new = rule.pattern, rule.replacement
        if binary:
            old, new = old.encode(), new.encode()
        count = data.count(old)
        if count:
            data = data.replace(old, new)
        outcomes.append(RuleOutcome(rule=rule, replacements=count))
    return data, outcomes


def patch_file(
    path: Path,
    rules: list[PatchRule],
    *,
    backup_suffix: str = ".bak",
) -> PatchReport:
    """Patch ``path`` in place, writing its prior content to a backup sibling.

    Raises:
        PatchError: If the file is missing or cannot be written.
    """
    if not path.is_file():
        raise PatchError(f"Patch target not found: {path}")

    backup = path.with_name(path.name + backup_suffix)
    # Bytes throughout: line endings and encoding stay exactly as configure wrote them.
    try:
        original = path.read_bytes()
        backup.write_bytes(original)
        patched, outcomes = apply_rules(original, rules)
        if patched != original:
            path.write_bytes(patched)
    except OSError as e:
        raise PatchError(f"Cannot patch {path}: {e}") from e

    report = PatchReport(path=path, backup=backup, outcomes=outcomes)
    for outcome in outcomes:
        if outcome.matched:
            logger.info(
                "Replaced %d× %r in %s", outcome.replacements, outcome.rule.pattern, path.name,
            )
        else:
            logger.warning("Pattern %r not found in %s", outcome.rule.pattern, path.name)
    return report


def run_patch(ctx: BuildContext) -> Receipt:
    spec = ctx.config.patch
    try:
        report = patch_file(ctx.patch_target, spec.rules, backup_suffix=spec.backup_suffix)
    except PatchError as e:
        return Receipt.failure(STEP, error=str(e))

    unmatched = [o.rule.pattern for o in report.unmatched]
    if unmatched and spec.strict:
        return Receipt.failure(
            STEP,
            error=f"Patterns not found in {report.path.name}: {', '.join(unmatched)}",
            metadata=report.to_dict(),
        )

    applied = len(report.outcomes) - len(unmatched)
    return Receipt.success(
        STEP,
        output=(
            f"{report.path.name} patched ({applied}/{len(report.outcomes)} rules applied). "
            f"Original saved as {report.backup.name}."
        ),
        metadata=report.to_dict(),
    )
