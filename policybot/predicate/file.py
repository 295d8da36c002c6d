"""Predicates on the files and line counts changed by a pull request."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field

from policybot.patterns import Regexp
from policybot.predicate.base import Outcome, Predicate, any_matches
from policybot.pull import PullContext
from policybot.trigger import Trigger

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


@dataclass
class ChangedFiles(Predicate):
    """Satisfied when a changed file matches ``paths`` and no ``ignore_paths`` pattern."""

    paths: list[Regexp] = field(default_factory=list)
    ignore_paths: list[Regexp] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        for changed in prctx.changed_files():
            if any_matches(self.ignore_paths, changed.filename):
                continue
            if any_matches(self.paths, changed.filename):
                return Outcome(True, changed.filename + " was changed")
        return Outcome(False, "No changed files match the required patterns")

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


@dataclass
class OnlyChangedFiles(Predicate):
    """Satisfied when at least one file changed and every changed file matches ``paths``."""

    paths: list[Regexp] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        files = prctx.changed_files()
        if any(not any_matches(self.paths, f.filename) for f in files):
            return Outcome(False, "A changed file does not match the required pattern")
        if not files:
            return Outcome(False, "No files changed")
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


class CompareOp(enum.IntEnum):
    """Operator of a comparison expression."""

    NONE = 0
    LESS_THAN = 1
    GREATER_THAN = 2


_OP_SYMBOLS = {CompareOp.LESS_THAN: "<", CompareOp.GREATER_THAN: ">"}
_SYMBOL_OPS = {symbol: op for op, symbol in _OP_SYMBOLS.items()}


@dataclass(frozen=True)
class ComparisonExpr:
    """A comparison such as ``> 100`` applied to a line count."""

    op: CompareOp = CompareOp.NONE
    value: int = 0

    def is_empty(self) -> bool:
        """Return True if no comparison is defined."""
        return self.op is CompareOp.NONE and self.value == 0

    def evaluate(self, n: int) -> bool:
        """Return True if ``n`` satisfies the comparison."""
        if self.op is CompareOp.LESS_THAN:
            return n < self.value
        if self.op is CompareOp.GREATER_THAN:
            return n > self.value
        return False

    @classmethod
    def parse(cls, text: str | bytes) -> ComparisonExpr:
        """Parse text such as ``"< 35"``; blank text gives the empty expression."""
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        text = text.strip()
        if not text:
            return cls()

        op = _SYMBOL_OPS.get(text[0])
        if op is None:
            raise ValueError(f"invalid comparison operator: {text[0]}")

        digits = text[1:].lstrip(" \t")
        if not _DECIMAL.fullmatch(digits):
            raise ValueError(f"invalid comparison value: {digits!r}")
        value = int(digits)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"invalid comparison value: {digits!r} is out of range")
        return cls(op, value)

    def __str__(self) -> str:
        if self.op is CompareOp.NONE:
            return ""
        return f"{_OP_SYMBOLS[self.op]} {self.value}"


@dataclass
class ModifiedLines(Predicate):
    """Satisfied when added, deleted or total changed lines meet a comparison."""

    additions: ComparisonExpr = field(default_factory=ComparisonExpr)
    deletions: ComparisonExpr = field(default_factory=ComparisonExpr)
    total: ComparisonExpr = field(default_factory=ComparisonExpr)

    def evaluate(self, prctx: PullContext) -> Outcome:
        files = prctx.changed_files()
        additions = sum(f.additions for f in files)
        deletions = sum(f.deletions for f in files)

        # Identical expressions share one entry; the later count wins.
        checks = {
            self.additions: additions,
            self.deletions: deletions,
            self.total: additions + deletions,
        }
        if any(not expr.is_empty() and expr.evaluate(n) for expr, n in checks.items()):
            return Outcome(True)
        return Outcome(
            False,
            f"modification of (+{additions}, -{deletions}) does not match any conditions",
        )

    def trigger(self) -> Trigger:
        return Trigger.COMMIT