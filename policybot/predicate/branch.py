"""Predicates on the target and source branches of a pull request."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from policybot.patterns import Regexp
from policybot.predicate.base import Outcome, Predicate
from policybot.pull import PullContext
from policybot.trigger import Trigger


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


@dataclass
class TargetsBranch(Predicate):
    """Satisfied when the target (base) branch matches the pattern."""

    pattern: Regexp = field(default_factory=Regexp)

    def evaluate(self, prctx: PullContext) -> Outcome:
        target, _ = prctx.branches()
        if self.pattern.matches(target):
            return Outcome(True)
        return Outcome(
            False,
            f"Target branch {_quote(target)} does not match required pattern "
            f"{_quote(str(self.pattern))}",
        )

    def trigger(self) -> Trigger:
        return Trigger.PULL_REQUEST


@dataclass
class FromBranch(Predicate):
    """Satisfied when the source (head) branch matches the pattern."""

    pattern: Regexp = field(default_factory=Regexp)

    def evaluate(self, prctx: PullContext) -> Outcome:
        _, source = prctx.branches()
        if self.pattern.matches(source):
            return Outcome(True)
        return Outcome(
            False,
            f"Source branch {_quote(source)} does not match specified from_branch pattern "
            f"{_quote(str(self.pattern))}",
        )

    def trigger(self) -> Trigger:
        return Trigger.STATIC