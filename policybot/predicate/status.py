"""Predicate on the commit statuses of a pull request."""

from __future__ import annotations

from dataclasses import dataclass, field

from policybot.predicate.base import Outcome, Predicate
from policybot.pull import PullContext
from policybot.trigger import Trigger


@dataclass
class HasSuccessfulStatus(Predicate):
    """Satisfied when every listed status context reports success."""

    statuses: list[str] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        latest = prctx.latest_statuses()

        missing = [name for name in self.statuses if name not in latest]
        failing = [name for name in self.statuses if latest.get(name) != "success"]

        if missing:
            return Outcome(False, "One or more statuses is missing: " + ", ".join(missing))
        if failing:
            return Outcome(False, "One or more statuses has not passed: " + ",".join(failing))
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.STATUS