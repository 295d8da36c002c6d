"""Predicate on the labels of a pull request."""

from __future__ import annotations

from dataclasses import dataclass, field

from policybot.predicate.base import Outcome, Predicate
from policybot.pull import PullContext
from policybot.trigger import Trigger


@dataclass
class HasLabels(Predicate):
    """Satisfied when the pull request carries every listed label."""

    labels: list[str] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        if self.labels:
            present = prctx.labels()
            for required in self.labels:
                if required.lower() not in present:
                    return Outcome(False, "Missing label: " + required)
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.LABEL