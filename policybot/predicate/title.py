"""Predicate on the title of a pull request."""

from __future__ import annotations

from dataclasses import dataclass, field

from policybot.patterns import Regexp
from policybot.predicate.base import Outcome, Predicate, any_matches
from policybot.pull import PullContext
from policybot.trigger import Trigger


@dataclass
class Title(Predicate):
    """Satisfied when the title matches a ``matches`` pattern or misses every ``not_matches`` pattern."""

    matches: list[Regexp] = field(default_factory=list)
    not_matches: list[Regexp] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        title = prctx.title()

        if self.matches and any_matches(self.matches, title):
            return Outcome(True, "PR Title matches a Match pattern")

        if self.not_matches and not any_matches(self.not_matches, title):
            return Outcome(True, "PR Title doesn't match a NotMatch pattern")

        return Outcome(False)

    def trigger(self) -> Trigger:
        return Trigger.PULL_REQUEST