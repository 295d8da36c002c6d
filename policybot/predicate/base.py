"""The predicate interface shared by all conditions on a pull request."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, NamedTuple

if TYPE_CHECKING:
    from policybot.patterns import Regexp
    from policybot.pull import PullContext
    from policybot.trigger import Trigger


class Outcome(NamedTuple):
    """Whether a predicate is satisfied, with optional details."""

    satisfied: bool
    description: str = ""


class Predicate(ABC):
    """A condition on a pull request."""

    @abstractmethod
    def trigger(self) -> Trigger:
        """Return the events that can change this predicate's value."""

    @abstractmethod
    def evaluate(self, prctx: PullContext) -> Outcome:
        """Decide whether the pull request satisfies the predicate."""


def any_matches(patterns: Iterable[Regexp], s: str) -> bool:
    """Return True if any of the patterns matches ``s``."""
    return any(pattern.matches(s) for pattern in patterns)