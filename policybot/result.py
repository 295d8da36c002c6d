"""Evaluation results and the evaluator interface."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policybot.pull import Permission, PullContext
    from policybot.trigger import Trigger


class EvaluationStatus(enum.IntEnum):
    """Outcome of an evaluation; the numeric order is meaningful."""

    SKIPPED = 0
    PENDING = 1
    APPROVED = 2
    DISAPPROVED = 3

    def __str__(self) -> str:
        return self.name.lower()


class RequestMode(str, enum.Enum):
    """How reviewers are chosen when review requests are enabled."""

    ALL_USERS = "all-users"
    RANDOM_USERS = "random-users"
    TEAMS = "teams"

    def __str__(self) -> str:
        return self.value


@dataclass
class ReviewRequestRule:
    """Who may be asked to review a pending rule, and how many."""

    teams: list[str] = field(default_factory=list)
    users: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    permissions: list[Permission] = field(default_factory=list)
    required_count: int = 0
    mode: RequestMode | None = None


@dataclass
class Result:
    """The result of evaluating a policy node, with its child results."""

    name: str = ""
    description: str = ""
    status_description: str = ""
    status: EvaluationStatus = EvaluationStatus.SKIPPED
    error: Exception | None = None
    review_request_rule: ReviewRequestRule | None = None
    children: list[Result] = field(default_factory=list)


class Evaluator(ABC):
    """Something that evaluates a pull request and reports a Result."""

    @abstractmethod
    def trigger(self) -> Trigger:
        """Return the events that can change this evaluator's result."""

    @abstractmethod
    def evaluate(self, prctx: PullContext) -> Result:
        """Evaluate the pull request described by ``prctx``."""