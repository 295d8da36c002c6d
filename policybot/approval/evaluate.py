"""Evaluators that combine approval rules with "and" and "or"."""

from __future__ import annotations

import logging
import operator
from collections import Counter
from dataclasses import dataclass, field
from functools import reduce
from typing import TYPE_CHECKING, Iterable

from policybot.result import EvaluationStatus, Evaluator, Result
from policybot.trigger import Trigger

if TYPE_CHECKING:
    from policybot.approval.rule import Rule
    from policybot.pull import PullContext

_log = logging.getLogger(__name__)


def _combined_trigger(evaluators: Iterable[Evaluator]) -> Trigger:
    return reduce(operator.or_, (e.trigger() for e in evaluators), Trigger.STATIC)


def _tally(children: list[Result]) -> tuple[Exception | None, Counter]:
    """Return the last child error and a count of statuses of error-free children."""
    error: Exception | None = None
    counts: Counter = Counter()
    for child in children:
        if child.error is not None:
            error = child.error
            continue
        counts[child.status] += 1
    return error, counts


@dataclass
class ApprovalEvaluator(Evaluator):
    """The root of an approval policy; approves when no policy is defined."""

    root: Evaluator | None = None

    def trigger(self) -> Trigger:
        if self.root is not None:
            return self.root.trigger()
        return Trigger.STATIC

    def evaluate(self, prctx: PullContext) -> Result:
        if self.root is not None:
            result = self.root.evaluate(prctx)
        else:
            _log.debug("No approval policy defined; skipping")
            result = Result(
                status=EvaluationStatus.APPROVED,
                status_description="No approval policy defined",
            )
        result.name = "approval"
        return result


@dataclass
class RuleRequirement(Evaluator):
    """A requirement satisfied by a single approval rule."""

    rule: Rule

    def trigger(self) -> Trigger:
        return self.rule.trigger()

    def evaluate(self, prctx: PullContext) -> Result:
        result = self.rule.evaluate(prctx)
        if result.error is None:
            _log.debug(
                'rule %s evaluation resulted in %s:"%s"',
                self.rule.name,
                result.status,
                result.status_description,
            )
        return result


@dataclass
class OrRequirement(Evaluator):
    """Approved when any child is approved; errors are ignored if another child decides."""

    requirements: list[Evaluator] = field(default_factory=list)

    def trigger(self) -> Trigger:
        return _combined_trigger(self.requirements)

    def evaluate(self, prctx: PullContext) -> Result:
        children = [req.evaluate(prctx) for req in self.requirements]
        error, counts = _tally(children)

        status = EvaluationStatus.SKIPPED
        description = "All of the rules are skipped"
        if counts[EvaluationStatus.APPROVED] > 0:
            status = EvaluationStatus.APPROVED
            description = "One or more rules approved"
            error = None
        elif counts[EvaluationStatus.PENDING] > 0:
            status = EvaluationStatus.PENDING
            description = "None of the rules are satisfied"
            error = None

        return Result(
            name="or",
            status=status,
            status_description=description,
            error=error,
            children=children,
        )


@dataclass
class AndRequirement(Evaluator):
    """Approved when no child is pending and at least one is approved."""

    requirements: list[Evaluator] = field(default_factory=list)

    def trigger(self) -> Trigger:
        return _combined_trigger(self.requirements)

    def evaluate(self, prctx: PullContext) -> Result:
        children = [req.evaluate(prctx) for req in self.requirements]
        error, counts = _tally(children)
        approved = counts[EvaluationStatus.APPROVED]
        pending = counts[EvaluationStatus.PENDING]

        status = EvaluationStatus.SKIPPED
        description = "All of the rules are skipped"
        if approved > 0 and pending == 0:
            status = EvaluationStatus.APPROVED
            description = "All rules are approved"
        elif pending > 0:
            status = EvaluationStatus.PENDING
            description = f"{approved}/{approved + pending} rules approved"

        return Result(
            name="and",
            status=status,
            status_description=description,
            error=error,
            children=children,
        )