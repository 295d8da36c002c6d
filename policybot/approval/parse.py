"""Parsing of the approval section of a policy into evaluators."""

from __future__ import annotations

from typing import Any, Mapping

from policybot.approval.evaluate import (
    AndRequirement,
    ApprovalEvaluator,
    OrRequirement,
    RuleRequirement,
)
from policybot.approval.rule import Rule
from policybot.result import Evaluator

_MAX_DEPTH = 10


class PolicyError(ValueError):
    """Raised when an approval policy is malformed."""


def parse_approval_policy(policy: list[Any] | None, rules: Mapping[str, Rule]) -> ApprovalEvaluator:
    """Build an evaluator from a list of rule names and "and"/"or" conjunctions.

    The top-level list is combined with "and".
    """
    if not policy:
        return ApprovalEvaluator()
    if not isinstance(policy, list):
        raise PolicyError(f"approval policy must be a list, but got {type(policy).__name__}")
    return ApprovalEvaluator(_parse({"and": list(policy)}, rules, 0))


def _parse(policy: Any, rules: Mapping[str, Rule], depth: int) -> Evaluator:
    if depth > _MAX_DEPTH:
        raise PolicyError("reached maximum recursive depth while processing policy")

    if isinstance(policy, str):
        rule = rules.get(policy)
        if rule is None:
            allowed = " ".join(sorted(rules))
            raise PolicyError(
                f"policy references undefined rule '{policy}', allowed values: [{allowed}]"
            )
        return RuleRequirement(rule)

    if isinstance(policy, Mapping):
        ops = [str(k) for k in policy]
        if len(ops) != 1:
            raise PolicyError(
                f"multiple keys found when one was expected: [{' '.join(sorted(ops))}]"
            )
        (key,) = policy
        op = str(key)
        values = policy[key]
        if not isinstance(values, list):
            raise PolicyError(
                f"expected list of subconditions, but got {type(values).__name__}"
            )
        if not values:
            raise PolicyError("empty list of subconditions is not allowed")

        subrequirements = []
        for subpolicy in values:
            try:
                subrequirements.append(_parse(subpolicy, rules, depth + 1))
            except PolicyError as exc:
                raise PolicyError(f"failed to parse subpolicies for '{op}': {exc}") from exc

        if op == "or":
            return OrRequirement(subrequirements)
        if op == "and":
            return AndRequirement(subrequirements)
        raise PolicyError(f"invalid conjunction '{op}', allowed values: [or, and]")

    raise PolicyError(
        f"malformed policy, expected string or map, but encountered {type(policy).__name__}"
    )