"""The top-level policy: approval rules combined with a disapproval policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from policybot.approval.parse import PolicyError, parse_approval_policy
from policybot.approval.rule import Rule
from policybot.disapproval import Policy as DisapprovalPolicy
from policybot.pull import PullContext
from policybot.result import EvaluationStatus, Evaluator, Result
from policybot.trigger import Trigger

_TOP_KEYS = frozenset({"policy", "approval_rules"})
_POLICY_KEYS = frozenset({"approval", "disapproval"})


@dataclass
class RemoteConfig:
    """Points at a policy file kept in another repository.

    ``remote`` has the form ``org/repo``.  An empty ``path`` means the
    default policy file location and an empty ``ref`` means the default
    branch of the remote repository.
    """

    remote: str = ""
    path: str = ""
    ref: str = ""


@dataclass
class Config:
    """A parsed policy file."""

    approval: list[Any] = field(default_factory=list)
    disapproval: DisapprovalPolicy | None = None
    approval_rules: list[Rule] = field(default_factory=list)


@dataclass
class PolicyEvaluator(Evaluator):
    """Combines approval and disapproval; a disapproval always wins."""

    approval: Evaluator
    disapproval: Evaluator

    def trigger(self) -> Trigger:
        return self.approval.trigger() | self.disapproval.trigger()

    def evaluate(self, prctx: PullContext) -> Result:
        disapproval = self.disapproval.evaluate(prctx)
        approval = self.approval.evaluate(prctx)

        result = Result(name="policy", children=[approval, disapproval])
        for child in result.children:
            if child.error is not None:
                result.error = child.error

        if result.error is not None:
            return result
        if disapproval.status == EvaluationStatus.DISAPPROVED:
            result.status = EvaluationStatus.DISAPPROVED
            result.status_description = disapproval.status_description
        else:
            result.status = approval.status
            result.status_description = approval.status_description
        return result


def parse_policy(config: Config) -> PolicyEvaluator:
    """Build the evaluator for a policy configuration."""
    rules_by_name = {rule.name: rule for rule in config.approval_rules}
    try:
        approval = parse_approval_policy(config.approval, rules_by_name)
    except PolicyError as exc:
        raise PolicyError(f"failed to parse approval policy: {exc}") from exc

    disapproval = config.disapproval if config.disapproval is not None else DisapprovalPolicy()
    return PolicyEvaluator(approval=approval, disapproval=disapproval)


def _mapping(value: Any, name: str, allowed: frozenset[str]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"unknown fields in '{name}': {', '.join(sorted(map(str, unknown)))}")
    return value


def load_config(text: str | bytes) -> Config:
    """Read a policy file from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid policy YAML: {exc}") from exc

    top = _mapping(data, "policy file", _TOP_KEYS)
    policy = _mapping(top.get("policy"), "policy", _POLICY_KEYS)

    approval = policy.get("approval")
    if approval is None:
        approval = []
    if not isinstance(approval, list):
        raise ValueError("'approval' must be a list")

    disapproval_data = policy.get("disapproval")
    disapproval = None if disapproval_data is None else DisapprovalPolicy.from_config(disapproval_data)

    rules_data = top.get("approval_rules")
    if rules_data is None:
        rules_data = []
    if not isinstance(rules_data, list):
        raise ValueError("'approval_rules' must be a list")

    return Config(
        approval=list(approval),
        disapproval=disapproval,
        approval_rules=[Rule.from_config(r) for r in rules_data],
    )