"""Predicates on the signatures of a pull request's commits."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from policybot.actors import Actors
from policybot.predicate.base import Outcome, Predicate
from policybot.pull import Commit, PullContext, SignatureType
from policybot.trigger import Trigger


def _signature_problem(commit: Commit) -> str | None:
    """Return why the commit lacks a valid signature, or None if it has one."""
    if commit.signature is None:
        return f"Commit {commit.sha[:10]} has no signature"
    if not commit.signature.is_valid:
        return (
            f"Commit {commit.sha[:10]} has an invalid signature due to {commit.signature.state}"
        )
    return None


@dataclass
class HasValidSignatures(Predicate):
    """Checks whether every commit carries a valid signature.

    With ``value`` True the predicate holds when all signatures are valid;
    with ``value`` False it holds when some commit lacks a valid signature.
    """

    value: bool = True

    def evaluate(self, prctx: PullContext) -> Outcome:
        for commit in prctx.commits():
            problem = _signature_problem(commit)
            if problem is not None:
                return Outcome(False, problem) if self.value else Outcome(True)
        if self.value:
            return Outcome(True)
        return Outcome(False, "All commits are signed and have valid signatures")

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


class HasValidSignaturesBy(Actors, Predicate):
    """Satisfied when every commit is validly signed by a user meeting the actor conditions."""

    def evaluate(self, prctx: PullContext) -> Outcome:
        signers: dict[str, None] = {}
        for commit in prctx.commits():
            problem = _signature_problem(commit)
            if problem is not None:
                return Outcome(False, problem)
            signers[commit.signature.signer] = None

        for signer in signers:
            if not self.is_actor(prctx, signer):
                return Outcome(
                    False,
                    f"Contributor {json.dumps(signer, ensure_ascii=False)} "
                    "does not meet the required membership conditions for signing",
                )
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


@dataclass
class HasValidSignaturesByKeys(Predicate):
    """Satisfied when every commit has a valid GPG signature by one of the listed keys."""

    key_ids: list[str] = field(default_factory=list)

    def evaluate(self, prctx: PullContext) -> Outcome:
        keys: dict[str, None] = {}
        for commit in prctx.commits():
            problem = _signature_problem(commit)
            if problem is not None:
                return Outcome(False, problem)
            if commit.signature.type is not SignatureType.GPG:
                return Outcome(False, f"Commit {commit.sha[:10]} signature is not a GPG signature")
            keys[commit.signature.key_id] = None

        for key in keys:
            if key not in self.key_ids:
                return Outcome(
                    False,
                    f"Key {json.dumps(key, ensure_ascii=False)} "
                    "does not meet the required key conditions for signing",
                )
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.COMMIT