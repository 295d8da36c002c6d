"""The disapproval policy: who may block a pull request and how it is lifted."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from policybot.actors import Actors
from policybot.methods import Candidate, Methods, sort_by_creation_time
from policybot.predicate.predicates import Predicates
from policybot.pull import PullContext, ReviewState
from policybot.result import EvaluationStatus, Evaluator, Result
from policybot.trigger import Trigger

_log = logging.getLogger(__name__)


def _wrapped(message: str, exc: Exception) -> Exception:
    error = RuntimeError(f"{message}: {exc}")
    error.__cause__ = exc
    return error


@dataclass
class Options:
    """Methods that count as a disapproval and as a revocation of one."""

    disapprove: Methods | None = None
    revoke: Methods | None = None

    def get_disapprove_methods(self) -> Methods:
        """Return the disapproval methods, defaulting to thumbs-down comments and reviews."""
        methods = self.disapprove
        if methods is None:
            methods = Methods(comments=[":-1:", "\U0001f44e"], github_review=True)
        methods.github_review_state = ReviewState.CHANGES_REQUESTED
        return methods

    def get_revoke_methods(self) -> Methods:
        """Return the revocation methods, defaulting to thumbs-up comments and reviews."""
        methods = self.revoke
        if methods is None:
            methods = Methods(comments=[":+1:", "\U0001f44d"], github_review=True)
        methods.github_review_state = ReviewState.APPROVED
        return methods


@dataclass
class Requires:
    """Who may disapprove or revoke a disapproval."""

    actors: Actors = field(default_factory=Actors)


@dataclass
class Policy(Evaluator):
    """Disapproves when a predicate holds or an allowed user's latest action disapproves."""

    predicates: Predicates = field(default_factory=Predicates)
    options: Options = field(default_factory=Options)
    requires: Requires = field(default_factory=Requires)

    def trigger(self) -> Trigger:
        t = Trigger.COMMIT
        if not self.requires.actors.is_empty():
            dm = self.options.get_disapprove_methods()
            rm = self.options.get_revoke_methods()
            if dm.comments or rm.comments:
                t |= Trigger.COMMENT
            if dm.github_review or rm.github_review:
                t |= Trigger.REVIEW
        for predicate in self.predicates.predicates():
            t |= predicate.trigger()
        return t

    def evaluate(self, prctx: PullContext) -> Result:
        result = Result(name="disapproval", status=EvaluationStatus.SKIPPED)

        for predicate in self.predicates.predicates():
            try:
                outcome = predicate.evaluate(prctx)
            except Exception as exc:
                result.error = _wrapped("failed to evaluate predicate", exc)
                return result
            if outcome.satisfied:
                _log.debug(
                    "disapproving, predicate of type %s was satisfied", type(predicate).__name__
                )
                result.status = EvaluationStatus.DISAPPROVED
                result.status_description = (
                    outcome.description or "A precondition of this rule was satisfied"
                )
                return result

        if self.requires.actors.is_empty():
            _log.debug("no users are allowed to disapprove; skipping")
            result.status_description = "No disapproval policy is specified or the policy is empty"
            return result

        try:
            disapproved, message = self.is_disapproved(prctx)
        except Exception as exc:
            result.error = _wrapped("failed to compute disapproval status", exc)
            return result

        result.status_description = message
        result.status = EvaluationStatus.DISAPPROVED if disapproved else EvaluationStatus.SKIPPED
        return result

    def is_disapproved(self, prctx: PullContext) -> tuple[bool, str]:
        """Return whether the pull request is disapproved and a message describing why."""
        try:
            disapprover = self._last_actor(
                prctx, self.options.get_disapprove_methods(), "disapproval"
            )
        except Exception as exc:
            raise _wrapped("failed to get last disapprover", exc) from exc

        if disapprover is None:
            return False, "No disapprovals"

        try:
            revoker = self._last_actor(prctx, self.options.get_revoke_methods(), "revocation")
        except Exception as exc:
            raise _wrapped("failed to get last revoker", exc) from exc

        if revoker is None or disapprover.created_at > revoker.created_at:
            return True, f"Disapproved by {disapprover.user}"
        return False, f"Disapproval revoked by {revoker.user}"

    def _last_actor(self, prctx: PullContext, methods: Methods, kind: str) -> Candidate | None:
        candidates = methods.candidates(prctx)
        _log.debug("found %d %s candidates", len(candidates), kind)
        allowed = sort_by_creation_time(self._filter(prctx, candidates))
        return allowed[-1] if allowed else None

    def _filter(self, prctx: PullContext, candidates: list[Candidate]) -> list[Candidate]:
        kept = []
        for candidate in candidates:
            try:
                ok = self.requires.actors.is_actor(prctx, candidate.user)
            except Exception as exc:
                raise _wrapped("failed to check candidate status", exc) from exc
            if not ok:
                _log.debug(
                    "ignoring disapproval/revocation by non-whitelisted user %s", candidate.user
                )
                continue
            kept.append(candidate)
        return kept

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> Policy:
        """Build from a configuration mapping; unknown keys are rejected."""
        section = _mapping(data, "disapproval", {"if", "options", "requires"})
        return cls(
            predicates=Predicates.from_config(section.get("if")),
            options=_options(section.get("options")),
            requires=Requires(Actors.from_config(section.get("requires"))),
        )


def _mapping(value: Any, name: str, allowed: set[str]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"unknown fields in '{name}': {', '.join(sorted(map(str, unknown)))}")
    return value


def _options(value: Any) -> Options:
    section = _mapping(value, "options", {"methods"})
    methods = _mapping(section.get("methods"), "methods", {"disapprove", "revoke"})
    disapprove = methods.get("disapprove")
    revoke = methods.get("revoke")
    return Options(
        disapprove=None if disapprove is None else Methods.from_config(disapprove),
        revoke=None if revoke is None else Methods.from_config(revoke),
    )