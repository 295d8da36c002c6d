"""Approval rules: who must approve a pull request, and under which options."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from policybot.actors import Actors
from policybot.methods import Candidate, Methods, sort_by_creation_time
from policybot.predicate.predicates import Predicates
from policybot.pull import Commit, Permission, PullContext, ReviewState
from policybot.result import EvaluationStatus, RequestMode, Result, ReviewRequestRule
from policybot.trigger import Trigger

_log = logging.getLogger(__name__)

_RULE_KEYS = frozenset({"name", "description", "if", "options", "requires"})
_OPTION_KEYS = frozenset(
    {
        "allow_author",
        "allow_contributor",
        "invalidate_on_push",
        "ignore_edited_comments",
        "ignore_update_merges",
        "ignore_commits_by",
        "request_review",
        "methods",
    }
)
_REQUEST_REVIEW_KEYS = frozenset({"enabled", "mode"})


@dataclass
class RequestReview:
    """Whether reviewers are requested for a pending rule, and how they are chosen."""

    enabled: bool = False
    mode: RequestMode | None = None


@dataclass
class Options:
    """Options that change which approvals count for a rule."""

    allow_author: bool = False
    allow_contributor: bool = False
    invalidate_on_push: bool = False
    ignore_edited_comments: bool = False
    ignore_update_merges: bool = False
    ignore_commits_by: Actors = field(default_factory=Actors)
    request_review: RequestReview = field(default_factory=RequestReview)
    methods: Methods | None = None

    def get_methods(self) -> Methods:
        """Return the approval methods, defaulting to thumbs-up comments and reviews."""
        methods = self.methods
        if methods is None:
            methods = Methods(comments=[":+1:", "\U0001f44d"], github_review=True)
        methods.github_review_state = ReviewState.APPROVED
        return methods


@dataclass
class Requires:
    """How many approvals a rule needs and who may give them."""

    count: int = 0
    actors: Actors = field(default_factory=Actors)


def _number_of_approvals(count: int) -> str:
    return "1 approval" if count == 1 else f"{count} approvals"


def _wrapped(message: str, exc: Exception) -> Exception:
    error = RuntimeError(f"{message}: {exc}")
    error.__cause__ = exc
    return error


def _is_update_merge(commits: list[Commit], commit: Commit) -> bool:
    # A simple merge created through the UI or API whose first parent is on
    # the head branch and whose second parent is already in the base branch.
    if len(commit.parents) != 2 or not commit.committed_via_web:
        return False
    shas = {c.sha for c in commits}
    return commit.parents[0] in shas and commit.parents[1] not in shas


def _is_ignored_commit(prctx: PullContext, actors: Actors, commit: Commit) -> bool:
    users = commit.users()
    return bool(users) and all(actors.is_actor(prctx, u) for u in users)


def _find_last_pushed(commits: list[Commit]) -> Commit | None:
    pushed = [c for c in commits if c.pushed_at is not None]
    last: Commit | None = None
    for commit in pushed:
        if last is None or commit.pushed_at > last.pushed_at:
            last = commit
    return last


@dataclass
class Rule:
    """A named approval rule with optional preconditions."""

    name: str = ""
    description: str = ""
    predicates: Predicates = field(default_factory=Predicates)
    options: Options = field(default_factory=Options)
    requires: Requires = field(default_factory=Requires)

    def trigger(self) -> Trigger:
        """Return the events that can change this rule's result."""
        t = Trigger.COMMIT
        if self.requires.count > 0:
            methods = self.options.get_methods()
            if methods.comments or methods.comment_patterns:
                t |= Trigger.COMMENT
            if methods.github_review or methods.github_review_comment_patterns:
                t |= Trigger.REVIEW
        for predicate in self.predicates.predicates():
            t |= predicate.trigger()
        return t

    def evaluate(self, prctx: PullContext) -> Result:
        """Evaluate the rule; failures are reported in the result's error."""
        result = Result(
            name=self.name, description=self.description, status=EvaluationStatus.SKIPPED
        )

        for predicate in self.predicates.predicates():
            try:
                outcome = predicate.evaluate(prctx)
            except Exception as exc:
                result.error = _wrapped("failed to evaluate predicate", exc)
                return result
            if not outcome.satisfied:
                _log.debug(
                    "skipping rule, predicate of type %s was not satisfied",
                    type(predicate).__name__,
                )
                result.status_description = (
                    outcome.description or "A precondition of this rule was satisfied"
                )
                return result

        try:
            approved, message = self.is_approved(prctx)
        except Exception as exc:
            result.error = _wrapped("failed to compute approval status", exc)
            return result

        result.status_description = message
        if approved:
            result.status = EvaluationStatus.APPROVED
        else:
            result.status = EvaluationStatus.PENDING
            result.review_request_rule = self._review_request_rule()
        return result

    def _review_request_rule(self) -> ReviewRequestRule | None:
        request = self.options.request_review
        if not request.enabled:
            return None

        actors = self.requires.actors
        permissions = list(actors.permissions)
        if actors.admins:
            permissions.append(Permission.ADMIN)
        if actors.write_collaborators:
            permissions.append(Permission.WRITE)

        return ReviewRequestRule(
            users=list(actors.users),
            teams=list(actors.teams),
            organizations=list(actors.organizations),
            permissions=permissions,
            required_count=self.requires.count,
            mode=request.mode or RequestMode.RANDOM_USERS,
        )

    def is_approved(self, prctx: PullContext) -> tuple[bool, str]:
        """Return whether the rule is approved and a message describing why."""
        required = self.requires.count
        if required <= 0:
            _log.debug("rule requires no approvals")
            return True, "No approval required"

        candidates = self._filtered_candidates(prctx)
        _log.debug("found %d candidates for approval", len(candidates))

        # The author counts as a contributor when contributors are allowed.
        author = prctx.author()
        banned: set[str] = set()
        if not self.options.allow_author and not self.options.allow_contributor:
            banned.add(author)
        if not self.options.allow_contributor:
            for commit in self._filtered_commits(prctx):
                banned.update(u for u in commit.users() if u != author)

        approvers: list[str] = []
        for candidate in candidates:
            if candidate.user in banned:
                _log.debug("rejecting approval by banned user %s", candidate.user)
                continue
            if not self.requires.actors.is_actor(prctx, candidate.user):
                _log.debug("ignoring approval by non-whitelisted user %s", candidate.user)
                continue
            approvers.append(candidate.user)

        _log.debug("found %d/%d required approvers", len(approvers), required)
        if required - len(approvers) <= 0:
            return True, "Approved by " + ", ".join(approvers)

        if candidates and not approvers:
            return False, (
                f"{len(approvers)}/{required} approvals required. "
                f"Ignored {_number_of_approvals(len(candidates))} from disqualified users"
            )
        return False, f"{len(approvers)}/{required} approvals required"

    def _filtered_candidates(self, prctx: PullContext) -> list[Candidate]:
        try:
            candidates = self.options.get_methods().candidates(prctx)
        except Exception as exc:
            raise _wrapped("failed to get approval candidates", exc) from exc

        candidates = sort_by_creation_time(candidates)

        if self.options.ignore_edited_comments:
            kept = [c for c in candidates if c.updated_at == c.created_at]
            _log.debug("discarded %d candidates with edited comments", len(candidates) - len(kept))
            candidates = kept

        if self.options.invalidate_on_push:
            candidates = self._filter_invalid_candidates(prctx, candidates)

        return candidates

    def _filter_invalid_candidates(
        self, prctx: PullContext, candidates: list[Candidate]
    ) -> list[Candidate]:
        commits = self._filtered_commits(prctx)
        if not commits:
            return candidates

        last = _find_last_pushed(commits)
        if last is None:
            raise RuntimeError("no commit contained a push date")

        kept = [c for c in candidates if c.created_at > last.pushed_at]
        _log.debug(
            "discarded %d candidates invalidated by push of %s at %s",
            len(candidates) - len(kept),
            last.sha,
            last.pushed_at.isoformat(),
        )
        return kept

    def _filtered_commits(self, prctx: PullContext) -> list[Commit]:
        try:
            commits = prctx.commits()
        except Exception as exc:
            raise _wrapped("failed to list commits", exc) from exc

        ignore_updates = self.options.ignore_update_merges
        ignored_by = self.options.ignore_commits_by
        ignore_commits = not ignored_by.is_empty()
        if not ignore_updates and not ignore_commits:
            return commits

        return [
            c
            for c in commits
            if not (ignore_updates and _is_update_merge(commits, c))
            and not (ignore_commits and _is_ignored_commit(prctx, ignored_by, c))
        ]

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> Rule:
        """Build a rule from a configuration mapping; unknown keys are rejected."""
        section = _mapping(data, "rule", _RULE_KEYS)
        return cls(
            name=_string(section, "name"),
            description=_string(section, "description"),
            predicates=Predicates.from_config(section.get("if")),
            options=_options(section.get("options")),
            requires=_requires(section.get("requires")),
        )


def _mapping(value: Any, name: str, allowed: frozenset[str]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"unknown fields in '{name}': {', '.join(sorted(map(str, unknown)))}")
    return value


def _string(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


def _bool(section: Mapping[str, Any], key: str) -> bool:
    value = section.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean")
    return value


def _request_review(value: Any) -> RequestReview:
    section = _mapping(value, "request_review", _REQUEST_REVIEW_KEYS)
    mode_text = _string(section, "mode")
    try:
        mode = RequestMode(mode_text) if mode_text else None
    except ValueError as exc:
        raise ValueError(f"invalid request mode: {mode_text!r}") from exc
    return RequestReview(enabled=_bool(section, "enabled"), mode=mode)


def _options(value: Any) -> Options:
    section = _mapping(value, "options", _OPTION_KEYS)
    methods = section.get("methods")
    return Options(
        allow_author=_bool(section, "allow_author"),
        allow_contributor=_bool(section, "allow_contributor"),
        invalidate_on_push=_bool(section, "invalidate_on_push"),
        ignore_edited_comments=_bool(section, "ignore_edited_comments"),
        ignore_update_merges=_bool(section, "ignore_update_merges"),
        ignore_commits_by=Actors.from_config(section.get("ignore_commits_by")),
        request_review=_request_review(section.get("request_review")),
        methods=None if methods is None else Methods.from_config(methods),
    )


def _requires(value: Any) -> Requires:
    if value is None:
        return Requires()
    if not isinstance(value, Mapping):
        raise ValueError("'requires' must be a mapping")
    rest = dict(value)
    count = rest.pop("count", 0)
    if count is None:
        count = 0
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValueError("'count' must be an integer")
    return Requires(count=count, actors=Actors.from_config(rest))