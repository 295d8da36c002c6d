"""Ways a user can act on a pull request, and the candidates they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from policybot.patterns import Regexp
from policybot.pull import PullContext, ReviewState

_METHOD_KEYS = frozenset(
    {"comments", "comment_patterns", "github_review", "github_review_comment_patterns"}
)


@dataclass
class Candidate:
    """A user whose action matched a method, with the action's timestamps."""

    user: str
    created_at: datetime
    updated_at: datetime


def sort_by_creation_time(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Return the candidates ordered by creation time, keeping ties in order."""
    return sorted(candidates, key=lambda c: c.created_at)


def _deduplicate(candidates: Iterable[Candidate]) -> list[Candidate]:
    latest: dict[str, Candidate] = {}
    for candidate in candidates:
        previous = latest.get(candidate.user)
        if previous is None or previous.created_at < candidate.created_at:
            latest[candidate.user] = candidate
    return list(latest.values())


@dataclass
class Methods:
    """Comment strings, comment patterns and review settings that count as an action.

    ``github_review_state`` is the state a review must have to count; it is
    set by the application rather than read from configuration.
    """

    comments: list[str] = field(default_factory=list)
    comment_patterns: list[Regexp] = field(default_factory=list)
    github_review: bool = False
    github_review_comment_patterns: list[Regexp] = field(default_factory=list)
    github_review_state: ReviewState | None = None

    def candidates(self, prctx: PullContext) -> list[Candidate]:
        """Return one candidate per user, from that user's latest matching action.

        The order of the returned candidates is unspecified.
        """
        found: list[Candidate] = []

        if self.comments or self.comment_patterns:
            for comment in prctx.comments():
                if self.comment_matches(comment.body):
                    found.append(Candidate(comment.author, comment.created_at, comment.updated_at))

        if self.github_review or self.github_review_comment_patterns:
            for review in prctx.reviews():
                if review.state != self.github_review_state:
                    continue
                if self.github_review_comment_patterns and not self._review_comment_matches(
                    review.body
                ):
                    continue
                found.append(Candidate(review.author, review.created_at, review.updated_at))

        return _deduplicate(found)

    def comment_matches(self, body: str) -> bool:
        """Return True if the comment body contains a comment string or matches a pattern."""
        return any(comment in body for comment in self.comments) or any(
            pattern.matches(body) for pattern in self.comment_patterns
        )

    def _review_comment_matches(self, body: str) -> bool:
        return any(pattern.matches(body) for pattern in self.github_review_comment_patterns)

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> Methods:
        """Build from a configuration mapping; unknown keys are rejected."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("methods must be a mapping")
        unknown = set(data) - _METHOD_KEYS
        if unknown:
            raise ValueError(f"unknown method fields: {', '.join(sorted(map(str, unknown)))}")

        github_review = data.get("github_review") or False
        if not isinstance(github_review, bool):
            raise ValueError("'github_review' must be a boolean")

        return cls(
            comments=_strings(data, "comments"),
            comment_patterns=[Regexp(p) for p in _strings(data, "comment_patterns")],
            github_review=github_review,
            github_review_comment_patterns=[
                Regexp(p) for p in _strings(data, "github_review_comment_patterns")
            ],
        )


def _strings(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)