"""Predicates on the author and contributors of a pull request."""

from __future__ import annotations

import json
from dataclasses import dataclass

from policybot.actors import Actors
from policybot.predicate.base import Outcome, Predicate
from policybot.pull import PullContext
from policybot.trigger import Trigger


def _contributors(prctx: PullContext) -> list[str]:
    """Return the author followed by every commit user, without repeats."""
    users = dict.fromkeys([prctx.author()])
    for commit in prctx.commits():
        users.update(dict.fromkeys(commit.users()))
    return list(users)


class HasAuthorIn(Actors, Predicate):
    """Satisfied when the pull request author meets the actor conditions."""

    def evaluate(self, prctx: PullContext) -> Outcome:
        author = prctx.author()
        if self.is_actor(prctx, author):
            return Outcome(True)
        return Outcome(
            False,
            f"The pull request author {json.dumps(author, ensure_ascii=False)} "
            "does not meet the required membership conditions",
        )

    def trigger(self) -> Trigger:
        return Trigger.STATIC


class OnlyHasContributorsIn(Actors, Predicate):
    """Satisfied when the author and every commit user meet the actor conditions."""

    def evaluate(self, prctx: PullContext) -> Outcome:
        for user in _contributors(prctx):
            if not self.is_actor(prctx, user):
                return Outcome(
                    False,
                    f"Contributor {json.dumps(user, ensure_ascii=False)} "
                    "does not meet the required membership conditions",
                )
        return Outcome(True)

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


class HasContributorIn(Actors, Predicate):
    """Satisfied when the author or any commit user meets the actor conditions."""

    def evaluate(self, prctx: PullContext) -> Outcome:
        if any(self.is_actor(prctx, user) for user in _contributors(prctx)):
            return Outcome(True)
        return Outcome(False, "No contributors meet the required membership conditions")

    def trigger(self) -> Trigger:
        return Trigger.COMMIT


@dataclass
class AuthorIsOnlyContributor(Predicate):
    """Checks whether the author wrote and committed every commit.

    With ``value`` True the predicate holds when the author is the only
    contributor; with ``value`` False it holds when someone else contributed.
    """

    value: bool = True

    def evaluate(self, prctx: PullContext) -> Outcome:
        author = prctx.author()
        for commit in prctx.commits():
            other_author = commit.author != author
            other_committer = not commit.committed_via_web and commit.committer != author
            if other_author or other_committer:
                if self.value:
                    return Outcome(
                        False,
                        f"Commit {commit.sha[:10]} was authored or committed by a different user",
                    )
                return Outcome(True)

        if self.value:
            return Outcome(True)
        return Outcome(False, f"All commits were authored and committed by {author}")

    def trigger(self) -> Trigger:
        return Trigger.COMMIT