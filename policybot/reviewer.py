"""Selection of reviewers to request for pending approval rules."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable

from policybot.pull import Permission, PullContext, ReviewerType
from policybot.result import EvaluationStatus, RequestMode, Result

_log = logging.getLogger(__name__)


@dataclass
class Selection:
    """Users and teams chosen for review."""

    users: list[str] = field(default_factory=list)
    teams: list[str] = field(default_factory=list)

    def difference(self, reviewers: Iterable) -> Selection:
        """Return the users and teams not already among ``reviewers``.

        Reviewers that were removed still count as present, so they are not
        requested again.
        """
        reviewers = list(reviewers)
        users = {r.name for r in reviewers if r.type == ReviewerType.USER}
        teams = {r.name for r in reviewers if r.type == ReviewerType.TEAM}
        return Selection(
            users=[u for u in self.users if u not in users],
            teams=[t for t in self.teams if t not in teams],
        )

    def is_empty(self) -> bool:
        """Return True if there are no users and no teams."""
        return not self.users and not self.teams


def find_requests(result: Result) -> list[Result]:
    """Return all pending leaf results that have review requests enabled."""
    if result.status != EvaluationStatus.PENDING:
        return []
    requests = [r for child in result.children for r in find_requests(child)]
    if not result.children and result.review_request_rule is not None and result.error is None:
        requests.append(result)
    return requests


def select_random_users(n: int, users: list[str], rng: random.Random) -> list[str]:
    """Pick ``n`` distinct users at random, or all of them if there are not more."""
    if n == 0:
        return []
    if n >= len(users):
        return list(users)

    picked: set[int] = set()
    chosen: list[str] = []
    for _ in range(n):
        for _attempt in range(n * 5 + 1):
            index = rng.randrange(len(users))
            if index not in picked:
                picked.add(index)
                chosen.append(users[index])
                break
        else:
            raise RuntimeError(f"failed to select random value for {n} {len(users)}")
    return chosen


def select_reviewers(
    prctx: PullContext, results: Iterable[Result], rng: random.Random
) -> Selection:
    """Choose reviewers for every result according to its request mode."""
    selection = Selection()
    for child in results:
        mode = child.review_request_rule.mode
        if mode == RequestMode.TEAMS:
            _select_team_reviewers(prctx, selection, child)
        elif mode in (RequestMode.ALL_USERS, RequestMode.RANDOM_USERS):
            _select_user_reviewers(prctx, selection, child, rng)
        else:
            raise ValueError(f"unknown reviewer selection mode: {mode}")
    return selection


def _requests_team(result: Result, team: str) -> bool:
    return team in result.review_request_rule.teams


def _requests_permission(result: Result, permission: Permission) -> bool:
    return permission in result.review_request_rule.permissions


def _select_team_reviewers(prctx: PullContext, selection: Selection, result: Result) -> None:
    owner = prctx.repository_owner()
    teams = [
        team
        for team, permission in prctx.teams().items()
        if _requests_team(result, f"{owner}/{team}") or _requests_permission(result, permission)
    ]
    _log.debug("[%s] Requesting %d teams for review", result.name, len(teams))
    selection.teams.extend(teams)


def _team_members(prctx: PullContext, teams: list[str]) -> dict[str, list[str]]:
    members = {}
    for team in teams:
        try:
            members[team] = prctx.team_members(team)
        except Exception as exc:
            raise RuntimeError(f"failed to get member listing for team {team}: {exc}") from exc
    return members


def _org_members(prctx: PullContext, orgs: list[str]) -> list[str]:
    members: list[str] = []
    for org in orgs:
        try:
            members.extend(prctx.organization_members(org))
        except Exception as exc:
            raise RuntimeError(f"failed to get member listing for org {org}: {exc}") from exc
    return members


def _select_user_reviewers(
    prctx: PullContext, selection: Selection, result: Result, rng: random.Random
) -> None:
    rule = result.review_request_rule
    all_users: set[str] = set(rule.users)

    if rule.teams:
        _log.debug("[%s] Selecting from teams for review", result.name)
        try:
            for members in _team_members(prctx, rule.teams).values():
                all_users.update(members)
        except RuntimeError as exc:
            _log.warning(
                "[%s] %s; skipping team member selection", result.name, exc
            )

    if rule.organizations:
        _log.debug("[%s] Selecting from organizations for review", result.name)
        try:
            all_users.update(_org_members(prctx, rule.organizations))
        except RuntimeError as exc:
            _log.warning("[%s] %s; skipping org member selection", result.name, exc)

    try:
        collaborators = prctx.repository_collaborators()
    except Exception as exc:
        raise RuntimeError(f"failed to list repository collaborators: {exc}") from exc

    if rule.permissions:
        _log.debug("[%s] Selecting from collaborators by permission for review", result.name)
        for collaborator in collaborators:
            if any(
                cp.via_repo and _requests_permission(result, cp.permission)
                for cp in collaborator.permissions
            ):
                all_users.add(collaborator.name)

    author = prctx.author()
    # Sorted so that a fixed random seed gives a repeatable selection.
    possible = sorted(
        c.name for c in collaborators if c.name != author and c.name in all_users
    )
    if not possible:
        _log.debug("[%s] Found 0 eligible reviewers; skipping review request", result.name)
        return

    if rule.mode == RequestMode.ALL_USERS:
        _log.debug("[%s] Found %d eligible reviewers; selecting all", result.name, len(possible))
        selection.users.extend(possible)
    elif rule.mode == RequestMode.RANDOM_USERS:
        count = rule.required_count
        _log.debug(
            "[%s] Found %d eligible reviewers; randomly selecting %d",
            result.name,
            len(possible),
            count,
        )
        selection.users.extend(select_random_users(count, possible, rng))