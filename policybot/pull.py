"""Pull request data and an in-memory view of a pull request."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

_ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


class Permission(enum.IntEnum):
    """Repository collaborator permission; higher values grant more."""

    NONE = 0
    READ = 1
    TRIAGE = 2
    WRITE = 3
    MAINTAIN = 4
    ADMIN = 5

    def __str__(self) -> str:
        return self.name.lower()


def parse_permission(value: str) -> Permission:
    """Parse a permission name such as ``"admin"`` or ``"write"``."""
    name = str(value).strip().lower()
    for permission in Permission:
        if permission is not Permission.NONE and str(permission) == name:
            return permission
    raise ValueError(f"invalid permission: {value!r}")


class ReviewState(str, enum.Enum):
    """State of a submitted review."""

    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"

    def __str__(self) -> str:
        return self.value


class SignatureType(str, enum.Enum):
    """Kind of commit signature."""

    GPG = "gpg"
    SMIME = "smime"


class ReviewerType(str, enum.Enum):
    """Whether a requested reviewer is a user or a team."""

    USER = "user"
    TEAM = "team"


@dataclass
class Comment:
    author: str = ""
    body: str = ""
    created_at: datetime = _ZERO_TIME
    updated_at: datetime = _ZERO_TIME


@dataclass
class Review:
    author: str = ""
    state: ReviewState | None = None
    body: str = ""
    created_at: datetime = _ZERO_TIME
    updated_at: datetime = _ZERO_TIME


@dataclass
class Signature:
    type: SignatureType = SignatureType.GPG
    is_valid: bool = False
    signer: str = ""
    state: str = ""
    key_id: str = ""


@dataclass
class Commit:
    sha: str = ""
    author: str = ""
    committer: str = ""
    committed_via_web: bool = False
    parents: list[str] = field(default_factory=list)
    pushed_at: datetime | None = None
    signature: Signature | None = None

    def users(self) -> list[str]:
        """Return the distinct, non-empty author and committer of the commit."""
        found: list[str] = []
        for user in (self.author, self.committer):
            if user and user not in found:
                found.append(user)
        return found


@dataclass
class File:
    filename: str = ""
    status: str = ""
    additions: int = 0
    deletions: int = 0


@dataclass
class CollaboratorPermission:
    permission: Permission
    via_repo: bool = False


@dataclass
class Collaborator:
    name: str
    permissions: list[CollaboratorPermission] = field(default_factory=list)


@dataclass
class Reviewer:
    type: ReviewerType
    name: str
    removed: bool = False


@dataclass
class PullContext:
    """An in-memory snapshot of a pull request and its repository.

    ``team_memberships`` and ``org_memberships`` map a user to the teams
    (``org/team``) or organizations they belong to.  ``errors`` maps a method
    name to an exception that the method raises instead of answering.
    """

    owner_value: str = ""
    author_value: str = ""
    title_value: str = ""
    base_branch: str = ""
    head_branch: str = ""
    commits_value: list[Commit] = field(default_factory=list)
    comments_value: list[Comment] = field(default_factory=list)
    reviews_value: list[Review] = field(default_factory=list)
    changed_files_value: list[File] = field(default_factory=list)
    labels_value: list[str] = field(default_factory=list)
    latest_statuses_value: dict[str, str] = field(default_factory=dict)
    team_memberships: dict[str, list[str]] = field(default_factory=dict)
    org_memberships: dict[str, list[str]] = field(default_factory=dict)
    collaborators_value: list[Collaborator] = field(default_factory=list)
    teams_value: dict[str, Permission] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)

    def _check(self, name: str) -> None:
        error = self.errors.get(name)
        if error is not None:
            raise error

    def author(self) -> str:
        return self.author_value

    def title(self) -> str:
        return self.title_value

    def branches(self) -> tuple[str, str]:
        """Return the base (target) and head (source) branch names."""
        return self.base_branch, self.head_branch

    def commits(self) -> list[Commit]:
        self._check("commits")
        return list(self.commits_value)

    def comments(self) -> list[Comment]:
        self._check("comments")
        return list(self.comments_value)

    def reviews(self) -> list[Review]:
        self._check("reviews")
        return list(self.reviews_value)

    def changed_files(self) -> list[File]:
        self._check("changed_files")
        return list(self.changed_files_value)

    def labels(self) -> list[str]:
        self._check("labels")
        return list(self.labels_value)

    def latest_statuses(self) -> dict[str, str]:
        self._check("latest_statuses")
        return dict(self.latest_statuses_value)

    def is_team_member(self, team: str, user: str) -> bool:
        self._check("is_team_member")
        return team in self.team_memberships.get(user, ())

    def is_org_member(self, org: str, user: str) -> bool:
        self._check("is_org_member")
        return org in self.org_memberships.get(user, ())

    def collaborator_permission(self, user: str) -> Permission:
        """Return the highest permission the user holds, or NONE."""
        self._check("collaborator_permission")
        for collaborator in self.collaborators_value:
            if collaborator.name == user:
                return max(
                    (p.permission for p in collaborator.permissions),
                    default=Permission.NONE,
                )
        return Permission.NONE

    def repository_owner(self) -> str:
        return self.owner_value

    def teams(self) -> dict[str, Permission]:
        self._check("teams")
        return dict(self.teams_value)

    def team_members(self, team: str) -> list[str]:
        self._check("team_members")
        return [user for user, teams in self.team_memberships.items() if team in teams]

    def organization_members(self, org: str) -> list[str]:
        self._check("organization_members")
        return [user for user, orgs in self.org_memberships.items() if org in orgs]

    def repository_collaborators(self) -> list[Collaborator]:
        self._check("repository_collaborators")
        return list(self.collaborators_value)