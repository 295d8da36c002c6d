"""The set of predicates a rule or policy may declare."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping

from policybot.patterns import Regexp
from policybot.predicate.author import (
    AuthorIsOnlyContributor,
    HasAuthorIn,
    HasContributorIn,
    OnlyHasContributorsIn,
)
from policybot.predicate.base import Predicate
from policybot.predicate.branch import FromBranch, TargetsBranch
from policybot.predicate.file import (
    ChangedFiles,
    ComparisonExpr,
    ModifiedLines,
    OnlyChangedFiles,
)
from policybot.predicate.label import HasLabels
from policybot.predicate.signature import (
    HasValidSignatures,
    HasValidSignaturesBy,
    HasValidSignaturesByKeys,
)
from policybot.predicate.status import HasSuccessfulStatus
from policybot.predicate.title import Title


@dataclass
class Predicates:
    """Optional predicates; those that are set are checked in field order."""

    changed_files: ChangedFiles | None = None
    only_changed_files: OnlyChangedFiles | None = None

    has_author_in: HasAuthorIn | None = None
    has_contributor_in: HasContributorIn | None = None
    only_has_contributors_in: OnlyHasContributorsIn | None = None
    author_is_only_contributor: AuthorIsOnlyContributor | None = None

    targets_branch: TargetsBranch | None = None
    from_branch: FromBranch | None = None

    modified_lines: ModifiedLines | None = None

    has_successful_status: HasSuccessfulStatus | None = None

    has_labels: HasLabels | None = None

    title: Title | None = None

    has_valid_signatures: HasValidSignatures | None = None
    has_valid_signatures_by: HasValidSignaturesBy | None = None
    has_valid_signatures_by_keys: HasValidSignaturesByKeys | None = None

    def predicates(self) -> list[Predicate]:
        """Return the predicates that are set, in a fixed order."""
        return [p for f in fields(self) if (p := getattr(self, f.name)) is not None]

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> Predicates:
        """Build from a configuration mapping; unknown keys are rejected."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("predicates must be a mapping")
        unknown = set(data) - set(_PARSERS)
        if unknown:
            raise ValueError(f"unknown predicates: {', '.join(sorted(map(str, unknown)))}")
        return cls(
            **{
                key: None if value is None else _PARSERS[key](value)
                for key, value in data.items()
            }
        )


def _section(value: Any, name: str, allowed: set[str]) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"unknown fields in '{name}': {', '.join(sorted(map(str, unknown)))}")
    return value


def _strings(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{name}' must be a list of strings")
    return list(value)


def _patterns(section: Mapping[str, Any], key: str) -> list[Regexp]:
    return [Regexp(p) for p in _strings(section.get(key), key)]


def _pattern(section: Mapping[str, Any], key: str) -> Regexp:
    value = section.get(key)
    if value is None:
        return Regexp()
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return Regexp(value)


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"'{name}' must be a boolean")
    return value


def _expr(section: Mapping[str, Any], key: str) -> ComparisonExpr:
    value = section.get(key)
    if value is None:
        return ComparisonExpr()
    return ComparisonExpr.parse(str(value))


def _changed_files(value: Any) -> ChangedFiles:
    section = _section(value, "changed_files", {"paths", "ignore"})
    return ChangedFiles(paths=_patterns(section, "paths"), ignore_paths=_patterns(section, "ignore"))


def _only_changed_files(value: Any) -> OnlyChangedFiles:
    section = _section(value, "only_changed_files", {"paths"})
    return OnlyChangedFiles(paths=_patterns(section, "paths"))


def _branch(kind: type, name: str) -> Callable[[Any], Predicate]:
    def parse(value: Any) -> Predicate:
        return kind(pattern=_pattern(_section(value, name, {"pattern"}), "pattern"))

    return parse


def _modified_lines(value: Any) -> ModifiedLines:
    section = _section(value, "modified_lines", {"additions", "deletions", "total"})
    return ModifiedLines(
        additions=_expr(section, "additions"),
        deletions=_expr(section, "deletions"),
        total=_expr(section, "total"),
    )


def _title(value: Any) -> Title:
    section = _section(value, "title", {"matches", "not_matches"})
    return Title(matches=_patterns(section, "matches"), not_matches=_patterns(section, "not_matches"))


def _keys(value: Any) -> HasValidSignaturesByKeys:
    section = _section(value, "has_valid_signatures_by_keys", {"key_ids"})
    return HasValidSignaturesByKeys(key_ids=_strings(section.get("key_ids"), "key_ids"))


_PARSERS: dict[str, Callable[[Any], Predicate]] = {
    "changed_files": _changed_files,
    "only_changed_files": _only_changed_files,
    "has_author_in": HasAuthorIn.from_config,
    "has_contributor_in": HasContributorIn.from_config,
    "only_has_contributors_in": OnlyHasContributorsIn.from_config,
    "author_is_only_contributor": lambda v: AuthorIsOnlyContributor(
        _bool(v, "author_is_only_contributor")
    ),
    "targets_branch": _branch(TargetsBranch, "targets_branch"),
    "from_branch": _branch(FromBranch, "from_branch"),
    "modified_lines": _modified_lines,
    "has_successful_status": lambda v: HasSuccessfulStatus(
        statuses=_strings(v, "has_successful_status")
    ),
    "has_labels": lambda v: HasLabels(labels=_strings(v, "has_labels")),
    "title": _title,
    "has_valid_signatures": lambda v: HasValidSignatures(_bool(v, "has_valid_signatures")),
    "has_valid_signatures_by": HasValidSignaturesBy.from_config,
    "has_valid_signatures_by_keys": _keys,
}