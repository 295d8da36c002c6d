"""A regular expression that only matches and loads from configuration."""

from __future__ import annotations

import json
import re

import yaml


class Regexp:
    """A compiled pattern used for search-style matching.

    An instance created without a pattern matches nothing.
    """

    __slots__ = ("_regex",)

    def __init__(self, pattern: str | re.Pattern | None = None) -> None:
        if pattern is None or isinstance(pattern, re.Pattern):
            self._regex = pattern
            return
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {pattern!r}: {exc}") from exc

    def matches(self, s: str) -> bool:
        """Return True if the pattern matches anywhere in ``s``."""
        if self._regex is None:
            return False
        return self._regex.search(s) is not None

    def __str__(self) -> str:
        return "" if self._regex is None else self._regex.pattern

    def __repr__(self) -> str:
        return f"Regexp({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Regexp):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _key(self):
        if self._regex is None:
            return None
        return (self._regex.pattern, self._regex.flags)

    @classmethod
    def _from_value(cls, value: object) -> Regexp:
        if not isinstance(value, str):
            raise ValueError(f"expected a pattern string, got {type(value).__name__}")
        return cls(value)

    @classmethod
    def from_json(cls, data: str | bytes) -> Regexp:
        """Build a pattern from a JSON string value."""
        return cls._from_value(json.loads(data))

    @classmethod
    def from_yaml(cls, text: str | bytes) -> Regexp:
        """Build a pattern from a YAML string value."""
        return cls._from_value(yaml.safe_load(text))