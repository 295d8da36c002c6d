"""Flags describing which pull request events can change an evaluation."""

from __future__ import annotations

import enum


class Trigger(enum.IntFlag):
    """Set of GitHub event kinds that can change a computed value.

    ``STATIC`` is the empty set: the value never needs updating.  ``ALL`` is
    the full set: the value should update after any change to the pull
    request.
    """

    STATIC = 0
    COMMIT = 1
    COMMENT = 2
    REVIEW = 4
    LABEL = 8
    STATUS = 16
    PULL_REQUEST = 32
    ALL = COMMIT | COMMENT | REVIEW | LABEL | STATUS | PULL_REQUEST

    def matches(self, flags: int) -> bool:
        """Return True if ``flags`` shares at least one flag with this trigger."""
        return (int(self) & int(flags)) != 0

    def __str__(self) -> str:
        value = int(self)
        if value == 0:
            return "Trigger(0x0=Static)"
        names = [name for flag, name in _TRIGGER_NAMES if self.matches(flag)]
        text = f"Trigger(0x{value:x}"
        if names:
            text += "=" + "|".join(names)
        return text + ")"


# Fixed order so that string forms are stable.
_TRIGGER_NAMES = (
    (Trigger.COMMIT, "Commit"),
    (Trigger.COMMENT, "Comment"),
    (Trigger.REVIEW, "Review"),
    (Trigger.LABEL, "Label"),
    (Trigger.STATUS, "Status"),
    (Trigger.PULL_REQUEST, "PullRequest"),
)