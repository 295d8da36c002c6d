import pytest

from policybot.trigger import Trigger


@pytest.mark.parametrize(
    "trigger, flags, expected",
    [
        (Trigger.COMMIT, Trigger.COMMIT, True),
        (Trigger.COMMIT | Trigger.LABEL, Trigger.COMMIT, True),
        (Trigger.COMMIT | Trigger.LABEL, Trigger.LABEL, True),
        (Trigger.ALL, Trigger.STATUS, True),
        (Trigger.STATIC, Trigger.COMMIT, False),
        (Trigger.ALL, Trigger.STATIC, False),
    ],
)
def test_trigger_matches(trigger, flags, expected):
    assert trigger.matches(flags) is expected


@pytest.mark.parametrize(
    "trigger, text",
    [
        (Trigger.STATIC, "Trigger(0x0=Static)"),
        (Trigger.COMMIT, "Trigger(0x1=Commit)"),
        (Trigger.COMMIT | Trigger.REVIEW | Trigger.STATUS, "Trigger(0x15=Commit|Review|Status)"),
    ],
)
def test_trigger_string(trigger, text):
    assert str(trigger) == text


def test_all_contains_every_flag():
    for flag in (
        Trigger.COMMIT,
        Trigger.COMMENT,
        Trigger.REVIEW,
        Trigger.LABEL,
        Trigger.STATUS,
        Trigger.PULL_REQUEST,
    ):
        assert Trigger.ALL.matches(flag)


def test_union_with_static_is_unchanged():
    combined = Trigger(Trigger.STATIC.value | Trigger.LABEL.value)
    assert str(combined) == "Trigger(0x8=Label)"
    assert combined.matches(Trigger.LABEL)
    assert not combined.matches(Trigger.COMMIT)