import pytest

from policybot.predicate.label import HasLabels
from policybot.pull import PullContext
from policybot.trigger import Trigger


@pytest.mark.parametrize(
    "expected, prctx",
    [
        (True, PullContext(labels_value=["foo", "bar"])),
        (False, PullContext(labels_value=["foo"])),
        (False, PullContext(labels_value=[])),
        (False, PullContext()),
    ],
    ids=["all labels", "missing a label", "no labels", "labels does not exist"],
)
def test_has_labels(expected, prctx):
    assert HasLabels(["foo", "bar"]).evaluate(prctx).satisfied is expected


def test_missing_label_description():
    outcome = HasLabels(["foo", "bar"]).evaluate(PullContext(labels_value=["foo"]))
    assert outcome.description == "Missing label: bar"


def test_required_label_is_lowercased():
    assert HasLabels(["Foo"]).evaluate(PullContext(labels_value=["foo"])).satisfied is True


def test_no_required_labels_does_not_query():
    prctx = PullContext(errors={"labels": RuntimeError("unreachable")})
    assert HasLabels([]).evaluate(prctx).satisfied is True


def test_label_errors_propagate():
    prctx = PullContext(errors={"labels": RuntimeError("boom")})
    with pytest.raises(RuntimeError):
        HasLabels(["foo"]).evaluate(prctx)
    assert HasLabels(["foo"]).trigger() == Trigger.LABEL