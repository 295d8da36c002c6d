from datetime import datetime, timedelta, timezone

import pytest

from policybot.methods import Candidate, Methods, sort_by_creation_time
from policybot.patterns import Regexp
from policybot.pull import Comment, PullContext, Review, ReviewState

NOW = datetime(2018, 6, 29, 12, 0, tzinfo=timezone.utc)


def minutes(n):
    return NOW + timedelta(minutes=n)


@pytest.fixture
def prctx():
    return PullContext(
        comments_value=[
            Comment(created_at=minutes(0), body="I like to comment!", author="rrandom"),
            Comment(created_at=minutes(2), body="Looks good to me :+1:", author="mhaypenny"),
            Comment(created_at=minutes(4), body=":lgtm:", author="ttest"),
            Comment(
                created_at=minutes(8),
                body="I approve this, because it looks good to me.",
                author="wstrawmoney",
            ),
        ],
        reviews_value=[
            Review(created_at=minutes(1), author="rrandom", state=ReviewState.COMMENTED),
            Review(
                created_at=minutes(3),
                author="mhaypenny",
                state=ReviewState.CHANGES_REQUESTED,
                body="pr needs work",
            ),
            Review(created_at=minutes(5), author="ttest", state=ReviewState.APPROVED),
            Review(created_at=minutes(7), author="santaclaus", body="nice", state=ReviewState.APPROVED),
            Review(created_at=minutes(9), author="dasherdancer", body="nIcE", state=ReviewState.APPROVED),
        ],
    )


def users(candidates):
    return [c.user for c in sort_by_creation_time(candidates)]


def test_comments(prctx):
    m = Methods(comments=[":+1:", ":lgtm:"])
    assert users(m.candidates(prctx)) == ["mhaypenny", "ttest"]


def test_comment_patterns(prctx):
    m = Methods(comment_patterns=[Regexp("^(?i:looks good to me)")])
    assert users(m.candidates(prctx)) == ["mhaypenny"]


def test_github_review_comment_patterns(prctx):
    m = Methods(
        github_review=True,
        github_review_state=ReviewState.APPROVED,
        github_review_comment_patterns=[Regexp("(?i)nice")],
    )
    assert users(m.candidates(prctx)) == ["santaclaus", "dasherdancer"]


def test_reviews(prctx):
    m = Methods(github_review=True, github_review_state=ReviewState.CHANGES_REQUESTED)
    assert users(m.candidates(prctx)) == ["mhaypenny"]


def test_deduplicate(prctx):
    m = Methods(
        comments=[":+1:", ":lgtm:"],
        github_review=True,
        github_review_state=ReviewState.APPROVED,
    )
    candidates = m.candidates(prctx)
    assert users(candidates) == ["mhaypenny", "ttest", "santaclaus", "dasherdancer"]
    ttest = next(c for c in candidates if c.user == "ttest")
    assert ttest.created_at == minutes(5)


def test_no_methods_reads_nothing():
    context = PullContext(errors={"comments": RuntimeError("x"), "reviews": RuntimeError("y")})
    assert Methods().candidates(context) == []


def test_comment_error_propagates(prctx):
    prctx.errors["comments"] = RuntimeError("unavailable")
    with pytest.raises(RuntimeError):
        Methods(comments=[":+1:"]).candidates(prctx)


def test_candidates_by_creation_time():
    cs = [
        Candidate("c", datetime(2018, 6, 29, 12, tzinfo=timezone.utc), NOW),
        Candidate("a", datetime(2018, 6, 28, 0, tzinfo=timezone.utc), NOW),
        Candidate("d", datetime(2018, 6, 29, 14, tzinfo=timezone.utc), NOW),
        Candidate("b", datetime(2018, 6, 29, 10, tzinfo=timezone.utc), NOW),
    ]
    assert [c.user for c in sort_by_creation_time(cs)] == ["a", "b", "c", "d"]


def test_sort_is_stable():
    cs = [Candidate("x", NOW, NOW), Candidate("y", NOW, NOW)]
    assert [c.user for c in sort_by_creation_time(cs)] == ["x", "y"]


def test_comment_matches():
    m = Methods(comments=[":+1:"], comment_patterns=[Regexp("^ship it")])
    assert m.comment_matches("LGTM :+1: :shipit:")
    assert m.comment_matches("ship it now")
    assert not m.comment_matches("please ship it")


def test_from_config():
    m = Methods.from_config(
        {"comments": ["+1"], "comment_patterns": ["(?i)nice"], "github_review": True}
    )
    assert m.comments == ["+1"]
    assert m.comment_patterns == [Regexp("(?i)nice")]
    assert m.github_review is True
    assert m.github_review_state is None


def test_from_config_rejects_unknown_key():
    with pytest.raises(ValueError):
        Methods.from_config({"github_reviews": True})


def test_from_config_rejects_bad_pattern():
    with pytest.raises(ValueError):
        Methods.from_config({"comment_patterns": ["(unclosed"]})