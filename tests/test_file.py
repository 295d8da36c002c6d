import pytest

from policybot.patterns import Regexp
from policybot.predicate.file import (
    ChangedFiles,
    CompareOp,
    ComparisonExpr,
    ModifiedLines,
    OnlyChangedFiles,
)
from policybot.pull import File, PullContext
from policybot.trigger import Trigger


def _ctx(files):
    return PullContext(changed_files_value=files)


CHANGED = ChangedFiles(
    paths=[Regexp(r"app/.*\.go"), Regexp(r"server/.*\.go")],
    ignore_paths=[Regexp(r".*/special\.go")],
)


@pytest.mark.parametrize(
    "files, expected",
    [
        ([], False),
        ([File("app/client.go", "added"), File("server/server.go", "modified")], True),
        ([File("app/client.go", "added"), File("model/user.go", "modified")], True),
        ([File("model/order.go", "deleted"), File("model/user.go", "modified")], False),
        ([File("app/special.go", "deleted"), File("server/special.go", "modified")], False),
        ([File("app/normal.go", "deleted"), File("server/special.go", "modified")], True),
    ],
    ids=["empty", "onlyMatches", "someMatches", "noMatches", "ignoreAll", "ignoreSome"],
)
def test_changed_files(files, expected):
    assert CHANGED.evaluate(_ctx(files)).satisfied is expected


def test_changed_files_descriptions():
    outcome = CHANGED.evaluate(_ctx([File("app/client.go")]))
    assert outcome.description == "app/client.go was changed"
    outcome = CHANGED.evaluate(_ctx([]))
    assert outcome.description == "No changed files match the required patterns"


ONLY = OnlyChangedFiles(paths=[Regexp(r"app/.*\.go"), Regexp(r"server/.*\.go")])


@pytest.mark.parametrize(
    "files, expected",
    [
        ([], False),
        ([File("app/client.go", "added"), File("server/server.go", "modified")], True),
        ([File("app/client.go", "added"), File("model/user.go", "modified")], False),
        ([File("model/order.go", "deleted"), File("model/user.go", "modified")], False),
    ],
    ids=["empty", "onlyMatches", "someMatches", "noMatches"],
)
def test_only_changed_files(files, expected):
    assert ONLY.evaluate(_ctx(files)).satisfied is expected


def test_only_changed_files_descriptions():
    assert ONLY.evaluate(_ctx([])).description == "No files changed"
    outcome = ONLY.evaluate(_ctx([File("model/user.go")]))
    assert outcome.description == "A changed file does not match the required pattern"


def test_file_triggers():
    assert CHANGED.trigger() == Trigger.COMMIT
    assert ONLY.trigger() == Trigger.COMMIT
    assert ModifiedLines().trigger() == Trigger.COMMIT


MODIFIED = ModifiedLines(
    additions=ComparisonExpr(CompareOp.GREATER_THAN, 100),
    deletions=ComparisonExpr(CompareOp.GREATER_THAN, 10),
)


@pytest.mark.parametrize(
    "files, expected",
    [
        ([], False),
        ([File(additions=55), File(additions=10), File(additions=45)], True),
        (
            [
                File(additions=5),
                File(additions=10, deletions=10),
                File(additions=5),
                File(deletions=10),
            ],
            True,
        ),
    ],
    ids=["empty", "additions", "deletions"],
)
def test_modified_lines(files, expected):
    assert MODIFIED.evaluate(_ctx(files)).satisfied is expected


def test_modified_lines_total():
    p = ModifiedLines(total=ComparisonExpr(CompareOp.GREATER_THAN, 100))
    files = [
        File(additions=20, deletions=20),
        File(additions=20),
        File(deletions=20),
        File(additions=20, deletions=20),
    ]
    assert p.evaluate(_ctx(files)).satisfied is True


def test_modified_lines_description():
    outcome = MODIFIED.evaluate(_ctx([]))
    assert outcome == (False, "modification of (+0, -0) does not match any conditions")


@pytest.mark.parametrize(
    "expr, value, output",
    [
        (ComparisonExpr(CompareOp.GREATER_THAN, 100), 200, True),
        (ComparisonExpr(CompareOp.GREATER_THAN, 100), 50, False),
        (ComparisonExpr(CompareOp.LESS_THAN, 100), 50, True),
        (ComparisonExpr(CompareOp.LESS_THAN, 100), 200, False),
    ],
)
def test_comparison_evaluate(expr, value, output):
    assert expr.evaluate(value) is output


def test_comparison_is_empty():
    assert ComparisonExpr().is_empty() is True
    assert ComparisonExpr(CompareOp.GREATER_THAN, 100).is_empty() is False
    assert ComparisonExpr().evaluate(5) is False


@pytest.mark.parametrize(
    "text, expected",
    [
        ("<100", ComparisonExpr(CompareOp.LESS_THAN, 100)),
        (">100", ComparisonExpr(CompareOp.GREATER_THAN, 100)),
        ("<   35", ComparisonExpr(CompareOp.LESS_THAN, 35)),
        ("   < 35", ComparisonExpr(CompareOp.LESS_THAN, 35)),
        ("< 35   ", ComparisonExpr(CompareOp.LESS_THAN, 35)),
        (b"<100", ComparisonExpr(CompareOp.LESS_THAN, 100)),
        ("   ", ComparisonExpr()),
    ],
)
def test_comparison_parse(text, expected):
    assert ComparisonExpr.parse(text) == expected


@pytest.mark.parametrize("text", ["=10", "< 10ab", "<", "> 1_000", "> 99999999999999999999"])
def test_comparison_parse_errors(text):
    with pytest.raises(ValueError):
        ComparisonExpr.parse(text)


def test_comparison_str_round_trip():
    assert str(ComparisonExpr()) == ""
    for expr in (ComparisonExpr(CompareOp.LESS_THAN, 35), ComparisonExpr(CompareOp.GREATER_THAN, 100)):
        assert ComparisonExpr.parse(str(expr)) == expr


def test_changed_files_error_propagates():
    ctx = PullContext(errors={"changed_files": RuntimeError("boom")})
    with pytest.raises(RuntimeError, match="boom"):
        CHANGED.evaluate(ctx)