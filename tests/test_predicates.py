import pytest
import yaml

from policybot.patterns import Regexp
from policybot.predicate.author import (
    AuthorIsOnlyContributor,
    HasAuthorIn,
    HasContributorIn,
    OnlyHasContributorsIn,
)
from policybot.predicate.branch import FromBranch, TargetsBranch
from policybot.predicate.file import (
    ChangedFiles,
    CompareOp,
    ComparisonExpr,
    ModifiedLines,
    OnlyChangedFiles,
)
from policybot.predicate.label import HasLabels
from policybot.predicate.predicates import Predicates
from policybot.predicate.signature import (
    HasValidSignatures,
    HasValidSignaturesBy,
    HasValidSignaturesByKeys,
)
from policybot.predicate.status import HasSuccessfulStatus
from policybot.predicate.title import Title
from policybot.pull import PullContext

CONFIG_TEXT = """
changed_files:
  paths: ["path1"]
only_changed_files:
  paths: ["path2"]
has_author_in:
  teams: ["team1"]
  users: ["user1", "user2"]
  organizations: ["org1"]
has_contributor_in:
  teams: ["team2"]
  users: ["user3"]
  organizations: ["org2"]
"""


def test_empty_has_no_predicates():
    assert Predicates().predicates() == []
    assert Predicates.from_config(None).predicates() == []
    assert Predicates.from_config({}).predicates() == []


def test_from_yaml_config():
    p = Predicates.from_config(yaml.safe_load(CONFIG_TEXT))
    assert p.changed_files == ChangedFiles(paths=[Regexp("path1")])
    assert p.only_changed_files == OnlyChangedFiles(paths=[Regexp("path2")])
    assert p.has_author_in == HasAuthorIn(
        users=["user1", "user2"], teams=["team1"], organizations=["org1"]
    )
    assert p.has_contributor_in == HasContributorIn(
        users=["user3"], teams=["team2"], organizations=["org2"]
    )
    assert p.predicates() == [
        p.changed_files,
        p.only_changed_files,
        p.has_author_in,
        p.has_contributor_in,
    ]


def test_order_is_fixed_regardless_of_config_order():
    p = Predicates.from_config(
        {"title": {"matches": ["^x"]}, "has_labels": ["foo"], "changed_files": {"paths": ["a"]}}
    )
    assert [type(x) for x in p.predicates()] == [ChangedFiles, HasLabels, Title]


def test_every_predicate_in_order():
    p = Predicates(
        changed_files=ChangedFiles(),
        only_changed_files=OnlyChangedFiles(),
        has_author_in=HasAuthorIn(),
        has_contributor_in=HasContributorIn(),
        only_has_contributors_in=OnlyHasContributorsIn(),
        author_is_only_contributor=AuthorIsOnlyContributor(),
        targets_branch=TargetsBranch(),
        from_branch=FromBranch(),
        modified_lines=ModifiedLines(),
        has_successful_status=HasSuccessfulStatus(),
        has_labels=HasLabels(),
        title=Title(),
        has_valid_signatures=HasValidSignatures(),
        has_valid_signatures_by=HasValidSignaturesBy(),
        has_valid_signatures_by_keys=HasValidSignaturesByKeys(),
    )
    assert [type(x) for x in p.predicates()] == [
        ChangedFiles,
        OnlyChangedFiles,
        HasAuthorIn,
        HasContributorIn,
        OnlyHasContributorsIn,
        AuthorIsOnlyContributor,
        TargetsBranch,
        FromBranch,
        ModifiedLines,
        HasSuccessfulStatus,
        HasLabels,
        Title,
        HasValidSignatures,
        HasValidSignaturesBy,
        HasValidSignaturesByKeys,
    ]


def test_false_boolean_predicates_are_still_present():
    p = Predicates.from_config(
        {"author_is_only_contributor": False, "has_valid_signatures": False}
    )
    assert p.predicates() == [AuthorIsOnlyContributor(False), HasValidSignatures(False)]


def test_null_value_leaves_predicate_unset():
    p = Predicates.from_config({"title": None, "has_labels": ["foo"]})
    assert p.title is None
    assert p.predicates() == [HasLabels(labels=["foo"])]


def test_modified_lines_config():
    p = Predicates.from_config({"modified_lines": {"additions": "> 100", "total": "< 5"}})
    assert p.modified_lines == ModifiedLines(
        additions=ComparisonExpr(CompareOp.GREATER_THAN, 100),
        total=ComparisonExpr(CompareOp.LESS_THAN, 5),
    )


def test_branch_and_keys_config():
    p = Predicates.from_config(
        {
            "targets_branch": {"pattern": "^master$"},
            "from_branch": {"pattern": "^feature/"},
            "has_valid_signatures_by_keys": {"key_ids": ["3AA5C34371567BD2"]},
            "has_successful_status": ["build"],
        }
    )
    assert p.targets_branch == TargetsBranch(pattern=Regexp("^master$"))
    assert p.from_branch == FromBranch(pattern=Regexp("^feature/"))
    assert p.has_valid_signatures_by_keys == HasValidSignaturesByKeys(key_ids=["3AA5C34371567BD2"])
    assert p.has_successful_status == HasSuccessfulStatus(statuses=["build"])


def test_configured_predicates_evaluate():
    p = Predicates.from_config({"has_labels": ["foo"], "title": {"not_matches": ["^test"]}})
    ctx = PullContext(labels_value=["foo"], title_value="feat: x")
    assert [pred.evaluate(ctx).satisfied for pred in p.predicates()] == [True, True]


@pytest.mark.parametrize(
    "config",
    [
        {"no_such_predicate": {}},
        {"changed_files": {"paths": ["("]}},
        {"changed_files": {"unknown": []}},
        {"has_author_in": {"admins": "yes"}},
        {"author_is_only_contributor": "true"},
        {"modified_lines": {"additions": "= 10"}},
        {"has_labels": "foo"},
        ["not", "a", "mapping"],
    ],
)
def test_invalid_config_raises(config):
    with pytest.raises(ValueError):
        Predicates.from_config(config)