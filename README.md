# policybot

Define review policies for pull requests in YAML and evaluate them
against the state of a pull request: its author, commits, comments,
reviews, labels, changed files, statuses and signatures.

A policy has two halves:

- **approval** – a list of named approval rules, combined with `and`,
  where any entry may itself be an `and` or `or` conjunction (nested at
  most ten levels deep). Each rule can be limited by predicates (`if`)
  and says who may approve and how many approvals it needs
  (`requires`).
- **disapproval** – predicates that block the pull request outright,
  and the users who may block it by comment or review (and lift the
  block again).

Evaluation yields a tree of `policybot.result.Result` objects, each with
a status of `skipped`, `pending`, `approved` or `disapproved`, a
human-readable description and, where something went wrong, an `error`.
A disapproval always wins over the approval result.

## Installing

```
pip install .
```

## Writing a policy

```yaml
policy:
  approval:
    - or:
      - docs-only
      - two-maintainers
  disapproval:
    requires:
      organizations: ["my-org"]

approval_rules:
  - name: docs-only
    if:
      only_changed_files:
        paths: ["^docs/.*"]
    requires:
      count: 1

  - name: two-maintainers
    options:
      invalidate_on_push: true
      request_review:
        enabled: true
        mode: random-users
    requires:
      count: 2
      teams: ["my-org/maintainers"]
```

Who may act is given by `users`, `teams` (`org/team`),
`organizations`, `permissions` (`read`, `triage`, `write`, `maintain`,
`admin`) and the older flags `admins` and `write_collaborators`; a user
meeting any one of them qualifies.

Rule `options` are `allow_author`, `allow_contributor`,
`invalidate_on_push`, `ignore_edited_comments`, `ignore_update_merges`,
`ignore_commits_by`, `request_review` (`enabled`, and `mode` of
`all-users`, `random-users` or `teams`) and `methods` (`comments`,
`comment_patterns`, `github_review`, `github_review_comment_patterns`).
Without `methods`, a comment containing `:+1:` or 👍 or an approving
review counts as an approval. The disapproval policy takes
`options.methods.disapprove` and `options.methods.revoke`, which default
to `:-1:`/👎 or a changes-requested review, and `:+1:`/👍 or an
approving review.

Predicates available under `if:` are `changed_files`,
`only_changed_files`, `has_author_in`, `has_contributor_in`,
`only_has_contributors_in`, `author_is_only_contributor`,
`targets_branch`, `from_branch`, `modified_lines` (comparisons such as
`"> 100"` for `additions`, `deletions` or `total`),
`has_successful_status`, `has_labels`, `title`,
`has_valid_signatures`, `has_valid_signatures_by` and
`has_valid_signatures_by_keys`.

Unknown keys are rejected with `ValueError`; a malformed approval tree
or a reference to an undefined rule raises
`policybot.approval.parse.PolicyError`.

## Evaluating a policy

Describe the pull request with a `policybot.pull.PullContext`, then load
and evaluate the policy:

```python
from policybot.policy import load_config, parse_policy
from policybot.pull import PullContext

with open("policy.yml") as f:
    config = load_config(f.read())
evaluator = parse_policy(config)

prctx = PullContext(author_value="someone", ...)  # commits, comments, reviews, ...
result = evaluator.evaluate(prctx)

print(result.status, result.status_description)
```

`evaluator.trigger()` returns a `policybot.trigger.Trigger` flag set
naming the kinds of pull request events (commit, comment, review, label,
status, pull request) that can change the outcome, so evaluation can be
skipped when nothing relevant changed.

## Requesting reviewers

```python
import random
from policybot.reviewer import find_requests, select_reviewers

requests = find_requests(result)
selection = select_reviewers(prctx, requests, random.Random())
to_add = selection.difference(existing_reviewers)  # list of pull.Reviewer
if not to_add.is_empty():
    print(to_add.users, to_add.teams)
```

`find_requests` collects the pending leaf rules that have
`request_review` enabled; the pull request author is never selected.

## What this package does not do

It does not talk to GitHub or any other host. It has no webhook server,
no command-line tool, and it does not fetch pull request data, post
statuses or request reviewers itself. `PullContext` is an in-memory
snapshot that the caller fills in; the package only evaluates policies
against it and says which reviewers to request. Messages are written to
the standard `logging` module at debug level.

## Running the tests

```
pip install ".[test]"
pytest
```