"""Unit tests for webhook payload parsing."""

from __future__ import annotations

import pytest

from subtitle_review_bot.bot.workflow.events import (
    CommentCreated,
    MalformedPayloadError,
    PullClosed,
    PullOpened,
    TaskOpened,
    parse_event,
)


def _comment_payload(*, pull: bool) -> dict[str, object]:
    issue: dict[str, object] = {
        "number": 42,
        "state": "open",
        "title": "[美食作家王刚] ep1",
        "labels": [{"name": "美食作家王刚"}, {"name": "待翻译"}],
        "assignee": {"id": 501, "login": "translator"},
    }
    if pull:
        issue["pull_request"] = {"url": "https://api.github.com/repos/o/r/pulls/42"}
    return {
        "action": "created",
        "issue": issue,
        "comment": {"id": 9001, "body": "bot, please upload\nsubs", "user": {"id": 1}},
        "sender": {"id": 501, "login": "translator"},
    }


def test_issue_opened() -> None:
    event = parse_event(
        "issues", {"action": "opened", "issue": {"number": 42, "title": "[美食作家王刚] ep1"}}
    )
    assert event == TaskOpened(number=42, title="[美食作家王刚] ep1")


def test_pull_opened_with_null_body() -> None:
    event = parse_event(
        "pull_request", {"action": "opened", "pull_request": {"number": 43, "body": None}}
    )
    assert event == PullOpened(number=43, body="")


def test_pull_closed_carries_merge_flag() -> None:
    event = parse_event(
        "pull_request", {"action": "closed", "pull_request": {"number": 43, "merged": True}}
    )
    assert event == PullClosed(number=43, merged=True)


def test_issue_comment_created() -> None:
    event = parse_event("issue_comment", _comment_payload(pull=False))

    assert isinstance(event, CommentCreated)
    assert event.on_pull is False
    assert event.issue_labels == ("美食作家王刚", "待翻译")
    assert event.assignee_id == 501
    assert event.author_id == 501
    assert event.author_login == "translator"
    assert event.comment_id == 9001


def test_comment_on_pull_is_flagged() -> None:
    event = parse_event("issue_comment", _comment_payload(pull=True))

    assert isinstance(event, CommentCreated)
    assert event.on_pull is True


def test_unassigned_issue_has_no_assignee() -> None:
    payload = _comment_payload(pull=False)
    issue = payload["issue"]
    assert isinstance(issue, dict)
    issue["assignee"] = None

    event = parse_event("issue_comment", payload)

    assert isinstance(event, CommentCreated)
    assert event.assignee_id is None


@pytest.mark.parametrize(
    ("name", "action"),
    [
        ("issue_comment", "edited"),
        ("issues", "labeled"),
        ("pull_request", "synchronize"),
        ("push", None),
    ],
)
def test_unhandled_deliveries_parse_to_none(name: str, action: str | None) -> None:
    assert parse_event(name, {"action": action}) is None


def test_handled_event_without_required_fields_is_malformed() -> None:
    with pytest.raises(MalformedPayloadError):
        parse_event("issues", {"action": "opened", "issue": {"title": "no number"}})
