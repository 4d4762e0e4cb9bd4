"""Domain events parsed from GitHub webhook deliveries.

Only the payload fields the reaction rules read are kept. Any delivery that
does not map to one of these events parses to ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TaskOpened:
    number: int
    title: str


@dataclass(frozen=True, slots=True)
class PullOpened:
    number: int
    body: str


@dataclass(frozen=True, slots=True)
class PullClosed:
    number: int
    merged: bool


@dataclass(frozen=True, slots=True)
class CommentCreated:
    issue_number: int
    on_pull: bool
    issue_state: str
    issue_title: str
    issue_labels: tuple[str, ...]
    assignee_id: int | None
    comment_id: int
    comment_body: str
    author_id: int | None
    author_login: str


WorkflowEvent = TaskOpened | PullOpened | PullClosed | CommentCreated


class MalformedPayloadError(ValueError):
    """A delivery names a handled event but lacks the fields it needs."""


def _obj(value: object, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedPayloadError(f"Payload is missing object: {what}")
    return value


def _positive_int(value: object, what: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise MalformedPayloadError(f"Payload is missing positive integer: {what}")
    return value


def _optional_int(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def parse_event(event_name: str, payload: dict[str, Any]) -> WorkflowEvent | None:
    """Map a GitHub webhook (``X-GitHub-Event`` + payload) to a domain event."""

    action = payload.get("action")

    if event_name == "issues" and action == "opened":
        issue = _obj(payload.get("issue"), "issue")
        return TaskOpened(
            number=_positive_int(issue.get("number"), "issue.number"),
            title=_text(issue.get("title")),
        )

    if event_name == "pull_request" and action in {"opened", "closed"}:
        pull = _obj(payload.get("pull_request"), "pull_request")
        number = _positive_int(pull.get("number"), "pull_request.number")
        if action == "opened":
            return PullOpened(number=number, body=_text(pull.get("body")))
        return PullClosed(number=number, merged=bool(pull.get("merged")))

    # Edits are deliberately not handled: the bot rewrites upload comments itself.
    if event_name == "issue_comment" and action == "created":
        issue = _obj(payload.get("issue"), "issue")
        comment = _obj(payload.get("comment"), "comment")
        sender = payload.get("sender")
        author = sender if isinstance(sender, dict) else comment.get("user")
        author = author if isinstance(author, dict) else {}
        assignee = issue.get("assignee")
        labels = issue.get("labels")
        return CommentCreated(
            issue_number=_positive_int(issue.get("number"), "issue.number"),
            on_pull=bool(issue.get("pull_request")),
            issue_state=_text(issue.get("state")),
            issue_title=_text(issue.get("title")),
            issue_labels=tuple(
                item["name"]
                for item in (labels if isinstance(labels, list) else [])
                if isinstance(item, dict) and isinstance(item.get("name"), str)
            ),
            assignee_id=_optional_int(assignee.get("id")) if isinstance(assignee, dict) else None,
            comment_id=_positive_int(comment.get("id"), "comment.id"),
            comment_body=_text(comment.get("body")),
            author_id=_optional_int(author.get("id")),
            author_login=_text(author.get("login")),
        )

    return None
