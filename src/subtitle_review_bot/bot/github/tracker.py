"""The capability surface the workflow needs from the issue tracker.

Workflow code depends only on :class:`Tracker`. Every call is scoped to the one
repository the bot manages and may raise :class:`TransportError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


class TransportError(RuntimeError):
    """A tracker call failed (network, auth, rate limit or unexpected response).

    Workflow code never catches this. It propagates to the host, which may
    redeliver the event.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class IssueOrPull:
    """Minimal issue/pull request metadata fetched from the tracker."""

    number: int
    state: str
    title: str
    body: str
    is_pull: bool = False
    merged: bool = False
    assignee_id: int | None = None
    assignee_login: str | None = None

    @property
    def is_open(self) -> bool:
        return self.state == "open"


@dataclass(frozen=True, slots=True)
class Comment:
    id: int
    body: str
    author_id: int | None
    author_login: str


@dataclass(frozen=True, slots=True)
class ChangedFile:
    path: str


@dataclass(frozen=True, slots=True)
class TreeEntry:
    path: str
    content: str
    mode: str = "100644"
    type: str = "blob"

    def to_json(self) -> dict[str, str]:
        return {"path": self.path, "mode": self.mode, "type": self.type, "content": self.content}


class Tracker(Protocol):
    def get_issue_or_pull(self, number: int) -> IssueOrPull: ...

    def list_labels(self, number: int) -> list[str]: ...

    def add_labels(self, number: int, names: Sequence[str]) -> None: ...

    def remove_label(self, number: int, name: str) -> None: ...

    def list_comments(self, number: int) -> list[Comment]: ...

    def list_changed_files(self, pull_number: int) -> list[ChangedFile]: ...

    def get_branch_tip(self, branch: str) -> str: ...

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str: ...

    def create_commit(self, tree_sha: str, parents: Sequence[str], message: str) -> str: ...

    def create_ref(self, ref: str, sha: str) -> None: ...

    def create_pull(self, head: str, base: str, title: str, body: str) -> int: ...

    def update_comment(self, comment_id: int, body: str) -> None: ...

    def create_comment(self, number: int, body: str) -> None: ...
