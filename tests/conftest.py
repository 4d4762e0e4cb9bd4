"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import pytest

from subtitle_review_bot.bot.github.tracker import (
    ChangedFile,
    Comment,
    IssueOrPull,
    TransportError,
    TreeEntry,
)
from subtitle_review_bot.labels import LabelRegistry


@dataclass
class FakeTracker:
    """In-memory stand-in for GitHub with the tracker's no-op semantics.

    Set ``fail_on`` to method names that should raise TransportError.
    """

    issues: dict[int, IssueOrPull] = field(default_factory=dict)
    labels: dict[int, list[str]] = field(default_factory=dict)
    comments: dict[int, list[Comment]] = field(default_factory=dict)
    files: dict[int, list[str]] = field(default_factory=dict)
    branches: dict[str, str] = field(default_factory=lambda: {"master": "base-sha"})
    refs: dict[str, str] = field(default_factory=dict)
    trees: list[tuple[str, list[TreeEntry]]] = field(default_factory=list)
    commits: list[tuple[str, list[str], str]] = field(default_factory=list)
    pulls_created: list[dict[str, object]] = field(default_factory=list)
    comment_bodies: dict[int, str] = field(default_factory=dict)
    created_comments: list[tuple[int, str]] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)
    next_number: int = 100

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise TransportError(f"{name} failed", status_code=500)

    # Seeding helpers

    def add_issue(
        self,
        number: int,
        *,
        title: str = "",
        body: str = "",
        state: str = "open",
        labels: Sequence[str] = (),
        assignee_id: int | None = None,
    ) -> None:
        self.issues[number] = IssueOrPull(
            number=number,
            state=state,
            title=title,
            body=body,
            assignee_id=assignee_id,
            assignee_login=f"user{assignee_id}" if assignee_id is not None else None,
        )
        self.labels[number] = list(labels)

    def add_pull(
        self,
        number: int,
        *,
        body: str = "",
        files: Sequence[str] = (),
        state: str = "open",
        merged: bool = False,
        comments: Sequence[str] = (),
    ) -> None:
        self.issues[number] = IssueOrPull(
            number=number, state=state, title=f"Pull {number}", body=body, is_pull=True, merged=merged
        )
        self.labels[number] = []
        self.files[number] = list(files)
        self.comments[number] = [
            Comment(id=number * 1000 + i, body=text, author_id=7, author_login="reviewer")
            for i, text in enumerate(comments)
        ]

    def close_issue(self, number: int) -> None:
        self.issues[number] = replace(self.issues[number], state="closed")

    def close(self) -> None:
        self.calls.append("close")

    # Tracker protocol

    def get_issue_or_pull(self, number: int) -> IssueOrPull:
        self._call("get_issue_or_pull")
        if number not in self.issues:
            raise TransportError("Not Found", status_code=404)
        return self.issues[number]

    def list_labels(self, number: int) -> list[str]:
        self._call("list_labels")
        return list(self.labels.get(number, []))

    def add_labels(self, number: int, names: Sequence[str]) -> None:
        self._call("add_labels")
        current = self.labels.setdefault(number, [])
        for name in names:
            if name not in current:
                current.append(name)

    def remove_label(self, number: int, name: str) -> None:
        self._call("remove_label")
        current = self.labels.get(number, [])
        if name in current:
            current.remove(name)

    def list_comments(self, number: int) -> list[Comment]:
        self._call("list_comments")
        return list(self.comments.get(number, []))

    def list_changed_files(self, pull_number: int) -> list[ChangedFile]:
        self._call("list_changed_files")
        return [ChangedFile(path=p) for p in self.files.get(pull_number, [])]

    def get_branch_tip(self, branch: str) -> str:
        self._call("get_branch_tip")
        if branch not in self.branches:
            raise TransportError("Branch not found", status_code=404)
        return self.branches[branch]

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str:
        self._call("create_tree")
        self.trees.append((base_sha, list(entries)))
        return f"tree-{len(self.trees)}"

    def create_commit(self, tree_sha: str, parents: Sequence[str], message: str) -> str:
        self._call("create_commit")
        self.commits.append((tree_sha, list(parents), message))
        return f"commit-{len(self.commits)}"

    def create_ref(self, ref: str, sha: str) -> None:
        self._call("create_ref")
        if ref in self.refs:
            raise TransportError("Reference already exists", status_code=422)
        self.refs[ref] = sha

    def create_pull(self, head: str, base: str, title: str, body: str) -> int:
        self._call("create_pull")
        self.next_number += 1
        number = self.next_number
        self.pulls_created.append(
            {"number": number, "head": head, "base": base, "title": title, "body": body}
        )
        return number

    def update_comment(self, comment_id: int, body: str) -> None:
        self._call("update_comment")
        self.comment_bodies[comment_id] = body

    def create_comment(self, number: int, body: str) -> None:
        self._call("create_comment")
        self.created_comments.append((number, body))


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def registry() -> LabelRegistry:
    return LabelRegistry.default()
