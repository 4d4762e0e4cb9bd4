"""Turn an assignee's upload command into a pull request.

The upload is an ordered pipeline of tracker writes. GitHub offers no
transaction across them, so each step is a named failure point and nothing is
rolled back:

- ``resolve-base``, ``create-tree``, ``create-commit``: safe to repeat; the
  objects they create are content-addressed and inert until referenced.
- ``create-ref``: not repeatable; the branch name is taken after the first run.
  A name collision fails this step and leaves an unreferenced commit behind.
- ``create-pull``: not repeatable; every run opens a new pull request.
- ``fold-comment``: idempotent; rewrites the comment to the same body.
- ``confirm``: not repeatable; every run posts a new comment.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from enum import Enum

from subtitle_review_bot.bot.github.tracker import Tracker, TransportError, TreeEntry
from subtitle_review_bot.bot.workflow.pulls import SUBTITLES_ROOT
from subtitle_review_bot.labels import Channel

logger = logging.getLogger(__name__)

_FOLD_SUMMARY = "Subtitles uploaded as pull request"
_CODE_FENCE = "```"


class UploadStep(str, Enum):
    RESOLVE_BASE = "resolve-base"
    CREATE_TREE = "create-tree"
    CREATE_COMMIT = "create-commit"
    CREATE_REF = "create-ref"
    CREATE_PULL = "create-pull"
    FOLD_COMMENT = "fold-comment"
    CONFIRM = "confirm"


@dataclass(frozen=True, slots=True)
class UploadCommand:
    task_number: int
    task_title: str
    channel: Channel
    payload: str
    comment_id: int
    author_login: str


@dataclass(slots=True)
class UploadArtifacts:
    """What the pipeline has created so far."""

    base_sha: str | None = None
    tree_sha: str | None = None
    commit_sha: str | None = None
    branch: str | None = None
    pull_number: int | None = None
    comment_folded: bool = False
    confirmed: bool = False

    def to_json(self) -> dict[str, object]:
        return asdict(self)


class UploadStepFailed(TransportError):
    """A pipeline step failed; earlier steps' artifacts remain in place."""

    def __init__(self, step: UploadStep, artifacts: UploadArtifacts, cause: TransportError) -> None:
        super().__init__(f"Upload failed at {step.value}: {cause}", status_code=cause.status_code)
        self.step = step
        self.artifacts = artifacts


def parse_upload_payload(comment_body: str, prefix: str) -> str | None:
    """Return the literal text after ``prefix``, or None if this is not a command."""

    if not comment_body.startswith(prefix):
        return None
    payload = comment_body[len(prefix) :]
    return payload or None


def upload_file_path(command: UploadCommand) -> str:
    return f"{SUBTITLES_ROOT}/{command.channel.folder}/subtitles-issue-{command.task_number}"


def folded_comment_body(prefix: str, payload: str) -> str:
    return (
        f"{prefix}\n\n<details><summary>{_FOLD_SUMMARY}</summary>"
        f"{_CODE_FENCE}\n{payload}\n{_CODE_FENCE}</details>"
    )


@dataclass(frozen=True, slots=True)
class UploadProcessor:
    tracker: Tracker
    base_branch: str
    prefix: str
    rng: random.Random = field(default_factory=random.Random)

    def branch_name(self, task_number: int) -> str:
        # Ten names per task; a collision fails create-ref.
        return f"issue-{task_number}-{self.rng.randrange(10)}"

    @contextmanager
    def _step(self, step: UploadStep, artifacts: UploadArtifacts) -> Iterator[None]:
        try:
            yield
        except TransportError as e:
            logger.error(
                "Upload step failed",
                extra={"step": step.value, "artifacts": artifacts.to_json(), "error": str(e)},
            )
            raise UploadStepFailed(step, artifacts, e) from e

    def run(self, command: UploadCommand) -> UploadArtifacts:
        artifacts = UploadArtifacts()
        task = command.task_number
        author = command.author_login

        with self._step(UploadStep.RESOLVE_BASE, artifacts):
            base_sha = self.tracker.get_branch_tip(self.base_branch)
            artifacts.base_sha = base_sha

        with self._step(UploadStep.CREATE_TREE, artifacts):
            entry = TreeEntry(path=upload_file_path(command), content=command.payload)
            tree_sha = self.tracker.create_tree(base_sha, [entry])
            artifacts.tree_sha = tree_sha

        with self._step(UploadStep.CREATE_COMMIT, artifacts):
            commit_sha = self.tracker.create_commit(
                tree_sha,
                [base_sha],
                f"Upload subtitles for issue #{task} on behalf of @{author}",
            )
            artifacts.commit_sha = commit_sha

        branch = self.branch_name(task)
        with self._step(UploadStep.CREATE_REF, artifacts):
            self.tracker.create_ref(f"refs/heads/{branch}", commit_sha)
            artifacts.branch = branch

        with self._step(UploadStep.CREATE_PULL, artifacts):
            pull_number = self.tracker.create_pull(
                branch,
                self.base_branch,
                command.task_title,
                f"#{task}\n\nUploaded on behalf of @{author}",
            )
            artifacts.pull_number = pull_number

        with self._step(UploadStep.FOLD_COMMENT, artifacts):
            self.tracker.update_comment(
                command.comment_id, folded_comment_body(self.prefix, command.payload)
            )
            artifacts.comment_folded = True

        with self._step(UploadStep.CONFIRM, artifacts):
            self.tracker.create_comment(
                task, f"@{author}, I've uploaded your subtitles as #{pull_number}."
            )
            artifacts.confirmed = True

        logger.info(
            "Subtitles uploaded",
            extra={"task_number": task, "channel": command.channel.label, **artifacts.to_json()},
        )
        return artifacts
