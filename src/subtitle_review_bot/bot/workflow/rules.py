"""The five reaction rules.

Each rule reads current state through the tracker, decides, and writes back
through the tracker. Rules never share in-memory results; the labels and
comments on GitHub are the only coordination between them.

An unmet precondition is the normal outcome for most events. It is reported
as an outcome with ``acted=False`` and is never an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from subtitle_review_bot.bot.github.tracker import Tracker
from subtitle_review_bot.bot.workflow.events import (
    CommentCreated,
    PullClosed,
    PullOpened,
    TaskOpened,
)
from subtitle_review_bot.bot.workflow.pulls import is_upload
from subtitle_review_bot.bot.workflow.references import ReferenceResolver
from subtitle_review_bot.bot.workflow.status import StatusTransitions
from subtitle_review_bot.bot.workflow.upload import (
    UploadCommand,
    UploadProcessor,
    parse_upload_payload,
)
from subtitle_review_bot.labels import LabelRegistry, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReactionOutcome:
    rule: str
    acted: bool
    message: str
    details: dict[str, object] | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {"rule": self.rule, "acted": self.acted, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ReactionRule(Protocol):
    """A deterministic reaction to one kind of event."""

    name: str

    def react(self, event: Any) -> ReactionOutcome: ...


@dataclass(frozen=True, slots=True)
class WorkflowServices:
    """Everything a rule may use. Built once per process and shared read-only."""

    tracker: Tracker
    registry: LabelRegistry
    references: ReferenceResolver
    transitions: StatusTransitions
    uploads: UploadProcessor

    @classmethod
    def build(
        cls,
        *,
        tracker: Tracker,
        registry: LabelRegistry,
        base_branch: str,
        upload_prefix: str,
        uploads: UploadProcessor | None = None,
    ) -> WorkflowServices:
        return cls(
            tracker=tracker,
            registry=registry,
            references=ReferenceResolver(tracker=tracker, registry=registry),
            transitions=StatusTransitions(tracker=tracker, registry=registry),
            uploads=uploads
            or UploadProcessor(tracker=tracker, base_branch=base_branch, prefix=upload_prefix),
        )


@dataclass(frozen=True, slots=True)
class _Rule:
    services: WorkflowServices
    name = "rule"

    def _skip(self, reason: str, **details: object) -> ReactionOutcome:
        logger.debug("Rule declined", extra={"rule": self.name, "reason": reason, **details})
        return ReactionOutcome(rule=self.name, acted=False, message=reason, details=details or None)

    def _done(self, message: str, **details: object) -> ReactionOutcome:
        logger.info(message, extra={"rule": self.name, **details})
        return ReactionOutcome(rule=self.name, acted=True, message=message, details=details or None)


@dataclass(frozen=True, slots=True)
class LabelNewTask(_Rule):
    """Tag a new issue with its channel and queue it for translation."""

    name = "label-new-task"

    def react(self, event: TaskOpened) -> ReactionOutcome:
        channels = self.services.registry.channels_in_title(event.title)
        if not channels:
            return self._skip("Title names no channel", task_number=event.number)

        labels = [c.label for c in channels] + [TaskStatus.QUEUED_FOR_TRANSLATION.value]
        self.services.tracker.add_labels(event.number, labels)
        return self._done("Task labelled", task_number=event.number, labels=labels)


@dataclass(frozen=True, slots=True)
class _ReviewRule(_Rule):
    def _mark_task_in_review(self, *, pull_number: int, reference_text: str) -> ReactionOutcome:
        services = self.services
        if not is_upload(services.tracker, pull_number):
            return self._skip("Pull is not a subtitle upload", pull_number=pull_number)

        task_number = services.references.find_task_reference(reference_text)
        if task_number is None:
            return self._skip("No task reference", pull_number=pull_number)

        if not services.tracker.get_issue_or_pull(task_number).is_open:
            return self._skip("Task is closed", pull_number=pull_number, task_number=task_number)

        channel = services.references.channel_label_of(task_number)
        if channel is None:
            return self._skip(
                "Task has no single channel", pull_number=pull_number, task_number=task_number
            )

        services.transitions.set_status(task_number, TaskStatus.QUEUED_FOR_REVIEW)
        services.tracker.add_labels(pull_number, [channel.label])
        return self._done(
            "Task queued for review",
            pull_number=pull_number,
            task_number=task_number,
            channel=channel.label,
        )


@dataclass(frozen=True, slots=True)
class ReviewOnPullOpened(_ReviewRule):
    """A new upload that references a task moves the task to review."""

    name = "review-on-pull-opened"

    def react(self, event: PullOpened) -> ReactionOutcome:
        return self._mark_task_in_review(pull_number=event.number, reference_text=event.body)


@dataclass(frozen=True, slots=True)
class ReviewOnPullComment(_ReviewRule):
    """A comment on an open upload that references a task moves the task to review."""

    name = "review-on-pull-comment"

    def react(self, event: CommentCreated) -> ReactionOutcome:
        if not event.on_pull:
            return self._skip("Comment is not on a pull request", number=event.issue_number)
        if event.issue_state != "open":
            return self._skip("Pull is not open", pull_number=event.issue_number)
        return self._mark_task_in_review(
            pull_number=event.issue_number, reference_text=event.comment_body
        )


@dataclass(frozen=True, slots=True)
class UploadOnMerge(_Rule):
    """A merged upload moves its task to the upload queue."""

    name = "upload-on-merge"

    def react(self, event: PullClosed) -> ReactionOutcome:
        services = self.services
        if not event.merged:
            return self._skip("Pull closed without merge", pull_number=event.number)
        if not is_upload(services.tracker, event.number):
            return self._skip("Pull is not a subtitle upload", pull_number=event.number)

        task_number = services.references.find_task_reference_across_history(event.number)
        if task_number is None:
            return self._skip("No task reference", pull_number=event.number)
        if not services.tracker.get_issue_or_pull(task_number).is_open:
            return self._skip("Task is closed", pull_number=event.number, task_number=task_number)
        if services.references.channel_label_of(task_number) is None:
            return self._skip(
                "Task has no single channel", pull_number=event.number, task_number=task_number
            )

        services.transitions.set_status(task_number, TaskStatus.QUEUED_FOR_UPLOAD)
        return self._done("Task queued for upload", pull_number=event.number, task_number=task_number)


@dataclass(frozen=True, slots=True)
class UploadFromCommand(_Rule):
    """The assignee's upload command becomes a pull request."""

    name = "upload-from-command"

    def react(self, event: CommentCreated) -> ReactionOutcome:
        services = self.services
        if event.on_pull:
            return self._skip("Comment is on a pull request", number=event.issue_number)
        if event.assignee_id is None:
            return self._skip("Task has no assignee", task_number=event.issue_number)
        if event.author_id != event.assignee_id:
            return self._skip("Comment author is not the assignee", task_number=event.issue_number)

        channel = services.registry.sole_channel(event.issue_labels)
        if channel is None:
            return self._skip("Task has no single channel", task_number=event.issue_number)

        payload = parse_upload_payload(event.comment_body, services.uploads.prefix)
        if payload is None:
            return self._skip("Comment is not an upload command", task_number=event.issue_number)

        artifacts = services.uploads.run(
            UploadCommand(
                task_number=event.issue_number,
                task_title=event.issue_title,
                channel=channel,
                payload=payload,
                comment_id=event.comment_id,
                author_login=event.author_login,
            )
        )
        return self._done(
            "Upload pull request created",
            task_number=event.issue_number,
            pull_number=artifacts.pull_number,
            branch=artifacts.branch,
        )
