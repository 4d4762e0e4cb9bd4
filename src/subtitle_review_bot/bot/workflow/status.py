from __future__ import annotations

import logging
from dataclasses import dataclass

from subtitle_review_bot.bot.github.tracker import Tracker
from subtitle_review_bot.labels import LabelRegistry, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusTransitions:
    """Keep exactly one status label on a task.

    Statuses form a flat set: any status may replace any other. The removal and
    the addition are separate tracker calls, so a failure in between can leave
    the task with no status until the next successful transition.
    """

    tracker: Tracker
    registry: LabelRegistry

    def current_statuses(self, task_number: int) -> list[TaskStatus]:
        return [
            TaskStatus(label)
            for label in self.tracker.list_labels(task_number)
            if self.registry.is_status_label(label)
        ]

    def set_status(self, task_number: int, status: TaskStatus) -> None:
        previous = self.current_statuses(task_number)
        for stale in previous:
            self.tracker.remove_label(task_number, stale.value)
        self.tracker.add_labels(task_number, [status.value])
        logger.info(
            "Task status set",
            extra={
                "task_number": task_number,
                "status": status.value,
                "previous": [s.value for s in previous],
            },
        )
