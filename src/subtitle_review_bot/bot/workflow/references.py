"""Resolve the task issue a pull request refers to.

A pull request is linked to its task only through free text: the first ``#<n>``
token that names an issue carrying a channel label. The link is never stored;
it is recomputed from the current text on every event.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from subtitle_review_bot.bot.github.tracker import Tracker
from subtitle_review_bot.labels import Channel, LabelRegistry

logger = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"#(\d+)")


def iter_reference_candidates(text: str | None) -> Iterator[int]:
    """Yield every ``#<n>`` number in ``text`` in order of appearance."""

    if not text:
        return
    for match in _REFERENCE_RE.finditer(text):
        number = int(match.group(1))
        if number > 0:
            yield number


@dataclass(frozen=True, slots=True)
class ReferenceResolver:
    tracker: Tracker
    registry: LabelRegistry

    def channel_label_of(self, task_number: int) -> Channel | None:
        """The single channel currently on the task, or None if zero/ambiguous."""

        return self.registry.sole_channel(self.tracker.list_labels(task_number))

    def find_task_reference(self, text: str | None) -> int | None:
        # Candidates are probed one at a time; the first textual mention wins.
        for number in iter_reference_candidates(text):
            if self.channel_label_of(number) is not None:
                return number
            logger.debug("Skipping reference without channel label", extra={"number": number})
        return None

    def find_task_reference_across_history(self, pull_number: int) -> int | None:
        """Search the pull body, then its comments oldest first."""

        pull = self.tracker.get_issue_or_pull(pull_number)
        found = self.find_task_reference(pull.body)
        if found is not None:
            return found
        for comment in self.tracker.list_comments(pull_number):
            found = self.find_task_reference(comment.body)
            if found is not None:
                return found
        return None
