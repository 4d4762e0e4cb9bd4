from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from subtitle_review_bot.bot.workflow.events import (
    CommentCreated,
    PullClosed,
    PullOpened,
    TaskOpened,
    WorkflowEvent,
    parse_event,
)
from subtitle_review_bot.bot.workflow.rules import (
    LabelNewTask,
    ReactionOutcome,
    ReactionRule,
    ReviewOnPullComment,
    ReviewOnPullOpened,
    UploadFromCommand,
    UploadOnMerge,
    WorkflowServices,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchResult:
    event: str
    handled: bool
    outcomes: tuple[ReactionOutcome, ...] = ()

    def to_json(self) -> dict[str, object]:
        return {
            "event": self.event,
            "handled": self.handled,
            "outcomes": [o.to_json() for o in self.outcomes],
        }


class Dispatcher:
    """Route each event to the rules that react to its type.

    Rules for one event run sequentially, in registration order. A
    TransportError from any rule propagates and skips the remaining rules; a
    redelivery re-derives everything from tracker state.
    """

    def __init__(self, services: WorkflowServices) -> None:
        self._rules: dict[type, tuple[ReactionRule, ...]] = {
            TaskOpened: (LabelNewTask(services),),
            PullOpened: (ReviewOnPullOpened(services),),
            CommentCreated: (ReviewOnPullComment(services), UploadFromCommand(services)),
            PullClosed: (UploadOnMerge(services),),
        }

    def rules_for(self, event: WorkflowEvent) -> tuple[ReactionRule, ...]:
        return self._rules.get(type(event), ())

    def dispatch(self, event: WorkflowEvent) -> tuple[ReactionOutcome, ...]:
        outcomes: list[ReactionOutcome] = []
        for rule in self.rules_for(event):
            outcomes.append(rule.react(event))
        return tuple(outcomes)

    def handle_delivery(self, event_name: str, payload: dict[str, Any]) -> DispatchResult:
        """Parse a raw webhook delivery and dispatch it."""

        action = payload.get("action")
        label = f"{event_name}.{action}" if isinstance(action, str) else event_name
        event = parse_event(event_name, payload)
        if event is None:
            logger.debug("Ignoring delivery", extra={"event": label})
            return DispatchResult(event=label, handled=False)

        outcomes = self.dispatch(event)
        logger.info(
            "Delivery handled",
            extra={"event": label, "acted": [o.rule for o in outcomes if o.acted]},
        )
        return DispatchResult(event=label, handled=True, outcomes=outcomes)
