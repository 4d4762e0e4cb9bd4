"""GitHub access for the workflow, behind the `Tracker` protocol."""

from subtitle_review_bot.bot.github.tracker import Tracker, TransportError

__all__ = ["Tracker", "TransportError"]
