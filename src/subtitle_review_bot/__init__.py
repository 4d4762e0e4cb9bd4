"""Subtitle review bot.

Drives the translation workflow of a subtitle repository through GitHub labels:
- tags new task issues with their channel and initial status
- links subtitle upload pull requests back to their task
- moves tasks through review and upload as pull requests open and merge
- turns an assignee's upload command into a pull request
"""

__version__ = "0.1.0"

from subtitle_review_bot.bot.config import BotSettings

__all__ = ["__version__", "BotSettings"]
