"""FastAPI server adapter for subtitle-review-bot.

Design intent:
- Keep workflow logic in `subtitle_review_bot.bot.*`
- Keep server-specific concerns (routing, signature checks, status codes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from subtitle_review_bot.server.app import create_app
