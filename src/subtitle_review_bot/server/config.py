"""Configuration for the webhook server."""

from __future__ import annotations

from pydantic import Field

from subtitle_review_bot.bot.config import BotSettings


class ServerSettings(BotSettings):
    """Bot settings plus the HTTP surface.

    Notes:
        - An empty webhook secret disables signature verification. This is only
          meant for local replay and tests; deployments should always set it.
    """

    webhook_secret: str = Field(
        default="",
        validation_alias="SUBTITLE_BOT_WEBHOOK_SECRET",
        description="Secret configured on the GitHub webhook (X-Hub-Signature-256).",
    )
    host: str = Field(default="127.0.0.1", validation_alias="SUBTITLE_BOT_HOST")
    port: int = Field(default=3000, ge=1, le=65535, validation_alias="SUBTITLE_BOT_PORT")
