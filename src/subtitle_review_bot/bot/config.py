"""Configuration for the subtitle review bot.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

To avoid collisions with other tools that may also use `GITHUB_TOKEN`, this
project uses a dedicated token variable: `SUBTITLE_BOT_GITHUB_TOKEN`.

The channel catalog is part of the configuration: two JSON lists that are
paired by position. A misaligned catalog fails validation at startup.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtitle_review_bot.labels import (
    DEFAULT_CHANNEL_FOLDERS,
    DEFAULT_CHANNEL_LABELS,
    LabelRegistry,
)

DEFAULT_UPLOAD_PREFIX = "bot, please upload"


class BotSettings(BaseSettings):
    """Settings for the workflow bot.

    Environment variables:
    - SUBTITLE_BOT_GITHUB_TOKEN
    - SUBTITLE_BOT_REPOSITORY          (owner/repo)
    - GITHUB_BASE_URL                  (optional)
    - LOG_LEVEL                        (optional)
    - SUBTITLE_BOT_BASE_BRANCH         (optional)
    - SUBTITLE_BOT_UPLOAD_PREFIX       (optional)
    - SUBTITLE_BOT_CHANNEL_LABELS      (optional, JSON list)
    - SUBTITLE_BOT_CHANNEL_FOLDERS     (optional, JSON list)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `BotSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="SUBTITLE_BOT_GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    repository: str = Field(
        default="",
        validation_alias="SUBTITLE_BOT_REPOSITORY",
        description="Repository the bot manages, in the form 'owner/repo'",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="SUBTITLE_BOT_HTTP_TIMEOUT_SECONDS",
        description="Per-request timeout for GitHub REST calls",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    base_branch: str = Field(
        default="master",
        validation_alias="SUBTITLE_BOT_BASE_BRANCH",
        description="Branch that upload pull requests are based on and target",
    )
    upload_prefix: str = Field(
        default=DEFAULT_UPLOAD_PREFIX,
        validation_alias="SUBTITLE_BOT_UPLOAD_PREFIX",
        description="Literal comment prefix that marks an upload command",
    )

    channel_labels: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CHANNEL_LABELS),
        validation_alias="SUBTITLE_BOT_CHANNEL_LABELS",
    )
    channel_folders: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CHANNEL_FOLDERS),
        validation_alias="SUBTITLE_BOT_CHANNEL_FOLDERS",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _require_github_auth(self) -> BotSettings:
        if not self.github_token.strip():
            raise ValueError("SUBTITLE_BOT_GITHUB_TOKEN is required")
        repo = self.repository.strip().strip("/")
        if repo.count("/") != 1 or not all(repo.split("/")):
            raise ValueError("SUBTITLE_BOT_REPOSITORY must be in the form 'owner/repo'")
        self.repository = repo
        return self

    @model_validator(mode="after")
    def _require_aligned_catalog(self) -> BotSettings:
        # Raises CatalogMisalignedError (a ValueError) on misalignment.
        LabelRegistry.from_lists(self.channel_labels, self.channel_folders)
        if not self.upload_prefix:
            raise ValueError("SUBTITLE_BOT_UPLOAD_PREFIX must be non-empty")
        return self

    def label_registry(self) -> LabelRegistry:
        return LabelRegistry.from_lists(self.channel_labels, self.channel_folders)
