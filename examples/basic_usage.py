#!/usr/bin/env python3
"""Inspect how the bot sees a pull request (read-only).

This demonstrates using the workflow components directly:

* load settings from `.env`
* check whether a pull request counts as a subtitle upload
* resolve the task it refers to and that task's channel and status

Nothing is written to the repository.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from subtitle_review_bot.bot.config import BotSettings
from subtitle_review_bot.bot.github.client import GitHubClient
from subtitle_review_bot.bot.logging import configure_logging
from subtitle_review_bot.bot.workflow.pulls import is_upload
from subtitle_review_bot.bot.workflow.references import ReferenceResolver
from subtitle_review_bot.bot.workflow.status import StatusTransitions


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the task a pull request is linked to.")
    parser.add_argument("--pull", type=int, required=True, help="Pull request number")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = BotSettings()
    configure_logging(settings.log_level)
    registry = settings.label_registry()

    github = GitHubClient(
        token=settings.github_token,
        repository=settings.repository,
        base_url=settings.github_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    try:
        print(f"Subtitle upload: {is_upload(github, args.pull)}")

        resolver = ReferenceResolver(github, registry)
        task = resolver.find_task_reference_across_history(args.pull)
        if task is None:
            print("No task reference found")
            return 0

        channel = resolver.channel_label_of(task)
        statuses = StatusTransitions(github, registry).current_statuses(task)
        print(f"Task: #{task}")
        print(f"Channel: {channel.label if channel else '-'} ({channel.folder if channel else '-'})")
        print("Status: " + (", ".join(s.value for s in statuses) or "-"))
    finally:
        github.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
