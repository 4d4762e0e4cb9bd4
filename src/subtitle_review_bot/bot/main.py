"""CLI entrypoint for the subtitle review bot.

Commands:
- serve             run the webhook server
- handle-event      replay a saved webhook payload through the workflow rules
- set-status        move a task to a status by hand
- bootstrap-labels  create missing channel and status labels in the repository
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from subtitle_review_bot import __version__
from subtitle_review_bot.bot.github.client import GitHubClient
from subtitle_review_bot.bot.github.tracker import TransportError
from subtitle_review_bot.bot.logging import configure_logging
from subtitle_review_bot.bot.workflow.dispatcher import Dispatcher
from subtitle_review_bot.bot.workflow.events import MalformedPayloadError
from subtitle_review_bot.bot.workflow.rules import WorkflowServices
from subtitle_review_bot.labels import TaskStatus
from subtitle_review_bot.server.app import create_app
from subtitle_review_bot.server.config import ServerSettings

logger = logging.getLogger(__name__)

_STATUS_CHOICES: dict[str, TaskStatus] = {
    "translation": TaskStatus.QUEUED_FOR_TRANSLATION,
    "review": TaskStatus.QUEUED_FOR_REVIEW,
    "upload": TaskStatus.QUEUED_FOR_UPLOAD,
    "publication": TaskStatus.QUEUED_FOR_PUBLICATION,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtitle-bot",
        description="Label-driven review workflow for crowd-translated subtitles",
    )
    parser.add_argument(
        "--version", action="version", version=f"subtitle-review-bot {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the GitHub webhook server")
    serve.add_argument("--host", default=None, help="Bind address (default: SUBTITLE_BOT_HOST)")
    serve.add_argument(
        "--port", type=int, default=None, help="Bind port (default: SUBTITLE_BOT_PORT)"
    )

    handle_event = subparsers.add_parser(
        "handle-event",
        help="Replay a saved webhook payload through the workflow rules",
    )
    handle_event.add_argument(
        "--event",
        required=True,
        help="GitHub event name as sent in X-GitHub-Event, e.g. 'issue_comment'",
    )
    handle_event.add_argument(
        "--payload",
        type=Path,
        required=True,
        help="Path to a JSON file holding the webhook payload",
    )

    set_status = subparsers.add_parser(
        "set-status",
        help="Replace a task's status label (e.g. to queue it for publication)",
    )
    set_status.add_argument("--issue-number", type=int, required=True, help="Task issue number")
    set_status.add_argument(
        "--status",
        choices=sorted(_STATUS_CHOICES),
        required=True,
        help="Target status",
    )

    subparsers.add_parser(
        "bootstrap-labels",
        help="Create any missing channel/status labels in the repository",
    )

    return parser


def _client(settings: ServerSettings) -> GitHubClient:
    return GitHubClient(
        token=settings.github_token,
        repository=settings.repository,
        base_url=settings.github_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )


def _services(settings: ServerSettings, github: GitHubClient) -> WorkflowServices:
    return WorkflowServices.build(
        tracker=github,
        registry=settings.label_registry(),
        base_branch=settings.base_branch,
        upload_prefix=settings.upload_prefix,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ServerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "serve":
            host = args.host or settings.host
            port = args.port or settings.port
            logger.info(
                "Starting webhook server",
                extra={"host": host, "port": port, "repo": settings.repository},
            )
            uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
            return 0

        if args.command == "handle-event":
            payload = json.loads(args.payload.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                print("Payload must be a JSON object", file=sys.stderr)
                return 2
            github = _client(settings)
            try:
                result = Dispatcher(_services(settings, github)).handle_delivery(
                    args.event, payload
                )
            finally:
                github.close()
            print(json.dumps(result.to_json(), indent=2, ensure_ascii=False))
            return 0

        if args.command == "set-status":
            status = _STATUS_CHOICES[args.status]
            github = _client(settings)
            try:
                _services(settings, github).transitions.set_status(args.issue_number, status)
            finally:
                github.close()
            print(f"Task #{args.issue_number} is now {status.value}")
            return 0

        if args.command == "bootstrap-labels":
            github = _client(settings)
            try:
                created = github.ensure_labels(settings.label_registry().label_specs())
            finally:
                github.close()
            if created:
                print("Created labels: " + ", ".join(created))
            else:
                print("All labels already exist")
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except MalformedPayloadError as e:
        logger.warning(str(e))
        print(str(e), file=sys.stderr)
        return 2

    except TransportError as e:
        logger.exception("GitHub call failed", extra={"status_code": e.status_code})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
