"""FastAPI app factory.

The webhook endpoint is a thin wrapper over the workflow dispatcher. The
dispatcher blocks on GitHub calls, so each delivery runs it in the thread pool;
separate deliveries may be processed concurrently and nothing serialises them.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from subtitle_review_bot import __version__
from subtitle_review_bot.bot.github.client import GitHubClient
from subtitle_review_bot.bot.github.tracker import Tracker, TransportError
from subtitle_review_bot.bot.workflow.dispatcher import Dispatcher
from subtitle_review_bot.bot.workflow.events import MalformedPayloadError
from subtitle_review_bot.bot.workflow.rules import WorkflowServices
from subtitle_review_bot.server.config import ServerSettings

logger = logging.getLogger(__name__)


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Check GitHub's ``X-Hub-Signature-256`` header against ``body``."""

    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


def create_app(
    settings: ServerSettings | None = None,
    *,
    tracker: Tracker | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()

    owned_client: GitHubClient | None = None
    if tracker is None:
        owned_client = GitHubClient(
            token=settings.github_token,
            repository=settings.repository,
            base_url=settings.github_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
        tracker = owned_client

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        if owned_client is not None:
            owned_client.close()

    app = FastAPI(
        title="Subtitle Review Bot",
        version=__version__,
        description="GitHub webhook receiver for the subtitle translation workflow.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    services = WorkflowServices.build(
        tracker=tracker,
        registry=settings.label_registry(),
        base_branch=settings.base_branch,
        upload_prefix=settings.upload_prefix,
    )
    dispatcher = Dispatcher(services)

    app.state.settings = settings
    app.state.dispatcher = dispatcher

    if not settings.webhook_secret:
        logger.warning("SUBTITLE_BOT_WEBHOOK_SECRET is empty; signature checks are disabled")

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__, "repository": settings.repository}

    @app.post("/api/v1/webhook")
    async def webhook(
        request: Request,
        x_github_event: str = Header(default=""),
        x_github_delivery: str = Header(default=""),
        x_hub_signature_256: str | None = Header(default=None),
    ) -> dict[str, object]:
        body = await request.body()
        if settings.webhook_secret and not verify_signature(
            settings.webhook_secret, body, x_hub_signature_256
        ):
            raise HTTPException(status_code=401, detail="Bad signature")

        try:
            payload: Any = json.loads(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Body is not JSON") from e
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        try:
            result = await run_in_threadpool(
                dispatcher.handle_delivery, x_github_event, payload
            )
        except MalformedPayloadError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except TransportError as e:
            logger.exception(
                "Delivery failed",
                extra={"delivery": x_github_delivery, "event": x_github_event},
            )
            raise HTTPException(status_code=502, detail=str(e)) from e

        return {"delivery": x_github_delivery, **result.to_json()}

    return app
