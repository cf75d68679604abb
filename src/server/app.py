"""FastAPI application exposing the WhatsApp webhook and the prompt test endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import Body, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from src.config import BridgeConfig, load_config
from src.generation.gemini import GeminiClient
from src.webhook.relay import ChatRelayPipeline
from src.webhook.whatsapp import WhatsAppRelay

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from the environment."""
    return create_app(load_config())


def create_app(
    config: BridgeConfig,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create the bridge app.

    ``http_client`` is shared by every request; when omitted, one pooled
    client is opened for the lifetime of the application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if http_client is not None:
            yield
            return
        async with httpx.AsyncClient(timeout=config.http_timeout) as client:
            app.state.http_client = client
            yield

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.http_client = http_client

    def _client(request: Request) -> httpx.AsyncClient:
        return request.app.state.http_client

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/Chat")
    async def verify_chat(
        request: Request,
        mode: str | None = Query(default=None, alias="hub.mode"),
        verify_token: str | None = Query(default=None, alias="hub.verify_token"),
        challenge: str | None = Query(default=None, alias="hub.challenge"),
    ) -> JSONResponse:
        logger.info("HTTP GET Chat")
        relay = WhatsAppRelay.from_config(_client(request), config)
        result = relay.handle_verification(mode, verify_token, challenge)
        if result["status_code"] == 200:
            return JSONResponse(result["content"])
        return JSONResponse({"error": result["error"]}, status_code=result["status_code"])

    @app.post("/Chat")
    async def receive_chat(request: Request) -> Response:
        logger.info("HTTP POST Chat")
        client = _client(request)
        pipeline = ChatRelayPipeline(
            config,
            GeminiClient.from_config(client, config),
            WhatsAppRelay.from_config(client, config),
        )
        status_code = await pipeline.handle_delivery(await request.body())
        return Response(status_code=status_code)

    @app.post("/Test")
    async def test_prompt(request: Request, message: str = Body(...)) -> JSONResponse:
        logger.info("HTTP POST Test")
        outcome = await GeminiClient.from_config(_client(request), config).generate(message)
        if not outcome.ok:
            return JSONResponse(
                {"error": outcome.reason.value if outcome.reason else "failure"},
                status_code=500,
            )
        return JSONResponse(outcome.text)

    return app
