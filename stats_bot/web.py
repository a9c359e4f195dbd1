"""HTTP surface: health check, on-demand stats and the Telegram webhook."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import Settings
from .platforms.telegram_adapter import TelegramAdapter
from .service import StatsService

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    service: StatsService,
    *,
    bot: Optional[TelegramAdapter] = None,
    check_connection: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application around an existing stats service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if bot is not None:
            await bot.start()
        if check_connection:
            await service.check_connection()
        logger.info("Server is running on port %s", settings.port)
        try:
            yield
        finally:
            if bot is not None:
                await bot.stop()

    app = FastAPI(title="SaaS Stats Bot", version="1.0.0", lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "Bot is running!"

    @app.get("/api/stats")
    async def stats() -> JSONResponse:
        result = await service.build_stats()
        if not result.ok:
            logger.error("Error generating stats: %s", result.failure.kind)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "error": "Failed to generate stats"},
            )
        return JSONResponse({"success": True, "stats": result.text})

    async def telegram_webhook(request: Request) -> Response:
        if bot is None:
            return Response(status_code=status.HTTP_404_NOT_FOUND)
        payload = await request.json()
        await bot.process_webhook(payload)
        return Response(status_code=status.HTTP_200_OK)

    app.add_api_route(settings.webhook_path, telegram_webhook, methods=["POST"], include_in_schema=False)

    return app
