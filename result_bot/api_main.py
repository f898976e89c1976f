# api_main.py
# FastAPI service for the result OCR bot
# - Discord interactions endpoint (slash commands)
# - Registers commands on startup, removes them on shutdown when configured

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from .config import Settings
from .discord_webhook import DiscordFollowupClient
from .gc_discord.interactions import BotContext, Dispatcher, router as interactions_router
from .gc_discord.register_commands import register_commands, remove_commands, resolve_application_id
from .ocr.engines import make_provider

logger = logging.getLogger("resultbot")


def build_context(settings: Settings) -> BotContext:
    timeout = httpx.Timeout(settings.http_timeout_seconds, connect=5.0)
    client = httpx.AsyncClient(timeout=timeout)
    return BotContext(
        settings=settings,
        client=client,
        provider=make_provider(settings, client),
        followup=DiscordFollowupClient(client),
        application_id=settings.application_id,
    )


async def _startup(ctx: BotContext) -> None:
    s = ctx.settings
    if not s.bot_token:
        logger.warning("DISCORD_TOKEN is missing; slash commands will not be registered.")
        return
    ctx.registered_commands = []
    try:
        ctx.application_id = await resolve_application_id(ctx.client, s)
        await register_commands(ctx.client, s, ctx.application_id, registered=ctx.registered_commands)
    except (RuntimeError, httpx.HTTPError):
        # startup is aborted; do not leave half the commands behind
        try:
            if ctx.registered_commands:
                await remove_commands(ctx.client, s, ctx.application_id, ctx.registered_commands)
                ctx.registered_commands = []
        finally:
            await ctx.client.aclose()
        raise


async def _shutdown(ctx: BotContext) -> None:
    try:
        if ctx.settings.remove_commands and ctx.registered_commands:
            await remove_commands(ctx.client, ctx.settings, ctx.application_id, ctx.registered_commands)
            ctx.registered_commands = []
    finally:
        await ctx.client.aclose()
    logger.info("Gracefully shutting down.")


def create_app(settings: Optional[Settings] = None, *, context: Optional[BotContext] = None) -> FastAPI:
    """Build the app. `context` lets callers supply their own provider and clients."""
    if context is None:
        context = build_context(settings or Settings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await _startup(context)
        yield
        await _shutdown(context)

    app = FastAPI(title="Result OCR Bot", version="1.0.0", lifespan=lifespan)
    app.state.dispatcher = Dispatcher(context)
    app.include_router(interactions_router)

    env = context.settings.environment

    @app.get("/")
    async def root():
        return {"service": "result-ocr-bot", "env": env, "ok": True}

    @app.get("/healthz")
    async def healthz():
        return {"ok": True, "env": env, "commands": len(context.registered_commands)}

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    load_dotenv(".env")
    settings = Settings.from_env()
    logger.info("Press Ctrl+C to exit")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
