from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from ..config import Settings
from ..discord_webhook import DiscordFollowupClient
from ..errors import EmptyResultError, ResultBotError
from ..ocr.engines import OcrProvider
from ..ocr.pipeline import run_ocr_export
from .register_commands import OPTION_ATTACHMENT

logger = logging.getLogger("resultbot")

# Interaction types
PING = 1
APPLICATION_COMMAND = 2

# Interaction callback types
PONG = 1
CHANNEL_MESSAGE_WITH_SOURCE = 4
DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5

EPHEMERAL = 64

GREETING = "Hey there! Congratulations, you just executed your first slash command"
NO_TEXT = "No text found in image."
FAILED = "Failed to read result image."


@dataclass
class BotContext:
    """Everything a command handler needs, built once at startup."""

    settings: Settings
    client: httpx.AsyncClient
    provider: OcrProvider
    followup: DiscordFollowupClient
    application_id: str = ""
    registered_commands: List[Dict[str, Any]] = field(default_factory=list)


Handler = Callable[[BotContext, Dict[str, Any], BackgroundTasks], Awaitable[Dict[str, Any]]]


def _message(content: str, *, ephemeral: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {"content": content}
    if ephemeral:
        data["flags"] = EPHEMERAL
    return {"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def attachment_url(interaction: Dict[str, Any], option_name: str = "image") -> Optional[str]:
    data = interaction.get("data") or {}
    resolved = (data.get("resolved") or {}).get("attachments") or {}
    for opt in data.get("options") or []:
        if opt.get("name") == option_name and opt.get("type") == OPTION_ATTACHMENT:
            att = resolved.get(str(opt.get("value"))) or {}
            return att.get("url") or None
    return None


async def process_ocr(ctx: BotContext, interaction: Dict[str, Any]) -> None:
    """Run the OCR export for one interaction and edit the deferred reply with the outcome."""
    source = attachment_url(interaction) or ctx.settings.default_image
    out_path = Path(ctx.settings.output_dir) / f"{interaction.get('id') or 'output'}.csv"

    attachment: Optional[Path] = None
    try:
        attachment = await run_ocr_export(source, out_path, provider=ctx.provider, client=ctx.client)
        content = f"Text from the result image saved to {attachment.name}"
    except EmptyResultError:
        logger.info("No text found in image: %s", source)
        content = NO_TEXT
    except ResultBotError as e:
        logger.warning("OCR request %s failed: %s", interaction.get("id"), e)
        content = FAILED
    except Exception:
        logger.exception("OCR request %s crashed", interaction.get("id"))
        content = FAILED

    app_id = str(interaction.get("application_id") or ctx.application_id)
    try:
        await ctx.followup.edit_original(app_id, str(interaction.get("token") or ""), content, attachment=attachment)
    except (httpx.HTTPError, OSError):
        logger.exception("Could not deliver OCR reply for interaction %s", interaction.get("id"))
    finally:
        if attachment is not None and not ctx.settings.keep_output:
            try:
                attachment.unlink()
            except OSError as e:
                logger.warning("Could not remove %s: %s", attachment, e)


async def basic_command(ctx: BotContext, interaction: Dict[str, Any], background: BackgroundTasks) -> Dict[str, Any]:
    return _message(GREETING)


async def ocr_command(ctx: BotContext, interaction: Dict[str, Any], background: BackgroundTasks) -> Dict[str, Any]:
    # OCR outlives Discord's 3s response window; acknowledge now, edit the reply later.
    background.add_task(process_ocr, ctx, interaction)
    return {"type": DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE}


class Dispatcher:
    """Maps slash command names to handlers."""

    def __init__(self, ctx: BotContext, handlers: Optional[Dict[str, Handler]] = None) -> None:
        self.ctx = ctx
        self.handlers: Dict[str, Handler] = dict(handlers) if handlers is not None else {
            "basic-command": basic_command,
            "ocr": ocr_command,
        }

    async def dispatch(self, interaction: Dict[str, Any], background: BackgroundTasks) -> Dict[str, Any]:
        t = interaction.get("type")

        if t == PING:
            return {"type": PONG}

        if t == APPLICATION_COMMAND:
            name = ((interaction.get("data") or {}).get("name") or "").strip().lower()
            handler = self.handlers.get(name)
            if handler is None:
                return _message("Unknown command.", ephemeral=True)
            return await handler(self.ctx, interaction, background)

        return _message("Unsupported interaction type.", ephemeral=True)


def verify_discord_signature(public_key_hex: str, signature_hex: str, timestamp: str, body: bytes) -> None:
    if not public_key_hex:
        raise HTTPException(status_code=503, detail="DISCORD_PUBLIC_KEY not set")

    try:
        verify_key = VerifyKey(bytes.fromhex(public_key_hex))
        verify_key.verify(timestamp.encode("utf-8") + body, bytes.fromhex(signature_hex))
    except BadSignatureError:
        raise HTTPException(status_code=401, detail="Bad request signature")
    except (ValueError, TypeError) as e:
        logger.warning("Discord signature verification error: %s", e)
        raise HTTPException(status_code=401, detail="Invalid signature headers")


router = APIRouter()


@router.post("/discord/interactions")
async def discord_interactions(
    request: Request,
    background: BackgroundTasks,
    x_signature_ed25519: Optional[str] = Header(default=None, alias="X-Signature-Ed25519"),
    x_signature_timestamp: Optional[str] = Header(default=None, alias="X-Signature-Timestamp"),
) -> Dict[str, Any]:
    dispatcher: Dispatcher = request.app.state.dispatcher
    body = await request.body()

    verify_discord_signature(
        public_key_hex=dispatcher.ctx.settings.public_key,
        signature_hex=(x_signature_ed25519 or ""),
        timestamp=(x_signature_timestamp or ""),
        body=body,
    )

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON")

    return await dispatcher.dispatch(payload, background)
