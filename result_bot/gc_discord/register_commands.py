from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings

logger = logging.getLogger("resultbot")

API_BASE = "https://discord.com/api/v10"

# Application command option type 11 = ATTACHMENT
OPTION_ATTACHMENT = 11


def _auth_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bot {token}",
        "Content-Type": "application/json",
        "User-Agent": "ResultOcrBot/1.0",
    }


def discord_base_url(app_id: str, guild_id: str) -> str:
    if guild_id:
        return f"{API_BASE}/applications/{app_id}/guilds/{guild_id}/commands"
    return f"{API_BASE}/applications/{app_id}/commands"


def desired_commands() -> List[Dict[str, Any]]:
    # Every command and option needs a description or Discord rejects the registration.
    return [
        {
            "name": "basic-command",
            "description": "Basic command",
            "type": 1,
        },
        {
            "name": "ocr",
            "description": "Read Game Result Image with OCR",
            "type": 1,
            "options": [
                {
                    "name": "image",
                    "description": "Result screenshot to read",
                    "type": OPTION_ATTACHMENT,
                    "required": False,
                }
            ],
        },
    ]


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json_body: Any = None,
    headers: Dict[str, str],
    max_attempts: int = 4,
) -> httpx.Response:
    last_exc: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        try:
            r = await client.request(method, url, json=json_body, headers=headers)
            # Rate-limited: retry after suggested delay (Discord uses seconds)
            if r.status_code == 429 and attempt < max_attempts:
                try:
                    retry_after = float(r.json().get("retry_after") or 1.0)
                except (ValueError, AttributeError):
                    retry_after = 1.0
                await asyncio.sleep(min(max(retry_after, 0.5), 10.0))
                continue
            return r
        except httpx.RequestError as e:
            last_exc = e
            await asyncio.sleep(min(0.5 * attempt, 2.0))
    raise last_exc or RuntimeError("Discord request failed with unknown error")


async def resolve_application_id(client: httpx.AsyncClient, settings: Settings) -> str:
    """Use the configured application id, or ask Discord which application owns the token."""
    if settings.application_id:
        return settings.application_id
    r = await _request_with_retry(
        client, "GET", f"{API_BASE}/oauth2/applications/@me", headers=_auth_headers(settings.bot_token)
    )
    if r.status_code >= 400:
        raise RuntimeError(f"Cannot resolve application id ({r.status_code}): {r.text[:300]}")
    return str(r.json().get("id") or "")


async def register_commands(
    client: httpx.AsyncClient,
    settings: Settings,
    app_id: str,
    commands: Optional[List[Dict[str, Any]]] = None,
    registered: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Create each command for the application and return what Discord stored.

    Registers in the configured guild for immediate availability, globally otherwise.
    A command that cannot be created aborts startup. Created commands are appended
    to `registered` as they succeed, so a caller still sees them after a failure.
    """
    base_url = discord_base_url(app_id, settings.guild_id)
    headers = _auth_headers(settings.bot_token)

    logger.info("Adding commands...")
    if registered is None:
        registered = []
    for cmd in commands if commands is not None else desired_commands():
        r = await _request_with_retry(client, "POST", base_url, json_body=cmd, headers=headers)
        if r.status_code >= 300:
            raise RuntimeError(f"Cannot create '{cmd['name']}' command ({r.status_code}): {r.text[:300]}")
        registered.append(r.json())

    scope = f"guild:{settings.guild_id}" if settings.guild_id else "global"
    logger.info("Registered %d commands (scope=%s)", len(registered), scope)
    return registered


async def remove_commands(
    client: httpx.AsyncClient,
    settings: Settings,
    app_id: str,
    registered: List[Dict[str, Any]],
) -> int:
    """Delete only the commands this process registered. Returns how many were removed."""
    base_url = discord_base_url(app_id, settings.guild_id)
    headers = _auth_headers(settings.bot_token)

    logger.info("Removing commands...")
    removed = 0
    for cmd in registered:
        cmd_id = cmd.get("id")
        if not cmd_id:
            continue
        try:
            r = await _request_with_retry(client, "DELETE", f"{base_url}/{cmd_id}", headers=headers)
        except httpx.RequestError as e:
            logger.warning("Cannot delete '%s' command: %s", cmd.get("name"), e)
            continue
        if r.status_code < 300:
            removed += 1
        else:
            logger.warning("Cannot delete '%s' command (%s): %s", cmd.get("name"), r.status_code, r.text[:300])
    return removed
