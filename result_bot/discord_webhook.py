from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

API_BASE = "https://discord.com/api/v10"


def _clip(content: str, limit: int = 2000) -> str:
    v = (content or "").strip()
    if len(v) > limit:
        v = v[: limit - 3] + "..."
    return v


class DiscordFollowupClient:
    """Edits the deferred reply of an interaction through its webhook token."""

    def __init__(self, client: httpx.AsyncClient, *, api_base: str = API_BASE) -> None:
        self._client = client
        self._api_base = api_base.rstrip("/")

    def original_url(self, application_id: str, interaction_token: str) -> str:
        return f"{self._api_base}/webhooks/{application_id}/{interaction_token}/messages/@original"

    async def edit_original(
        self,
        application_id: str,
        interaction_token: str,
        content: str,
        *,
        attachment: Optional[Path] = None,
    ) -> None:
        url = self.original_url(application_id, interaction_token)
        payload: Dict[str, Any] = {
            "content": _clip(content),
            "allowed_mentions": {"parse": []},
        }

        files = None
        if attachment is not None:
            data = Path(attachment).read_bytes()
            payload["attachments"] = [{"id": 0, "filename": Path(attachment).name}]
            files = {"files[0]": (Path(attachment).name, data, "text/csv")}

        last_exc: Exception | None = None
        for attempt in range(2):
            try:
                if files is not None:
                    resp = await self._client.patch(
                        url, data={"payload_json": json.dumps(payload)}, files=files
                    )
                else:
                    resp = await self._client.patch(url, json=payload)
                resp.raise_for_status()
                return
            except httpx.RequestError as e:
                last_exc = e
                await asyncio.sleep(0.5 * (2**attempt))
            except httpx.HTTPStatusError as e:
                last_exc = e
                status = getattr(e.response, "status_code", None)
                if status and 500 <= int(status) < 600 and attempt == 0:
                    await asyncio.sleep(0.5)
                    continue
                break

        raise last_exc if last_exc else RuntimeError("Discord follow-up edit failed")
