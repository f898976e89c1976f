from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from ..errors import ProviderError

logger = logging.getLogger("resultbot")


def is_url(source: str) -> bool:
    s = (source or "").strip().lower()
    return s.startswith("http://") or s.startswith("https://")


async def _fetch(client: httpx.AsyncClient, url: str) -> bytes:
    try:
        r = await client.get(url, follow_redirects=True)
    except httpx.RequestError as e:
        raise ProviderError(f"Could not fetch image {url}: {e}") from e
    if r.status_code != 200:
        raise ProviderError(f"Could not fetch image {url}: HTTP {r.status_code}")
    return r.content


async def load_image_bytes(source: str, client: Optional[httpx.AsyncClient] = None) -> bytes:
    """Read image bytes from a local path or an http(s) URL. No retries."""
    if is_url(source):
        if client is not None:
            return await _fetch(client, source)
        async with httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=5.0)) as c:
            return await _fetch(c, source)

    try:
        return await asyncio.to_thread(Path(source).read_bytes)
    except OSError as e:
        raise ProviderError(f"Could not read image {source}: {e}") from e
