from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from ...errors import ProviderError
from ..schema import SUMMARY, WORD, Annotation, Point
from .base import OcrProvider

logger = logging.getLogger("resultbot")

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


def _to_int(v: Any) -> int:
    try:
        return int(v or 0)
    except (TypeError, ValueError):
        return 0


def parse_text_annotations(payload: Dict[str, Any]) -> List[Annotation]:
    """
    Convert one `images:annotate` response body into annotations.
    Vertices with a missing x or y default to 0, as the protobuf API does.
    """
    responses = payload.get("responses") or []
    if not responses:
        raise ProviderError("Vision API returned no responses")
    first = responses[0] or {}

    err = first.get("error")
    if err:
        raise ProviderError(f"Vision API error {err.get('code', '?')}: {err.get('message', '')}")

    out: List[Annotation] = []
    for i, item in enumerate(first.get("textAnnotations") or []):
        poly = item.get("boundingPoly") or {}
        corners = tuple(Point(x=_to_int(v.get("x")), y=_to_int(v.get("y"))) for v in poly.get("vertices") or [])
        out.append(
            Annotation(
                text=str(item.get("description") or ""),
                corners=corners,
                kind=SUMMARY if i == 0 else WORD,
            )
        )
    return out


class VisionProvider(OcrProvider):
    """Google Cloud Vision TEXT_DETECTION over the REST API."""

    name = "vision"

    def __init__(
        self,
        api_key: str,
        *,
        max_results: int = 10,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 15.0,
        url: str = VISION_URL,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._max_results = int(max_results)
        self._client = client
        self._timeout = httpx.Timeout(timeout_seconds, connect=5.0)
        self._url = url

    def _request_body(self, image: bytes) -> Dict[str, Any]:
        return {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": self._max_results}],
                }
            ]
        }

    async def _post(self, client: httpx.AsyncClient, body: Dict[str, Any]) -> httpx.Response:
        return await client.post(self._url, params={"key": self._api_key}, json=body)

    async def detect_text(self, image: bytes) -> List[Annotation]:
        if not self._api_key:
            raise ProviderError("GOOGLE_VISION_API_KEY not set")

        body = self._request_body(image)
        try:
            if self._client is not None:
                r = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    r = await self._post(client, body)
        except httpx.RequestError as e:
            raise ProviderError(f"Vision API unreachable: {e}") from e

        if r.status_code >= 300:
            logger.warning("Vision API failed (%s): %s", r.status_code, r.text[:300])
            raise ProviderError(f"Vision API returned HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            raise ProviderError("Vision API returned invalid JSON") from e

        annotations = parse_text_annotations(payload)
        logger.info("Vision API returned %d annotations", len(annotations))
        return annotations
