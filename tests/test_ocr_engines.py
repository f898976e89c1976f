"""Tests for the OCR providers and their factory."""

import asyncio
import base64
import json

import httpx
import pytest

from tests.helpers import make_settings
from result_bot.errors import ProviderError
from result_bot.ocr.engines import TesseractProvider, VisionProvider, make_provider
from result_bot.ocr.engines.tess import tokens_to_annotations
from result_bot.ocr.engines.vision import VISION_URL, parse_text_annotations
from result_bot.ocr.schema import SUMMARY, WORD, Point

VISION_BODY = {
    "responses": [
        {
            "textAnnotations": [
                {
                    "locale": "en",
                    "description": "SCORE\n9876543",
                    "boundingPoly": {"vertices": [{"x": 1, "y": 2}, {"x": 600, "y": 2}, {"x": 600, "y": 400}, {"x": 1, "y": 400}]},
                },
                {
                    "description": "SCORE",
                    "boundingPoly": {"vertices": [{"y": 2}, {"x": 9, "y": 2}, {"x": 9, "y": 7}, {"x": 5}]},
                },
            ]
        }
    ]
}


def vision_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VisionProvider("secret", max_results=10, client=client)


class TestParseTextAnnotations:
    def test_maps_description_and_vertices(self):
        anns = parse_text_annotations(VISION_BODY)
        assert [a.kind for a in anns] == [SUMMARY, WORD]
        assert anns[1].text == "SCORE"
        # missing coordinates default to 0
        assert anns[1].corners == (Point(0, 2), Point(9, 2), Point(9, 7), Point(5, 0))

    def test_no_text_is_empty_list(self):
        assert parse_text_annotations({"responses": [{}]}) == []

    def test_error_payload_raises(self):
        with pytest.raises(ProviderError):
            parse_text_annotations({"responses": [{"error": {"code": 3, "message": "Bad image data."}}]})

    def test_missing_responses_raises(self):
        with pytest.raises(ProviderError):
            parse_text_annotations({})


class TestVisionProvider:
    def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=VISION_BODY)

        anns = asyncio.run(vision_with(handler).detect_text(b"\x89PNG"))

        assert len(anns) == 2
        assert str(seen["url"]).startswith(VISION_URL)
        assert seen["url"].params["key"] == "secret"
        req = seen["body"]["requests"][0]
        assert base64.b64decode(req["image"]["content"]) == b"\x89PNG"
        assert req["features"] == [{"type": "TEXT_DETECTION", "maxResults": 10}]

    def test_http_error_raises_provider_error(self):
        provider = vision_with(lambda r: httpx.Response(403, json={"error": {"message": "denied"}}))
        with pytest.raises(ProviderError):
            asyncio.run(provider.detect_text(b"img"))

    def test_unreachable_raises_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(ProviderError):
            asyncio.run(vision_with(handler).detect_text(b"img"))

    def test_missing_key_raises_provider_error(self):
        with pytest.raises(ProviderError):
            asyncio.run(VisionProvider("").detect_text(b"img"))


class TestTesseractTokens:
    def test_summary_first_then_words(self):
        data = {
            "text": ["", "SCORE", "  ", "9876543"],
            "conf": ["-1", "91.5", "-1", "88"],
            "left": [0, 5, 0, 3],
            "top": [0, 2, 0, 1],
            "width": [0, 4, 0, 5],
            "height": [0, 5, 0, 9],
        }
        anns = tokens_to_annotations(data, 640, 480)

        assert [a.kind for a in anns] == [SUMMARY, WORD, WORD]
        assert anns[0].text == "SCORE\n9876543"
        assert max(p.x for p in anns[0].corners) == 640
        assert anns[1].corners == (Point(5, 2), Point(9, 2), Point(9, 7), Point(5, 7))

    def test_no_words_gives_empty_list(self):
        data = {"text": [""], "conf": ["-1"], "left": [0], "top": [0], "width": [0], "height": [0]}
        assert tokens_to_annotations(data, 10, 10) == []


class TestMakeProvider:
    def test_default_is_vision(self):
        assert isinstance(make_provider(make_settings()), VisionProvider)

    def test_tesseract(self):
        assert isinstance(make_provider(make_settings(ocr_engine="tesseract")), TesseractProvider)

    def test_unknown_engine(self):
        with pytest.raises(ValueError):
            make_provider(make_settings(ocr_engine="nope"))
