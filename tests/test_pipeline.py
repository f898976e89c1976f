"""Tests for image loading and the fetch -> detect -> export pipeline."""

import asyncio
import csv

import httpx
import pytest

from tests.helpers import FakeProvider
from result_bot.errors import EmptyResultError, ProviderError
from result_bot.ocr.pipeline import run_ocr_export
from result_bot.ocr.source import is_url, load_image_bytes


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestLoadImageBytes:
    def test_local_file(self, tmp_path):
        img = tmp_path / "result.jpg"
        img.write_bytes(b"jpeg-bytes")
        assert asyncio.run(load_image_bytes(str(img))) == b"jpeg-bytes"

    def test_missing_local_file(self, tmp_path):
        with pytest.raises(ProviderError):
            asyncio.run(load_image_bytes(str(tmp_path / "nope.jpg")))

    def test_url(self):
        client = mock_client(lambda r: httpx.Response(200, content=b"png-bytes"))
        data = asyncio.run(load_image_bytes("https://cdn.discordapp.com/a/result.png", client))
        assert data == b"png-bytes"

    def test_non_200_is_fetch_failure(self):
        client = mock_client(lambda r: httpx.Response(404))
        with pytest.raises(ProviderError):
            asyncio.run(load_image_bytes("https://cdn.discordapp.com/a/gone.png", client))

    def test_is_url(self):
        assert is_url("HTTPS://example.com/x.png")
        assert not is_url("testdata/sdvx_result.jpg")


class TestRunOcrExport:
    def test_writes_csv(self, tmp_path, sample_annotations):
        img = tmp_path / "result.jpg"
        img.write_bytes(b"jpeg")
        provider = FakeProvider(sample_annotations)
        out = tmp_path / "out" / "123.csv"

        path = asyncio.run(run_ocr_export(str(img), out, provider=provider))

        assert path == out
        assert provider.calls == [b"jpeg"]
        with open(out, newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert len(rows) == len(sample_annotations)

    def test_empty_result_writes_nothing(self, tmp_path):
        img = tmp_path / "blank.jpg"
        img.write_bytes(b"jpeg")
        out = tmp_path / "blank.csv"
        with pytest.raises(EmptyResultError):
            asyncio.run(run_ocr_export(str(img), out, provider=FakeProvider([])))
        assert not out.exists()

    def test_fetch_failure_skips_provider(self, tmp_path):
        provider = FakeProvider()
        with pytest.raises(ProviderError):
            asyncio.run(run_ocr_export(str(tmp_path / "missing.jpg"), tmp_path / "x.csv", provider=provider))
        assert provider.calls == []

    def test_file_io_runs_in_worker_threads(self, tmp_path, monkeypatch, sample_annotations):
        img = tmp_path / "result.jpg"
        img.write_bytes(b"jpeg")
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            offloaded.append(getattr(func, "__name__", repr(func)))
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
        asyncio.run(run_ocr_export(str(img), tmp_path / "t.csv", provider=FakeProvider(sample_annotations)))

        assert offloaded == ["read_bytes", "_write_csv"]
