#!/usr/bin/env python3
"""Run OCR on one image and write the Text,X,Y CSV, without Discord.

Examples:
  python -m result_bot.tools.ocr_export --image testdata/sdvx_result.jpg --out output.csv
  python -m result_bot.tools.ocr_export --image https://example.com/result.png --out out.csv --engine tesseract

Credentials and defaults come from the same environment variables as the bot.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..config import Settings
from ..errors import EmptyResultError, ResultBotError
from ..ocr.engines import make_provider
from ..ocr.pipeline import run_ocr_export

logger = logging.getLogger("resultbot")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="result-bot-export")
    p.add_argument("--image", default="", help="Local image path or http(s) URL (default: OCR_DEFAULT_IMAGE)")
    p.add_argument("--out", default="output.csv", help="CSV file to write")
    p.add_argument("--engine", default="", help="vision | tesseract (default: OCR_ENGINE)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = build_arg_parser().parse_args(argv)
    load_dotenv(".env")

    settings = Settings.from_env()
    if args.engine:
        settings = dataclasses.replace(settings, ocr_engine=args.engine.strip().lower())

    try:
        provider = make_provider(settings)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    source = (args.image or settings.default_image).strip()
    try:
        asyncio.run(run_ocr_export(source, args.out, provider=provider))
    except EmptyResultError as e:
        print(e.message, file=sys.stderr)
        return 1
    except ResultBotError as e:
        print(f"Failed to read result image: {e.message}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
