from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env(name: str, alt: Optional[str] = None, default: str = "") -> str:
    v = (os.getenv(name) or (os.getenv(alt) if alt else "") or "").strip()
    return v or default


@dataclass(frozen=True)
class Settings:
    # Discord
    bot_token: str
    application_id: str
    public_key: str
    guild_id: str  # empty -> global commands
    remove_commands: bool  # delete our commands again on shutdown

    # OCR
    ocr_engine: str  # vision | tesseract
    vision_api_key: str
    max_results: int

    # Output
    output_dir: str
    default_image: str  # used when /ocr is invoked without an attachment
    keep_output: bool  # keep each request's CSV on disk after it was uploaded

    # General
    http_timeout_seconds: float
    environment: str
    host: str
    port: int

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            bot_token=_get_env("DISCORD_TOKEN", "DISCORD_BOT_TOKEN"),
            application_id=_get_env("DISCORD_APPLICATION_ID", "DISCORD_APP_ID"),
            public_key=_get_env("DISCORD_PUBLIC_KEY"),
            guild_id=_get_env("TEST_GUILD", "DISCORD_GUILD_ID"),
            remove_commands=_get_bool("REMOVE_COMMANDS", True),
            ocr_engine=_get_env("OCR_ENGINE", default="vision").lower(),
            vision_api_key=_get_env("GOOGLE_VISION_API_KEY"),
            max_results=_get_int("OCR_MAX_RESULTS", 10),
            output_dir=_get_env("OCR_OUTPUT_DIR", default="output"),
            default_image=_get_env("OCR_DEFAULT_IMAGE", default="testdata/sdvx_result.jpg"),
            keep_output=_get_bool("OCR_KEEP_OUTPUT", False),
            http_timeout_seconds=_get_float("HTTP_TIMEOUT_SECONDS", 15.0),
            environment=_get_env("ENVIRONMENT", "ENV", default="stage"),
            host=_get_env("HOST", default="0.0.0.0"),
            port=_get_int("PORT", 8000),
        )
