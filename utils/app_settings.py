from __future__ import annotations

import os
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

BASE_DIR = Path(__file__).resolve().parent.parent


class AppSettings(BaseModel):
    """Runtime configuration for the photo service."""

    openai_api_key: Optional[str] = Field(
        default=None, description="API key for the image generation provider"
    )
    image_model: str = Field(default="gpt-image-1", description="Model used for image edits")
    openai_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        le=900,
        description="Upper bound for a single image edit request",
    )
    database_dir: Path = Field(..., description="Directory holding the SQLite database file")
    content_dir: Path = Field(
        default_factory=lambda: Path("generated"),
        description="Directory receiving a copy of every generated image",
    )
    upload_dir: Path = Field(
        default_factory=lambda: Path("uploads"),
        description="Directory for temporary uploaded photos",
    )
    logo_path: Path = Field(
        default_factory=lambda: BASE_DIR / "assets" / "logo.png",
        description="Reference logo sent alongside every photo",
    )
    reset_database_on_startup: bool = Field(
        default=False, description="Delete and recreate the database when the app starts"
    )
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(default="INFO")


def _bool_from_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _float_from_env(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid float value: {value}") from exc


def _list_from_env(value: Optional[str], default: List[str]) -> List[str]:
    if value is None or not value.strip():
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def cors_origins_from_env() -> List[str]:
    return _list_from_env(os.getenv("CORS_ORIGINS"), ["*"])


def load_settings(dotenv_path: str | Path | None = None) -> AppSettings:
    """
    Load settings from environment variables (optionally seeded by a .env file).

    Raises:
        RuntimeError: If DATABASE_DIR is missing or a value is invalid.
    """
    env_path = Path(dotenv_path) if dotenv_path else Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    database_dir = os.getenv("DATABASE_DIR")
    if database_dir is None or not database_dir.strip():
        raise RuntimeError(
            "DATABASE_DIR environment variable must be set to a writable "
            "directory path where the SQLite database file will be stored."
        )

    data = {
        "openai_api_key": os.getenv("OPENAI_API_KEY"),
        "image_model": os.getenv("OPENAI_IMAGE_MODEL", "gpt-image-1"),
        "openai_timeout_seconds": _float_from_env(os.getenv("OPENAI_TIMEOUT_SECONDS"), 120.0),
        "database_dir": Path(database_dir).expanduser(),
        "content_dir": Path(os.getenv("CONTENT_DIR", "generated")),
        "upload_dir": Path(os.getenv("UPLOAD_DIR", "uploads")),
        "logo_path": Path(os.getenv("LOGO_PATH", str(BASE_DIR / "assets" / "logo.png"))),
        "reset_database_on_startup": _bool_from_env(os.getenv("RESET_DATABASE_ON_STARTUP"), False),
        "cors_origins": _list_from_env(os.getenv("CORS_ORIGINS"), ["*"]),
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
    }

    try:
        return AppSettings(**data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
