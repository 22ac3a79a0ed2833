"""Client configuration.

Centralises environment variables (pydantic-settings) so the CLI and the
engine adapter read the same contract.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "localsub"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "localsub"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "localsub"
    return Path.home() / ".config" / "localsub"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# LocalSub user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Application settings.

    Sources, in order: process environment, the project `.env`, then the
    user-level `.env` written by `doctor setup-engine`.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCALSUB_",
        extra="ignore",
        case_sensitive=False,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    engine_base_url: str = Field(
        default="http://127.0.0.1:7878/api",
        min_length=8,
        description="Base URL of the conversion engine; operations are POSTed to <base>/<operation>.",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Transport timeout for a single engine call (seconds).",
    )
    user_agent: str = Field(
        default="localsub-client/0.1",
        min_length=1,
        description="User-Agent sent to the engine.",
    )
    request_timeout_secs: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Fetch timeout the engine applies to subscription downloads.",
    )
    language: Language = Field(
        default=Language.ENGLISH,
        description="Language for user-facing messages (en/zh).",
    )
    discard_stale_responses: bool = Field(
        default=True,
        description="Ignore engine responses that arrive after a reset or a newer request.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Root log level for the CLI.",
    )
