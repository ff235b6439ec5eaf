"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _env_path(name: str, default: str) -> Path:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        raw = default
    return Path(raw).expanduser()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer.") from exc
    if value <= 0:
        raise RuntimeError(f"{name}={raw!r} must be a positive integer.")
    return value


@dataclass
class AppSettings:
    """Runtime configuration for the site builder.

    Attributes:
        config_dir: Folder holding site.json and pages/.
        assets_dir: Folder for uploaded originals and processed variants.
        public_dir: Output folder for the generated static site.
        versions_dir: Folder for per-page version backups.
        max_requests_per_minute: Outbound AI call budget per rolling minute.
        monthly_token_threshold: Token count that triggers the budget warning.
        openai_model: Model name passed to the Responses API.
        ai_max_output_tokens: Output token cap per AI reply.
        max_versions: Backups kept per page.
        session_cleanup_interval: Seconds between abandoned-draft sweeps.
        log_level: Root logging level name.
        allowed_origins: CORS origins; ["*"] allows any.
    """

    config_dir: Path = field(default_factory=lambda: Path("./config"))
    assets_dir: Path = field(default_factory=lambda: Path("./assets"))
    public_dir: Path = field(default_factory=lambda: Path("./public"))
    versions_dir: Path = field(default_factory=lambda: Path("./versions"))
    max_requests_per_minute: int = 10
    monthly_token_threshold: int = 1_000_000
    openai_model: str = "gpt-5"
    ai_max_output_tokens: int = 4096
    max_versions: int = 10
    session_cleanup_interval: int = 3_600
    log_level: str = "INFO"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Build settings from environment variables (after load_dotenv)."""
        origins = os.getenv("ALLOWED_ORIGINS", "*")
        return cls(
            config_dir=_env_path("CONFIG_DIR", "./config"),
            assets_dir=_env_path("ASSETS_DIR", "./assets"),
            public_dir=_env_path("PUBLIC_DIR", "./public"),
            versions_dir=_env_path("VERSIONS_DIR", "./versions"),
            max_requests_per_minute=_env_int("MAX_REQUESTS_PER_MINUTE", 10),
            monthly_token_threshold=_env_int("MONTHLY_TOKEN_THRESHOLD", 1_000_000),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-5"),
            ai_max_output_tokens=_env_int("AI_MAX_OUTPUT_TOKENS", 4096),
            max_versions=_env_int("MAX_VERSIONS", 10),
            session_cleanup_interval=_env_int("SESSION_CLEANUP_INTERVAL", 3_600),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
        )
