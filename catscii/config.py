"""
catscii — Application Configuration
=====================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and exposes one `Settings` object that the
       entry point builds once and hands to `create_app()`.
When:  Built at process startup, BEFORE the listening socket is bound.

Required credentials:
    SENTRY_DSN         — always required (crash reporting)
    HONEYCOMB_API_KEY  — required only when TRACING_ENABLED=true

    A missing credential raises StartupConfigurationError from
    validate_required(); the entry point turns that into a non-zero exit.
"""

import logging
from typing import Dict, List, Literal, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from catscii import __version__
from catscii.exceptions import StartupConfigurationError


# ══════════════════════════════════════════════════════════════════════════
# Log Filter Parsing
# ══════════════════════════════════════════════════════════════════════════

# Python logging has no TRACE level; trace maps onto DEBUG.
LOG_LEVEL_NAMES: Dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}


def parse_log_filter(spec: str) -> Tuple[int, Dict[str, int]]:
    """
    Parse a logging filter specification.

    Format:
        "info"                         → root at INFO
        "warn,catscii=debug"           → root at WARNING, catscii at DEBUG
        "catscii.services=trace,httpx=off"

    A bare level sets the root level (INFO when none is given); each
    `target=level` entry sets the level of the named logger.

    Returns:
        (root_level, {logger_name: level})

    Raises:
        ValueError: Unknown level name or an empty target.
    """
    root_level = logging.INFO
    targets: Dict[str, int] = {}

    for raw in spec.split(","):
        directive = raw.strip()
        if not directive:
            continue

        if "=" in directive:
            target, _, level_name = directive.partition("=")
            target = target.strip()
            if not target:
                raise ValueError(f"Invalid log filter directive '{directive}': empty target")
            targets[target] = _level_from_name(level_name, directive)
        else:
            root_level = _level_from_name(directive, directive)

    return root_level, targets


def _level_from_name(name: str, directive: str) -> int:
    level = LOG_LEVEL_NAMES.get(name.strip().lower())
    if level is None:
        raise ValueError(
            f"Invalid log filter directive '{directive}'. "
            f"Levels must be one of: {sorted(LOG_LEVEL_NAMES)}"
        )
    return level


# ══════════════════════════════════════════════════════════════════════════
# Settings
# ══════════════════════════════════════════════════════════════════════════

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern. Everything except the crash-reporting
    credential has a working default.
    """

    # ── Logging ───────────────────────────────────────────────────────────
    # What: Filter spec, e.g. "info" or "warn,catscii=debug"
    log_filter: str = Field(default="info")

    # What: Exact paths left out of the access log (JSON list in the env)
    access_log_skip_paths: List[str] = Field(default_factory=lambda: ["/health"])

    @field_validator("log_filter")
    @classmethod
    def validate_log_filter(cls, v: str) -> str:
        """Rejects filter specs that would silently misconfigure logging."""
        parse_log_filter(v)
        return v

    # ── Crash Reporting (Sentry) ──────────────────────────────────────────
    sentry_dsn: str = Field(default="", description="Sentry DSN (required)")
    sentry_environment: str = Field(default="production")
    sentry_release: str = Field(default=f"catscii@{__version__}")

    # ── Tracing (OpenTelemetry → Honeycomb) ───────────────────────────────
    tracing_enabled: bool = Field(default=False)
    honeycomb_api_key: str = Field(default="")
    tracing_endpoint: str = Field(default="https://api.honeycomb.io/v1/traces")
    service_name: str = Field(default="catscii")

    # ── Image Source ──────────────────────────────────────────────────────
    # cataas:    GET one endpoint that returns image bytes directly
    # thecatapi: GET a JSON search result, then GET the image URL it names
    image_source: Literal["cataas", "thecatapi"] = Field(default="cataas")
    cataas_url: str = Field(default="https://cataas.com/cat")
    thecatapi_search_url: str = Field(default="https://api.thecatapi.com/v1/images/search")
    thecatapi_api_key: str = Field(default="")

    # What: Per-call timeout for outbound requests (connect + read)
    http_timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    # What: Upper bound on a downloaded image
    # Default: 10MB = 10 * 1024 * 1024 = 10485760
    max_image_bytes: int = Field(default=10_485_760, ge=1024, le=104_857_600)

    # ── ASCII Conversion ──────────────────────────────────────────────────
    ascii_columns: int = Field(default=120, ge=10, le=500)

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)
    shutdown_grace_seconds: int = Field(default=30, ge=0, le=600)

    # What: Registers GET /panic, which crashes deliberately to exercise
    # crash reporting. Never enable in normal operation.
    enable_panic_route: bool = Field(default=False)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """
        What:  Validates that every required credential is configured.
        When:  Called by create_app(), before anything binds a port.
        Raises:
            StartupConfigurationError listing every missing variable.
        """
        missing: List[str] = []
        if not self.sentry_dsn:
            missing.append("SENTRY_DSN must be set")
        if self.tracing_enabled and not self.honeycomb_api_key:
            missing.append("HONEYCOMB_API_KEY must be set when TRACING_ENABLED=true")
        if missing:
            raise StartupConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"  - {m}" for m in missing),
                context={"missing": missing},
            )
