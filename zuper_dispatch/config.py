"""Centralized configuration for the Zuper dispatch agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/zuper-dispatch/<VARIABLE_NAME>``.

Nothing here is read at import time by the rest of the package: components
take a :class:`Settings` instance (or call :func:`get_settings`) so callers can
override any value without touching the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

from zuper_dispatch.services.ranking import PrimaryTeamRule

load_dotenv()

logger = logging.getLogger(__name__)

SSM_PREFIX = "/zuper-dispatch"
DEFAULT_MODEL_NAME = "claude-sonnet-4-5"


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"{SSM_PREFIX}/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _get_secret(name: str) -> str | None:
    """Return a secret from env-var or SSM, or ``None`` when unset."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if os.getenv("AWS_EXECUTION_ENV"):
        return _get_ssm_parameter(name)
    return None


# ── Settings object ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    """Runtime configuration passed explicitly to every component."""

    # Zuper (last-resort defaults; per-call parameters and context win)
    zuper_api_key: str | None = None
    zuper_base_url: str | None = None

    # LLM
    anthropic_api_key: str | None = None
    model_name: str = DEFAULT_MODEL_NAME

    # Dispatch rules
    primary_team_rule: PrimaryTeamRule = PrimaryTeamRule.FIRST
    workday_start: str = "09:00"
    workday_end: str = "17:00"
    max_slot_hours: int = 8

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
    )

    def __post_init__(self) -> None:
        rule = self.primary_team_rule
        if not isinstance(rule, PrimaryTeamRule):
            try:
                rule = PrimaryTeamRule(str(rule).strip().lower())
            except ValueError:
                allowed = ", ".join(r.value for r in PrimaryTeamRule)
                raise ValueError(
                    f"Invalid PRIMARY_TEAM_RULE {self.primary_team_rule!r}; expected one of: {allowed}"
                ) from None
            object.__setattr__(self, "primary_team_rule", rule)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the process environment (and ``.env``)."""
        return cls(
            zuper_api_key=_get_secret("ZUPER_API_KEY"),
            zuper_base_url=os.getenv("ZUPER_BASE_URL") or None,
            anthropic_api_key=_get_secret("ANTHROPIC_API_KEY"),
            model_name=os.getenv("MODEL_NAME", DEFAULT_MODEL_NAME),
            primary_team_rule=os.getenv("PRIMARY_TEAM_RULE", "first"),
            workday_start=os.getenv("WORKDAY_START", "09:00"),
            workday_end=os.getenv("WORKDAY_END", "17:00"),
            max_slot_hours=int(os.getenv("MAX_SLOT_HOURS", "8")),
            server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
            server_port=int(os.getenv("SERVER_PORT", "8000")),
            cors_origins=os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173",
            ).split(","),
        )

    def require_model_key(self) -> str:
        """Return the LLM API key, or raise a clear error."""
        if not self.anthropic_api_key:
            raise OSError(
                "Missing required configuration: ANTHROPIC_API_KEY. "
                f"Set it in .env (local) or SSM Parameter Store {SSM_PREFIX}/ANTHROPIC_API_KEY (AWS)."
            )
        return self.anthropic_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""
    return Settings.from_env()
