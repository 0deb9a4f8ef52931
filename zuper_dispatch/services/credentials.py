"""Zuper credential resolution.

Credentials can come from three places, highest priority first:

1. Explicit tool / function parameters (``api_key``, ``base_url``)
2. The ambient request context (set per web request or per CLI run with
   :func:`use_zuper_context`)
3. :class:`~zuper_dispatch.config.Settings` (environment defaults)

Each field is resolved independently, so a caller may override only the
base URL and still pick up the API key from the environment.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

from zuper_dispatch.config import Settings, get_settings


class ZuperError(Exception):
    """Base class for every Zuper integration failure."""


class MissingCredentialsError(ZuperError):
    """Raised before any network call when no source supplies a credential."""


@dataclass(frozen=True)
class ZuperCredentials:
    api_key: str
    base_url: str


@dataclass(frozen=True)
class ZuperContext:
    """Per-session Zuper credentials (e.g. from an authenticated web user)."""

    api_key: str | None = None
    base_url: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    organization_id: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key and self.base_url)

    @property
    def caller(self) -> str:
        """Tenant, organization and user ids for log lines (never the key)."""
        ids = (
            ("tenant", self.tenant_id),
            ("org", self.organization_id),
            ("user", self.user_id),
        )
        return " ".join(f"{name}={value}" for name, value in ids if value) or "-"


_current_context: ContextVar[ZuperContext | None] = ContextVar(
    "zuper_context", default=None,
)


def current_zuper_context() -> ZuperContext | None:
    """Return the ambient context for the running task, if any."""
    return _current_context.get()


@contextmanager
def use_zuper_context(context: ZuperContext | None) -> Iterator[ZuperContext | None]:
    """Make *context* the ambient Zuper context inside the ``with`` block.

    Uses a ``ContextVar`` so the value follows asyncio tasks spawned inside
    the block (tool calls, ``asyncio.gather`` fan-outs) and never leaks into
    concurrent requests.
    """
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)


def resolve_credentials(
    api_key: str | None = None,
    base_url: str | None = None,
    *,
    context: ZuperContext | None = None,
    settings: Settings | None = None,
) -> ZuperCredentials:
    """Pick the highest-priority API key and base URL, or raise.

    Raises:
        MissingCredentialsError: if no source supplies the API key or the
            base URL (the key is checked first).
    """
    settings = settings or get_settings()
    context = context or ZuperContext()

    resolved_key = api_key or context.api_key or settings.zuper_api_key
    resolved_url = base_url or context.base_url or settings.zuper_base_url

    if not resolved_key:
        raise MissingCredentialsError(
            "Zuper API key is required. Provide it via:\n"
            "1. Tool parameter: api_key\n"
            "2. Request context: X-Zuper-Api-Key header / ZuperContext.api_key\n"
            "3. Environment variable: ZUPER_API_KEY"
        )
    if not resolved_url:
        raise MissingCredentialsError(
            "Zuper base URL is required. Provide it via:\n"
            "1. Tool parameter: base_url (e.g. https://us.zuperpro.com)\n"
            "2. Request context: X-Zuper-Base-Url header / ZuperContext.base_url\n"
            "3. Environment variable: ZUPER_BASE_URL"
        )

    return ZuperCredentials(api_key=resolved_key, base_url=resolved_url.rstrip("/"))
