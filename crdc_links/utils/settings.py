"""Resolved process settings for the registry and archive endpoints."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_VERSION = "Version not set!"
DEFAULT_REQUEST_TIMEOUT = 30

REQUIRED_VARIABLES = (
    "BENTO_BACKEND_GRAPHQL_URI",
    "IDC_API_BASE_URL",
    "IDC_COLLECTION_BASE_URL",
    "TCIA_API_BASE_URL",
    "TCIA_COLLECTION_BASE_URL",
)


@dataclass(frozen=True)
class Settings:
    """Endpoint configuration shared by the fetchers and the link builders."""

    bento_backend_graphql_uri: str
    idc_api_base_url: str
    idc_collection_base_url: str
    tcia_api_base_url: str
    tcia_collection_base_url: str
    version: str = DEFAULT_VERSION
    date: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (``os.environ`` by default).

        Every required variable is checked before raising so the error names
        all of the unset ones at once.
        """

        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_VARIABLES if not (env.get(name) or "").strip()]
        if missing:
            raise ConfigurationError(missing)

        raw_timeout = (env.get("REQUEST_TIMEOUT") or "").strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_REQUEST_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"REQUEST_TIMEOUT must be a number, got {raw_timeout!r}") from exc

        return cls(
            bento_backend_graphql_uri=env["BENTO_BACKEND_GRAPHQL_URI"].strip(),
            idc_api_base_url=env["IDC_API_BASE_URL"].strip(),
            idc_collection_base_url=env["IDC_COLLECTION_BASE_URL"].strip(),
            tcia_api_base_url=env["TCIA_API_BASE_URL"].strip(),
            tcia_collection_base_url=env["TCIA_COLLECTION_BASE_URL"].strip(),
            version=(env.get("VERSION") or "").strip() or DEFAULT_VERSION,
            date=(env.get("DATE") or "").strip() or datetime.now(timezone.utc).isoformat(),
            request_timeout=timeout,
        )


__all__ = ["DEFAULT_REQUEST_TIMEOUT", "REQUIRED_VARIABLES", "Settings"]
