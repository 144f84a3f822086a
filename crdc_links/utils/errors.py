"""Exceptions raised by the CRDC link mapping pipeline."""
from __future__ import annotations

from typing import Sequence


class CrdcLinksError(Exception):
    """Base exception for mapping failures."""


class ConfigurationError(CrdcLinksError):
    """Raised when required environment variables are missing."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"The following environment variables are not set: {', '.join(self.missing)}"
        )


class BackendNotConnectedError(CrdcLinksError):
    """Raised when the ICDC Bento backend cannot be queried for study data."""


class StudyCodeNotFoundError(CrdcLinksError):
    """Raised when a requested study code is not among the ICDC studies."""

    def __init__(self, study_code: str) -> None:
        self.study_code = study_code
        super().__init__(f"Study code '{study_code}' not found in ICDC studies")


__all__ = [
    "BackendNotConnectedError",
    "ConfigurationError",
    "CrdcLinksError",
    "StudyCodeNotFoundError",
]
