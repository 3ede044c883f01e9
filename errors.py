"""Exception types raised across the extraction pipeline."""
from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for every failure the extractor reports."""


class FetchError(ExtractionError):
    """A single remote operation exhausted its retry budget."""

    def __init__(self, request: str, attempts: int, last_error: Optional[BaseException | str] = None) -> None:
        self.request = request
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{request} failed after {attempts} attempt(s): {last_error}")


class DiscoveryError(ExtractionError):
    """The vault population could not be enumerated at all."""


class ParseError(ExtractionError, ValueError):
    """A row or sample had an unexpected shape."""


class VaultProcessingError(ExtractionError):
    """The primary detail fetch for one vault failed; only that vault is skipped."""

    def __init__(self, address: str, cause: BaseException) -> None:
        self.address = address
        self.cause = cause
        super().__init__(f"Could not process vault {address}: {cause}")
