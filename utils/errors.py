"""Error kinds raised by the site builder services.

Controllers translate these into HTTP responses; services raise them and let
collaborator errors (OSError and friends) propagate unchanged.
"""

from __future__ import annotations

from typing import Any, Optional


class SiteBuilderError(Exception):
    """Base class for all domain errors."""


class ConfigValidationError(SiteBuilderError):
    """Raised when a site/page/draft configuration fails validation.

    Attributes:
        field: Dotted name of the offending field, when a single field is at fault.
        value: The rejected value, when known.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class SiteConfigNotFoundError(SiteBuilderError):
    """Raised when site.json does not exist yet (onboarding not done)."""


class PageNotFoundError(SiteBuilderError):
    def __init__(self, page_id: str) -> None:
        super().__init__(f"Page configuration not found: {page_id}")
        self.page_id = page_id


class DraftNotFoundError(SiteBuilderError):
    def __init__(self, page_id: str) -> None:
        super().__init__(f"Draft configuration not found: {page_id}")
        self.page_id = page_id


class AlreadyEditingError(SiteBuilderError):
    """Raised by start_editing when the page already has a live session."""

    def __init__(self, page_id: str) -> None:
        super().__init__(f"Page {page_id} is already being edited")
        self.page_id = page_id


class NoActiveSessionError(SiteBuilderError):
    """Raised by session operations that require a live session."""

    def __init__(self, page_id: str) -> None:
        super().__init__(f"No active editing session for page: {page_id}")
        self.page_id = page_id


class RateLimitTimeoutError(SiteBuilderError):
    """Raised by RateLimiter.acquire when a deadline passes before admission."""


class AIAgentError(SiteBuilderError):
    """Raised when the language model call fails after retries."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class VersionNotFoundError(SiteBuilderError):
    def __init__(self, page_id: str, version_number: int) -> None:
        super().__init__(f"Version {version_number} not found for page {page_id}")
        self.page_id = page_id
        self.version_number = version_number


class AssetProcessingError(SiteBuilderError):
    """Raised for rejected uploads and image processing failures."""
