"""Translate service errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from utils.errors import (
	AIAgentError,
	AlreadyEditingError,
	AssetProcessingError,
	ConfigValidationError,
	DraftNotFoundError,
	NoActiveSessionError,
	PageNotFoundError,
	RateLimitTimeoutError,
	SiteBuilderError,
	SiteConfigNotFoundError,
	VersionNotFoundError,
)

STATUS_BY_ERROR = (
	(AlreadyEditingError, 409),
	(NoActiveSessionError, 404),
	(PageNotFoundError, 404),
	(DraftNotFoundError, 404),
	(SiteConfigNotFoundError, 404),
	(VersionNotFoundError, 404),
	(ConfigValidationError, 400),
	(AssetProcessingError, 400),
	(AIAgentError, 502),
	(RateLimitTimeoutError, 503),
)


def to_http_exception(exc: SiteBuilderError) -> HTTPException:
	for error_type, status in STATUS_BY_ERROR:
		if isinstance(exc, error_type):
			return HTTPException(status_code=status, detail=str(exc))
	return HTTPException(status_code=500, detail=str(exc))
