"""Error taxonomy and classification for catalog, query state and clipboard failures."""

from enum import Enum

import httpx
from pydantic import BaseModel


class PluginCatalogError(Exception):
    """Base class for all plugin-catalog errors."""


class CatalogLoadError(PluginCatalogError):
    """The catalog could not be fetched or parsed."""


class PersistedStateDecodeError(PluginCatalogError, ValueError):
    """The shareable fragment is not valid percent-encoded UTF-8."""


class ClipboardPrimaryError(PluginCatalogError):
    """The primary clipboard mechanism is unavailable or refused the write."""


class ClipboardFallbackError(PluginCatalogError):
    """The legacy copy command failed after the scratch file was prepared."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_CATALOG_NETWORK = "ERR_CATALOG_NETWORK"
    ERR_CATALOG_HTTP_STATUS = "ERR_CATALOG_HTTP_STATUS"
    ERR_CATALOG_INVALID = "ERR_CATALOG_INVALID"
    ERR_CATALOG_PENDING = "ERR_CATALOG_PENDING"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-facing messaging."""

    code: str
    message: str
    severity: ErrorSeverity


def classify_catalog_error(exception: BaseException) -> ErrorResponse:
    """Classify a catalog load failure into a structured response.

    The user-facing message is fixed; the code distinguishes the cause for
    logs and API clients.

    Args:
        exception: The exception raised while loading the catalog (or its cause)

    Returns:
        ErrorResponse describing the failure
    """
    cause = exception.__cause__ if isinstance(exception, CatalogLoadError) and exception.__cause__ else exception
    message = "Could not fetch plugins"

    if isinstance(cause, httpx.HTTPStatusError):
        return ErrorResponse(code=ErrorCode.ERR_CATALOG_HTTP_STATUS, message=message, severity=ErrorSeverity.MEDIUM)

    if isinstance(cause, httpx.TransportError):
        return ErrorResponse(code=ErrorCode.ERR_CATALOG_NETWORK, message=message, severity=ErrorSeverity.MEDIUM)

    if isinstance(cause, (ValueError, TypeError, KeyError)):
        return ErrorResponse(code=ErrorCode.ERR_CATALOG_INVALID, message=message, severity=ErrorSeverity.HIGH)

    return ErrorResponse(code=ErrorCode.ERR_UNKNOWN, message=message, severity=ErrorSeverity.HIGH)
