"""
Centralized error handling for the card identification engine.

Every error carries a developer-facing ``message`` with optional ``details``
and a ``user_message`` that the identification session surfaces to callers.
Most of these are recovered locally (a failed OCR pass or catalog query moves
on to the next pass or layer); only exhaustion reaches the caller, and then as
an ``IdentificationResult`` error rather than a raised exception.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class CardIdentifierError(Exception):
    """Base exception class for all card identifier errors."""

    user_message = "Something went wrong while identifying the card."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        message = message or self.user_message
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardIdentifierError):
    """Raised when there are configuration or environment variable issues."""
    user_message = "The scanner is not configured correctly."


class CaptureError(CardIdentifierError):
    """Raised when there is no usable captured image."""
    user_message = "No image to scan. Take a photo of the card first."


class NoCardDetected(CaptureError):
    """No card outline was found; the full or center-cropped image is used instead."""
    user_message = "No card outline detected."


class OCRError(CardIdentifierError):
    """Raised when OCR processing fails or produces unusable results."""
    user_message = "Could not read card text. Try taking a clearer photo."


class NoTextExtracted(OCRError):
    """Text recognition returned no candidates at all."""
    user_message = "Could not read card text. Try taking a clearer photo."


class NoFieldsExtracted(OCRError):
    """Candidates were read but none looked like a name, number, set or HP."""
    user_message = "Could not identify card details. Try taking a clearer photo."


class ResolutionError(CardIdentifierError):
    """Raised when the catalog could not resolve the extracted fields."""
    user_message = "Could not identify card from image. Try taking a clearer photo."


class CardNotFound(ResolutionError):
    """Every query layer came back empty."""
    user_message = "Could not identify card from image. Try taking a clearer photo."


class AmbiguousMatch(ResolutionError):
    """Only the low-precision HP layer produced results."""
    user_message = (
        "Multiple cards found with the same HP. Please select the correct card "
        "from the list or try scanning again."
    )


class NetworkError(CardIdentifierError):
    """Raised when network requests fail."""
    user_message = "Network error: please check your internet connection and try again."


class CatalogUnavailable(NetworkError):
    """The catalog service timed out, was unreachable or returned a server error."""
    user_message = (
        "Could not reach the card catalog. Check your internet connection and try again."
    )


class MatchSelectionError(CardIdentifierError):
    """Raised when a caller selects a match that is not in the potential matches."""
    user_message = "That card is not one of the potential matches."


class CollectionStoreError(CardIdentifierError):
    """Raised when collection store operations fail."""
    user_message = "Could not update your collection."


@dataclass
class ErrorContext:
    """Context information for error reporting."""
    operation: str
    module: str
    function: str
    input_data: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


def handle_error(
    error: Exception,
    context: ErrorContext,
    logger,
    reraise: bool = True,
    default_return: Any = None
) -> Any:
    """
    Centralized error handling with logging and optional recovery.

    Args:
        error: The exception that occurred
        context: Context information about where the error occurred
        logger: Logger (structlog or stdlib) used for error reporting
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if not re-raising

    Returns:
        The default_return value if not re-raising

    Raises:
        The original exception if reraise is True
    """
    error_msg = f"Error in {context.module}.{context.function} during {context.operation}"

    if isinstance(error, CardIdentifierError):
        error_msg += f": {error.message}"
        if error.details:
            error_msg += f" | Details: {error.details}"
    else:
        error_msg += f": {str(error)}"

    logger.error(
        error_msg,
        extra={
            "error_type": type(error).__name__,
            "operation": context.operation,
            "error_module": context.module,
            "error_function": context.function,
            "input_data": context.input_data,
            "timestamp": context.timestamp,
        },
        exc_info=error,
    )

    if reraise:
        raise error

    return default_return
