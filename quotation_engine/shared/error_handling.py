"""
Shared error types and user-facing error messages.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


class QuotationEngineError(Exception):
    """Base class for all engine errors."""

    user_message = "An error occurred processing your request"


class ValidationError(QuotationEngineError):
    """Draft failed validation; nothing was written."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class StorageUnavailable(QuotationEngineError):
    """Repository or user namespace not initialized."""

    user_message = "Storage is not initialized or no user is signed in."


class StorageOperationFailed(QuotationEngineError):
    """The backing store rejected a create/update/delete/subscribe."""

    user_message = "The storage operation failed. Please try again."

    def __init__(self, operation: str, message: str = ""):
        super().__init__(f"{operation} failed: {message}" if message else f"{operation} failed")
        self.operation = operation


class ExportUnavailable(QuotationEngineError):
    """Export renderer not configured or not loaded."""

    user_message = "The export renderer is not available yet. Please try again in a moment."


def sanitize_error_message(error: Exception) -> str:
    """
    Strip paths and AWS resource names from an exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    error_msg = str(error)
    error_msg = re.sub(r'/[^\s]+', '[path]', error_msg)
    error_msg = re.sub(r'[A-Z]:\\[^\s]+', '[path]', error_msg)
    error_msg = re.sub(r'arn:aws:[^\s]+', '[aws-resource]', error_msg)

    if 'Traceback' in error_msg or 'File "' in error_msg:
        error_msg = "An internal error occurred"

    return error_msg


def user_message_for(error: Exception, action: Optional[str] = None) -> str:
    """
    Convert any exception raised under an action into one user-visible message.

    Validation messages are shown verbatim; storage and unexpected errors get a
    generic message naming the action. Full details are logged.

    Args:
        error: Exception raised by the action
        action: Human readable action name (e.g. "saving the quote")

    Returns:
        Message to display to the user
    """
    if isinstance(error, ValidationError):
        return error.user_message

    logger.error(f"Error: {type(error).__name__}: {sanitize_error_message(error)}", exc_info=error)

    if isinstance(error, (StorageUnavailable, ExportUnavailable)):
        return error.user_message
    if isinstance(error, StorageOperationFailed) and action:
        return f"Error while {action}. Please try again."
    if isinstance(error, QuotationEngineError):
        return error.user_message
    if action:
        return f"Unexpected error while {action}."
    return QuotationEngineError.user_message
