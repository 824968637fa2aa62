"""
Shared helpers for orchestrator actions.
"""

from dataclasses import dataclass
from typing import Any, Optional

from quotation_engine.shared.error_handling import user_message_for


@dataclass
class ActionResult:
    """Outcome of one user action: success flag, user message, optional payload."""

    ok: bool
    message: str = ""
    data: Any = None
    error: Optional[Exception] = None


def create_result(message: str = "", data: Any = None) -> ActionResult:
    return ActionResult(ok=True, message=message, data=data)


def create_error_result(error: Exception, action: Optional[str] = None) -> ActionResult:
    """Convert an exception caught at an action boundary into a failed result."""
    return ActionResult(ok=False, message=user_message_for(error, action), error=error)
