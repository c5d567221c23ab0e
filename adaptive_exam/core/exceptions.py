"""
Error taxonomy for the adaptive exam package.

Numeric routines (ability estimation, item selection) are total and never
raise. Only configuration mistakes and state-machine misuse surface as
exceptions, raised synchronously to the immediate caller.
"""

from typing import Any, Dict, Optional


class AdaptiveTestError(Exception):
    """Base exception for adaptive test errors."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize with message, optional cause, and structured context."""
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            msg = f"{msg} (context: {ctx_str})"
        if self.original_error:
            msg = f"{msg} - caused by: {str(self.original_error)}"
        return msg


class ConfigurationError(AdaptiveTestError, ValueError):
    """Raised when a test policy or item pool is malformed."""


class SessionStateError(AdaptiveTestError):
    """Raised when a session operation is called in the wrong state."""


class ItemBankError(AdaptiveTestError):
    """Raised for unknown banks or invalid bank contents."""
