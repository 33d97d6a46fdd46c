"""Structured error taxonomy for task2model."""

from typing import Any, Optional

AUTH_REQUIRED = "AUTH_REQUIRED"
NETWORK_ERROR = "NETWORK_ERROR"
UPSTREAM_ERROR = "UPSTREAM_ERROR"
INVALID_INPUT = "INVALID_INPUT"


class Task2ModelError(Exception):
    """Base exception carrying a machine-readable code and structured details."""

    code = "ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Return the error envelope sent back to tool callers."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthRequiredError(Task2ModelError):
    """Raised when an operation needs an API key and none is configured."""

    code = AUTH_REQUIRED

    def __init__(self, message: str = "API key required for this operation"):
        super().__init__(message, {"hint": "Set OPENROUTER_API_KEY environment variable"})


class NetworkError(Task2ModelError):
    """Raised when a provider call could not complete."""

    code = NETWORK_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, {"cause": str(cause) if cause is not None else None})
        self.cause = cause


class UpstreamError(Task2ModelError):
    """Raised when the provider answers with a non-success status."""

    code = UPSTREAM_ERROR

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message, {"status": status, "body": body})
        self.status = status
        self.body = body


class InvalidInputError(Task2ModelError):
    """Raised when caller input fails validation or names an unknown model."""

    code = INVALID_INPUT

    def __init__(self, message: str, **details: Any):
        super().__init__(message, details)
