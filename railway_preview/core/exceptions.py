"""
Error kinds raised by the preview environment components.

Transport failures and GraphQL errors are kept apart so the strategy chains
can tell "the platform rejected this shape" from "the platform is unreachable";
both are tolerated by fallback chains, neither is retried at the GraphQL level.
"""

from typing import Any, Dict, List, Optional, Union


class PreviewEnvironmentError(Exception):
    """Base class for every error raised by railway_preview."""


class TransportError(PreviewEnvironmentError):
    """Non-2xx or unparsable response from a remote endpoint."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


def _error_message(error: Any) -> str:
    # Non-conforming servers send bare strings instead of error objects
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


class PlatformQueryError(PreviewEnvironmentError):
    """The remote API returned structured errors for a well-formed request."""

    def __init__(self, errors: List[Union[Dict[str, Any], str]]) -> None:
        self.errors = errors
        messages = [_error_message(error) for error in errors] or ["unknown error"]
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")

    def mentions_not_found(self) -> bool:
        return any(
            "not found" in _error_message(error).lower() for error in self.errors
        )


class ValidationError(PreviewEnvironmentError):
    """Locally detected invalid input; never sent over the wire."""


class NotFoundError(PreviewEnvironmentError):
    """Referenced environment or pull request does not exist."""


class SourceEnvironmentError(PreviewEnvironmentError):
    """The source environment cannot be resolved, so the run cannot proceed."""
