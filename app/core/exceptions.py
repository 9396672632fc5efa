"""Error taxonomy shared by the conversation pipeline and the API layer.

Each error carries two texts: ``message`` for logs and ``user_message`` for
the client. The API maps classes to HTTP statuses in ``app.main``.
"""

from typing import Any


class MagisterError(Exception):
    """Base exception for the application."""

    code = "error"
    default_user_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        *,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.user_message = user_message or self.default_user_message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(MagisterError):
    """Referenced chat, mentor or document is missing or not visible."""

    code = "not_found"
    default_user_message = "The requested item could not be found."

    def __init__(self, resource: str, resource_id: Any = None) -> None:
        label = f"{resource} {resource_id}" if resource_id is not None else resource
        super().__init__(
            f"{label} not found",
            user_message=f"{resource} not found.",
            details={"resource": resource},
        )


class UnauthorizedError(MagisterError):
    """Acting user does not own the resource being mutated."""

    code = "unauthorized"
    default_user_message = "You are not allowed to modify this item."


class ValidationError(MagisterError):
    """Input rejected by a business rule."""

    code = "validation_error"
    default_user_message = "The request is invalid."


# ── Upstream (LLM vendor) errors ─────────────────────────────────────


class UpstreamError(MagisterError):
    """Generic LLM call failure."""

    code = "upstream_error"
    default_user_message = "The mentor could not answer right now. Please try again."


class UpstreamConfigError(UpstreamError):
    """LLM credential missing from configuration."""

    code = "upstream_not_configured"
    default_user_message = (
        "The AI service is not configured. Ask an administrator to set the OpenAI API key."
    )


class UpstreamAuthError(UpstreamError):
    """Credential present but rejected by the vendor."""

    code = "upstream_auth_rejected"
    default_user_message = (
        "The AI service rejected its credentials. Ask an administrator to check the OpenAI API key."
    )


class UpstreamRateLimitedError(UpstreamError):
    """Vendor rate limit hit; the caller may retry later."""

    code = "upstream_rate_limited"
    default_user_message = "The mentor is receiving too many requests. Please wait a moment and retry."


class UpstreamServerError(UpstreamError):
    """Vendor-side 5xx failure."""

    code = "upstream_server_error"
    default_user_message = "The AI service is temporarily unavailable. Please retry shortly."


class UpstreamProtocolError(UpstreamError):
    """Response did not have the expected shape."""

    code = "upstream_protocol_error"
