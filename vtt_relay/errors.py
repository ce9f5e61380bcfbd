"""Error taxonomy rendered by the app's exception handlers."""

from typing import Any


class ServiceError(Exception):
    """Base for errors that map to a JSON error response."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            content["details"] = self.details
        return content


class UploadValidationError(ServiceError):
    """Rejected upload: missing file, wrong extension, too large, too many files."""

    status_code = 400
    error = "Invalid upload"


class InvalidPayloadError(ServiceError):
    """Request body is well-formed JSON but missing what the handler needs."""

    status_code = 400
    error = "Invalid request body"


class SignatureError(ServiceError):
    """Webhook request failed x-zm-signature verification."""

    status_code = 401
    error = "Invalid webhook signature"


class ConfigurationError(ServiceError):
    """A required secret or URL is not configured."""

    error = "Service is not configured"


class UpstreamError(ServiceError):
    """Failure talking to the meeting provider. Provider payload goes in details."""

    error = "Failed to fetch transcript"

    def to_content(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "details": self.details}


class TokenFetchError(UpstreamError):
    """OAuth account-credentials grant failed."""


class ZoomAPIError(UpstreamError):
    """Recording lookup or transcript download failed."""


class TranscriptNotFoundError(ServiceError):
    """The meeting's recordings contain no transcript file."""

    status_code = 404
    error = "No transcript file found for this meeting"
