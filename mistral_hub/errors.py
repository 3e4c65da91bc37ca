"""Error taxonomy shared by the API, the upstream client and the UI.

Each API-facing error carries the HTTP status it maps to. The FastAPI
exception handler in ``mistral_hub.api.app`` renders them as ``{"error": ...}``.
"""

from fastapi import status


class MistralHubError(Exception):
    """Base class for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingFieldError(MistralHubError):
    """Raised when a required request field is absent or empty."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(MistralHubError):
    """Raised when the model API call fails (HTTP error, timeout, network)."""


class EmptyResultError(MistralHubError):
    """Raised when the model API succeeds but returns no usable content."""


class StreamParseError(MistralHubError):
    """Raised by the stream consumer after too many unparseable frames."""


class StorageUnavailableError(MistralHubError):
    """Raised internally when the persistence medium cannot be reached.

    Never surfaced to users: the conversation store degrades to no-ops.
    """


class AttachmentError(MistralHubError):
    """Raised when an uploaded file is unsupported, too large or corrupt."""

    status_code = status.HTTP_400_BAD_REQUEST


class ApiError(MistralHubError):
    """Raised by the UI's HTTP client when an endpoint returns an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
