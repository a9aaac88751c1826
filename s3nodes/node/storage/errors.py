"""Storage error types and error classification."""

from typing import Any

from botocore.exceptions import ClientError

# Service status codes with a fixed user-facing description
_STATUS_MESSAGES = {
    404: "File not found",
    403: "Access denied",
    400: "Invalid request",
}

_UNITS = ((1024**3, "GB"), (1024**2, "MB"), (1024, "KB"))


def format_size(num_bytes: int) -> str:
    """Format a byte count using the largest whole binary unit."""
    for factor, unit in _UNITS:
        if num_bytes >= factor and num_bytes % factor == 0:
            return f"{num_bytes // factor} {unit}"
    return f"{num_bytes} bytes"


class StorageError(Exception):
    """Base exception for storage operations."""


class SizeLimitExceededError(StorageError):
    """Object or payload is larger than the node allows.

    Raised locally, never reported by the service.
    """

    def __init__(self, limit: int, size: int | None = None, subject: str = "File"):
        super().__init__(f"{subject} size exceeds limit of {format_size(limit)}")
        self.limit = limit
        self.size = size


def status_code_of(exc: BaseException) -> int | None:
    """Extract the service-reported HTTP status code from an error, if any."""
    if isinstance(exc, ClientError):
        metadata: dict[str, Any] = exc.response.get("ResponseMetadata", {})
        code = metadata.get("HTTPStatusCode")
        if isinstance(code, int):
            return code
        # Some S3-compatible services only fill in the error code
        error_code = exc.response.get("Error", {}).get("Code", "")
        if isinstance(error_code, str) and error_code.isdigit():
            return int(error_code)
        return None

    for attr in ("status_code", "http_status"):
        code = getattr(exc, attr, None)
        if isinstance(code, int):
            return code
    return None


def classify_error(exc: BaseException) -> str:
    """Map a storage failure to a human-readable message.

    404, 403 and 400 get a fixed description; every other failure
    (or one without a status code) is described by its own text.
    """
    code = status_code_of(exc)
    if code in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[code]
    return str(exc)
