"""Storage client, models and errors for object operations.

Provides the S3 client wrapper used by the download and upload nodes,
the upload receipt model, content type inference and the mapping from
storage failures to user-facing messages.
"""

from .client import CHUNK_SIZE, StorageClient
from .content_types import CONTENT_TYPES, DEFAULT_CONTENT_TYPE, content_type_for
from .errors import SizeLimitExceededError, StorageError, classify_error
from .models import Credentials, UploadReceipt

__all__ = [
    "CHUNK_SIZE",
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "Credentials",
    "SizeLimitExceededError",
    "StorageClient",
    "StorageError",
    "UploadReceipt",
    "classify_error",
    "content_type_for",
]
