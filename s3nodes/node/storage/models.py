"""Storage data models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class Credentials(BaseModel):
    """Static access key pair shared by operation nodes.

    The secret is held as a SecretStr so it never shows up in
    reprs or log lines.
    """

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(min_length=1)
    secret_access_key: SecretStr


class UploadReceipt(BaseModel):
    """Result of a successful upload."""

    success: Literal[True] = True
    bucket: str
    key: str
    etag: str
    version_id: str | None = None

    @classmethod
    def from_response(
        cls, bucket: str, key: str, response: dict[str, Any]
    ) -> "UploadReceipt":
        """Build a receipt from a put_object response.

        Args:
            bucket: Bucket the object was written to
            key: Object key
            response: Raw put_object response

        Returns:
            UploadReceipt instance
        """
        return cls(
            bucket=bucket,
            key=key,
            etag=response.get("ETag", ""),
            version_id=response.get("VersionId") or None,
        )

    def to_payload(self) -> dict[str, Any]:
        """Convert to the message payload shape.

        versionId is only present when the service returned one.
        """
        payload: dict[str, Any] = {
            "success": self.success,
            "bucket": self.bucket,
            "key": self.key,
            "etag": self.etag,
        }
        if self.version_id is not None:
            payload["versionId"] = self.version_id
        return payload
