"""Upload node.

Writes the message payload to one object and emits an upload receipt.
"""

from typing import Any

from .base import ObjectRequest, OperationNode
from .config import UploadConfig
from .errors import InvalidPayloadError, MissingPayloadError
from .payload import Payload
from .status import NodeStatus
from .storage import SizeLimitExceededError, UploadReceipt, content_type_for

UPLOAD_NODE_TYPE = "s3-upload"

# Largest body accepted for a single put (5 GiB)
MAX_UPLOAD_SIZE = 5 * 1024 * 1024 * 1024


class UploadRequest(ObjectRequest):
    """Fully resolved put request."""

    body: bytes
    content_type: str
    acl: str | None = None


class UploadNode(OperationNode[UploadConfig, UploadRequest]):
    """
    Upload node.

    Payload resolution:
        bytes -> sent as-is
        str -> UTF-8
        anything else -> compact JSON, UTF-8

    Content type: node setting, then message contentType, then the key's
    extension, then application/octet-stream.

    ACL: node setting, then message acl, otherwise not sent.
    """

    failure_label = "Upload failed"
    max_size = MAX_UPLOAD_SIZE

    @property
    def node_type(self) -> str:
        return UPLOAD_NODE_TYPE

    def prepare(self, msg: dict[str, Any]) -> UploadRequest:
        """
        Validate and resolve an upload.

        Raises:
            MissingBucketError: No bucket resolved
            MissingFilenameError: No filename resolved
            MissingPayloadError: Message payload absent or None
            InvalidPayloadError: Structured payload not JSON serializable
            SizeLimitExceededError: Body larger than 5 GiB
        """
        target = self.resolve_target(msg)

        raw = msg.get("payload")
        if raw is None:
            raise MissingPayloadError()

        try:
            body = Payload.from_value(raw).to_bytes()
        except (TypeError, ValueError) as e:
            raise InvalidPayloadError(str(e)) from e

        if len(body) > self.max_size:
            raise SizeLimitExceededError(self.max_size, len(body), subject="Payload")

        return UploadRequest(
            bucket=target.bucket,
            key=target.key,
            body=body,
            content_type=self.resolve_content_type(msg, target.key),
            acl=self.resolve_acl(msg),
        )

    def resolve_content_type(self, msg: dict[str, Any], key: str) -> str:
        if self._config.content_type:
            return self._config.content_type
        if msg.get("contentType"):
            return str(msg["contentType"])
        return content_type_for(key)

    def resolve_acl(self, msg: dict[str, Any]) -> str | None:
        if self._config.acl:
            return self._config.acl
        if msg.get("acl"):
            return str(msg["acl"])
        return None

    async def execute(self, request: UploadRequest) -> dict[str, Any]:
        client = self.require_client()
        self.set_status(NodeStatus.uploading())
        self._ctx.logger.debug(
            f"Uploading s3://{request.bucket}/{request.key} "
            f"({len(request.body)} bytes, {request.content_type})"
        )

        response = await client.put_object(
            request.bucket,
            request.key,
            request.body,
            request.content_type,
            acl=request.acl,
        )

        receipt = UploadReceipt.from_response(request.bucket, request.key, response)
        return receipt.to_payload()
