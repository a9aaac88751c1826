"""Download node.

Fetches one object per input message and emits its content as the
message payload.
"""

import contextlib
from typing import Any

from .base import ObjectRequest, OperationNode
from .config import DownloadConfig
from .status import NodeStatus
from .storage import SizeLimitExceededError

DOWNLOAD_NODE_TYPE = "s3-download"

MEGABYTE = 1024 * 1024

# Largest object the node will hold in memory (100 MiB)
MAX_DOWNLOAD_SIZE = 100 * MEGABYTE


class DownloadNode(OperationNode[DownloadConfig, ObjectRequest]):
    """
    Download node.

    The object body is accumulated chunk by chunk. The size limit is
    checked after each chunk is added, and the request is aborted as
    soon as it is exceeded; partial content is never emitted. A
    progress status is shown each time another whole megabyte arrives.
    """

    failure_label = "Download failed"
    max_size = MAX_DOWNLOAD_SIZE

    @property
    def node_type(self) -> str:
        return DOWNLOAD_NODE_TYPE

    def prepare(self, msg: dict[str, Any]) -> ObjectRequest:
        return self.resolve_target(msg)

    async def execute(self, request: ObjectRequest) -> bytes:
        client = self.require_client()
        self.set_status(NodeStatus.downloading())
        self._ctx.logger.debug(f"Downloading s3://{request.bucket}/{request.key}")

        chunks: list[bytes] = []
        total = 0
        reported_mb = 0

        async with contextlib.aclosing(
            client.iter_object(request.bucket, request.key)
        ) as stream:
            async for chunk in stream:
                chunks.append(chunk)
                total += len(chunk)

                if total > self.max_size:
                    raise SizeLimitExceededError(self.max_size, total)

                megabytes = total // MEGABYTE
                if megabytes > reported_mb:
                    reported_mb = megabytes
                    self.set_status(NodeStatus.progress(megabytes))

        self._ctx.logger.debug(
            f"Downloaded s3://{request.bucket}/{request.key} ({total} bytes)"
        )
        return b"".join(chunks)
