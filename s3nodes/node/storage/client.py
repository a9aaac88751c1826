"""S3 storage client.

One long-lived aioboto3 client per operation node. The client is opened
when the node initializes and released exactly once when it closes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import aioboto3
from botocore.config import Config

from .errors import StorageError
from .models import Credentials

logger = logging.getLogger(__name__)

# Chunk size for streamed downloads (64KB)
CHUNK_SIZE = 65536


class StorageClient:
    """
    Async S3 client bound to one region and one set of credentials.

    Retries and timeouts are left to botocore; the node logic adds none.
    Safe to share between concurrent requests of the same node.
    """

    def __init__(
        self,
        credentials: Credentials,
        region: str,
        endpoint_url: str | None = None,
    ):
        self._region = region
        self._endpoint_url = endpoint_url
        self._session = aioboto3.Session()
        self._client: Any = None
        self._client_context: Any = None
        self._lock = asyncio.Lock()
        self._closed = False

        self._client_config = {
            "region_name": region,
            "endpoint_url": endpoint_url,
            "aws_access_key_id": credentials.access_key_id,
            "aws_secret_access_key": credentials.secret_access_key.get_secret_value(),
            "config": Config(
                retries={"max_attempts": 3, "mode": "standard"},
                connect_timeout=10,
                read_timeout=60,
            ),
        }

    @property
    def region(self) -> str:
        """Get region the client is bound to."""
        return self._region

    @property
    def closed(self) -> bool:
        """Check if the client has been released."""
        return self._closed

    async def open(self) -> None:
        """Create the underlying S3 client if not already open."""
        if self._closed:
            raise StorageError("Storage client is closed")
        if self._client is not None:
            return

        async with self._lock:
            # Double-check after acquiring lock
            if self._client is not None:
                return
            self._client_context = self._session.client("s3", **self._client_config)
            self._client = await self._client_context.__aenter__()
            logger.debug(
                f"S3 client created: region={self._region}, "
                f"endpoint={self._endpoint_url or 'default'}"
            )

    async def close(self) -> None:
        """Release the underlying S3 client. Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        if self._client_context is not None:
            try:
                await self._client_context.__aexit__(None, None, None)
                logger.debug("S3 client closed")
            except Exception as e:
                logger.warning(f"Error closing S3 client: {e}")
            finally:
                self._client = None
                self._client_context = None

    async def _get_client(self) -> Any:
        await self.open()
        return self._client

    async def iter_object(
        self,
        bucket: str,
        key: str,
        chunk_size: int = CHUNK_SIZE,
    ) -> AsyncIterator[bytes]:
        """
        Stream an object from storage.

        Args:
            bucket: Bucket name
            key: Object key
            chunk_size: Maximum bytes per yielded chunk

        Yields:
            Object content in chunks

        Raises:
            botocore.exceptions.ClientError: Service reported a failure
        """
        s3 = await self._get_client()
        response = await s3.get_object(Bucket=bucket, Key=key)
        async with response["Body"] as stream:
            async for chunk in stream.iter_chunks(chunk_size):
                yield chunk

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        acl: str | None = None,
    ) -> dict[str, Any]:
        """
        Write an object to storage.

        Args:
            bucket: Bucket name
            key: Object key
            body: Object content
            content_type: MIME type stored with the object
            acl: Canned ACL (e.g. "public-read"); omitted when None

        Returns:
            Raw put_object response (ETag, optional VersionId)
        """
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if acl:
            params["ACL"] = acl

        s3 = await self._get_client()
        return await s3.put_object(**params)
