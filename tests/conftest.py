"""Shared test fixtures: an in-memory storage client and a host recorder."""

import asyncio
import logging
import os
from typing import Any

import pytest
from botocore.exceptions import ClientError

from s3nodes.node import Credentials, NodeContext, NodeStatus

# Credential environment variables cleared between tests
CREDENTIAL_ENV_VARS = [
    "S3NODES_ACCESS_KEY_ID",
    "S3NODES_SECRET_ACCESS_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "ACCESS_KEY_ID",
    "SECRET_ACCESS_KEY",
    "ACCESSKEYID",
    "SECRETACCESSKEY",
]


def client_error(status: int, code: str, operation: str = "GetObject") -> ClientError:
    """Build a botocore ClientError with a service status code."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeStorageClient:
    """In-memory stand-in for StorageClient."""

    def __init__(
        self, credentials: Credentials, region: str, endpoint_url: str | None = None
    ):
        self.credentials = credentials
        self.region = region
        self.endpoint_url = endpoint_url
        self.objects: dict[tuple[str, str], list[bytes]] = {}
        self.error: Exception | None = None
        self.put_calls: list[dict[str, Any]] = []
        self.put_response: dict[str, Any] = {"ETag": '"0123456789abcdef"'}
        self.open_count = 0
        self.close_count = 0
        # When set, requests wait for it before touching storage
        self.gate: asyncio.Event | None = None

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    async def open(self) -> None:
        self.open_count += 1

    async def close(self) -> None:
        self.close_count += 1

    async def iter_object(self, bucket: str, key: str, chunk_size: int = 65536):
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.closed:
            raise RuntimeError("Session is closed")
        if (bucket, key) not in self.objects:
            raise client_error(404, "NoSuchKey")
        for chunk in self.objects[(bucket, key)]:
            yield chunk

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        acl: str | None = None,
    ) -> dict[str, Any]:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.closed:
            raise RuntimeError("Session is closed")
        self.put_calls.append(
            {
                "bucket": bucket,
                "key": key,
                "body": body,
                "content_type": content_type,
                "acl": acl,
            }
        )
        return dict(self.put_response)


class FakeClientFactory:
    """Storage client factory remembering every client it builds."""

    def __init__(self) -> None:
        self.clients: list[FakeStorageClient] = []

    def __call__(
        self, credentials: Credentials, region: str, endpoint_url: str | None = None
    ) -> FakeStorageClient:
        client = FakeStorageClient(credentials, region, endpoint_url)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeStorageClient:
        return self.clients[-1]


class HostRecorder:
    """Records what nodes hand to the flow host."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.statuses: list[NodeStatus] = []
        self.reports: list[tuple[int, str, dict[str, Any] | None]] = []

    def context(self, node_id: str = "n1", node_type: str = "s3-download") -> NodeContext:
        return NodeContext.create(
            node_id=node_id,
            node_type=node_type,
            send=self.sent.append,
            status=self.statuses.append,
            report=lambda level, text, msg: self.reports.append((level, text, msg)),
        )

    @property
    def errors(self) -> list[str]:
        return [text for level, text, _ in self.reports if level == logging.ERROR]

    @property
    def warnings(self) -> list[str]:
        return [text for level, text, _ in self.reports if level == logging.WARNING]

    @property
    def status_texts(self) -> list[str | None]:
        return [status.text for status in self.statuses]


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_key_id="AKIATEST", secret_access_key="s3cr3t")


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def host() -> HostRecorder:
    return HostRecorder()


@pytest.fixture
def clean_env():
    """Clear credential environment variables for isolated tests."""
    original = {k: os.environ.get(k) for k in CREDENTIAL_ENV_VARS}
    for k in CREDENTIAL_ENV_VARS:
        os.environ.pop(k, None)
    yield
    # Restore original values
    for k, v in original.items():
        if v is not None:
            os.environ[k] = v
        else:
            os.environ.pop(k, None)
