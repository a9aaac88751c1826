"""Tests for the upload node."""

import asyncio

import pytest
from botocore.exceptions import ClientError

from s3nodes.node import NodeState, SizeLimitExceededError, UploadConfig, UploadNode


async def create_node(host, client_factory, credentials, **config) -> UploadNode:
    """Create and initialize an upload node."""
    node = UploadNode(
        UploadConfig.model_validate(config),
        host.context("u1", "s3-upload"),
        credentials,
        client_factory=client_factory,
    )
    await node.init()
    return node


async def run(node: UploadNode, msg: dict) -> None:
    task = node.receive(msg)
    assert task is not None
    await task


class TestUploadValidation:
    """Test pre-flight validation."""

    @pytest.mark.asyncio
    async def test_missing_bucket(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials)

        await run(node, {"filename": "a.txt", "payload": "x"})

        assert host.sent == []
        assert host.errors == ["No bucket specified"]
        assert client_factory.last.put_calls == []

    @pytest.mark.asyncio
    async def test_missing_filename(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"payload": "x"})

        assert host.sent == []
        assert host.errors == ["No filename specified"]

    @pytest.mark.asyncio
    async def test_missing_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "a.txt"})

        assert host.sent == []
        assert host.errors == ["No payload specified"]

    @pytest.mark.asyncio
    async def test_none_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        await run(node, {"filename": "a.txt", "payload": None})
        assert host.errors == ["No payload specified"]

    @pytest.mark.asyncio
    async def test_validation_order(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials)

        await run(node, {})
        await run(node, {"bucket": "b"})
        await run(node, {"bucket": "b", "filename": "k"})

        assert host.errors == [
            "No bucket specified",
            "No filename specified",
            "No payload specified",
        ]
        assert host.sent == []

    @pytest.mark.asyncio
    async def test_unserializable_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "a.json", "payload": {"x": object()}})

        assert host.sent == []
        assert host.errors[0].startswith("Payload could not be serialized")
        assert client_factory.last.put_calls == []

    @pytest.mark.asyncio
    async def test_nan_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "a.json", "payload": {"v": float("nan")}})

        assert host.sent == []
        assert host.errors[0].startswith("Payload could not be serialized")
        assert client_factory.last.put_calls == []

    @pytest.mark.asyncio
    async def test_size_limit(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        node.max_size = 8

        await run(node, {"filename": "a.bin", "payload": b"123456789"})

        assert host.sent == []
        assert host.errors == ["Payload size exceeds limit of 8 bytes"]
        assert client_factory.last.put_calls == []

    @pytest.mark.asyncio
    async def test_size_exactly_at_limit(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        node.max_size = 8

        await run(node, {"filename": "a.bin", "payload": b"12345678"})

        assert len(host.sent) == 1

    def test_default_limit(self):
        assert UploadNode.max_size == 5 * 1024**3
        assert str(SizeLimitExceededError(UploadNode.max_size, subject="Payload")) == (
            "Payload size exceeds limit of 5 GB"
        )


class TestUploadPayload:
    """Test payload normalization and content type."""

    @pytest.mark.asyncio
    async def test_text_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "data/output.txt", "payload": "Hello, S3!"})

        call = client_factory.last.put_calls[0]
        assert call["body"] == "Hello, S3!".encode("utf-8")
        assert call["content_type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_structured_payload(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(
            node, {"filename": "data/output.json", "payload": {"key": "value", "count": 42}}
        )

        call = client_factory.last.put_calls[0]
        assert call["body"] == b'{"key":"value","count":42}'
        assert call["content_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_structured_payload_unknown_extension(
        self, host, client_factory, credentials
    ):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "data/output", "payload": {"key": "value"}})

        assert client_factory.last.put_calls[0]["content_type"] == (
            "application/octet-stream"
        )

    @pytest.mark.asyncio
    async def test_bytes_payload_as_is(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        data = bytes(range(256))

        await run(node, {"filename": "image.PNG", "payload": data})

        call = client_factory.last.put_calls[0]
        assert call["body"] == data
        assert call["content_type"] == "image/png"

    @pytest.mark.asyncio
    async def test_node_content_type_wins(self, host, client_factory, credentials):
        node = await create_node(
            host, client_factory, credentials, bucket="b", contentType="text/csv"
        )

        await run(
            node,
            {"filename": "a.json", "payload": "a,b", "contentType": "application/xml"},
        )

        assert client_factory.last.put_calls[0]["content_type"] == "text/csv"

    @pytest.mark.asyncio
    async def test_message_content_type_over_extension(
        self, host, client_factory, credentials
    ):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(
            node,
            {"filename": "a.json", "payload": "<a/>", "contentType": "application/xml"},
        )

        assert client_factory.last.put_calls[0]["content_type"] == "application/xml"

    @pytest.mark.asyncio
    async def test_non_string_content_type(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "a.txt", "payload": "x", "contentType": 123})

        assert len(host.sent) == 1
        assert host.errors == []
        assert client_factory.last.put_calls[0]["content_type"] == "123"


class TestUploadAcl:
    """Test ACL resolution."""

    @pytest.mark.asyncio
    async def test_acl_omitted_by_default(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        await run(node, {"filename": "a.txt", "payload": "x"})
        assert client_factory.last.put_calls[0]["acl"] is None

    @pytest.mark.asyncio
    async def test_message_acl(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        await run(node, {"filename": "a.txt", "payload": "x", "acl": "public-read"})
        assert client_factory.last.put_calls[0]["acl"] == "public-read"

    @pytest.mark.asyncio
    async def test_node_acl_wins(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b", acl="private")
        await run(node, {"filename": "a.txt", "payload": "x", "acl": "public-read"})
        assert client_factory.last.put_calls[0]["acl"] == "private"

    @pytest.mark.asyncio
    async def test_non_string_message_acl(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        await run(node, {"filename": "a.txt", "payload": "x", "acl": 7})
        assert len(host.sent) == 1
        assert client_factory.last.put_calls[0]["acl"] == "7"


class TestUploadResult:
    """Test emitted messages."""

    @pytest.mark.asyncio
    async def test_receipt(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="node-bucket")

        await run(
            node,
            {"bucket": "msg-bucket", "filename": "data/output.txt", "payload": "hi"},
        )

        msg = host.sent[0]
        assert msg["payload"] == {
            "success": True,
            "bucket": "node-bucket",
            "key": "data/output.txt",
            "etag": '"0123456789abcdef"',
        }
        assert msg["bucket"] == "node-bucket"
        assert msg["filename"] == "data/output.txt"
        assert "error" not in msg

    @pytest.mark.asyncio
    async def test_receipt_with_version(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        client_factory.last.put_response = {"ETag": '"e"', "VersionId": "v2"}

        await run(node, {"filename": "k", "payload": "x"})

        assert host.sent[0]["payload"]["versionId"] == "v2"

    @pytest.mark.asyncio
    async def test_node_filename_wins(self, host, client_factory, credentials):
        node = await create_node(
            host, client_factory, credentials, bucket="b", filename="fixed.txt"
        )

        await run(node, {"filename": "other.csv", "payload": "x"})

        call = client_factory.last.put_calls[0]
        assert call["key"] == "fixed.txt"
        assert call["content_type"] == "text/plain"
        assert host.sent[0]["payload"]["key"] == "fixed.txt"

    @pytest.mark.asyncio
    async def test_passthrough(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(
            node,
            {"filename": "k", "payload": "x", "topic": "exports", "custom": [1, 2]},
        )

        msg = host.sent[0]
        assert msg["topic"] == "exports"
        assert msg["custom"] == [1, 2]

    @pytest.mark.asyncio
    async def test_status_lifecycle(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")

        await run(node, {"filename": "k", "payload": "x"})

        assert host.status_texts[0] == "Uploading"
        assert host.statuses[-1].is_clear

    @pytest.mark.asyncio
    async def test_service_failure(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b")
        client_factory.last.error = ClientError(
            {"Error": {"Code": "AccessDenied"}, "ResponseMetadata": {"HTTPStatusCode": 403}},
            "PutObject",
        )

        await run(node, {"filename": "k", "payload": "x", "topic": "t"})

        msg = host.sent[0]
        assert msg["payload"] is None
        assert isinstance(msg["error"], ClientError)
        assert msg["bucket"] == "b"
        assert msg["filename"] == "k"
        assert msg["topic"] == "t"
        assert host.errors == ["Upload failed: Access denied"]
        assert host.statuses[-1].text == "Error"

    @pytest.mark.asyncio
    async def test_invalid_request(self, host, client_factory, credentials):
        node = await create_node(host, client_factory, credentials, bucket="b", acl="bogus")
        client_factory.last.error = ClientError(
            {"Error": {"Code": "InvalidArgument"}, "ResponseMetadata": {"HTTPStatusCode": 400}},
            "PutObject",
        )

        await run(node, {"filename": "k", "payload": "x"})

        assert host.errors == ["Upload failed: Invalid request"]


class TestUploadLifecycle:
    """Test initialization and teardown."""

    @pytest.mark.asyncio
    async def test_missing_credentials(self, host, client_factory):
        node = await create_node(host, client_factory, None, bucket="b")

        assert node.state is NodeState.DISABLED
        assert node.receive({"filename": "k", "payload": "x"}) is None
        assert host.warnings == ["Missing AWS credentials, node disabled"]

    @pytest.mark.asyncio
    async def test_in_flight_upload_abandoned_on_close(
        self, host, client_factory, credentials
    ):
        node = await create_node(host, client_factory, credentials, bucket="b")
        client = client_factory.last
        client.gate = asyncio.Event()

        task = node.receive({"filename": "k", "payload": "x"})
        await asyncio.sleep(0)
        await node.close()
        client.gate.set()
        await task

        assert host.sent == []
        assert client.close_count == 1
