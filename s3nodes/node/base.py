"""Node interface and shared operation node behaviour."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .config import OperationConfig
from .context import NodeContext
from .errors import (
    InputValidationError,
    MissingBucketError,
    MissingFilenameError,
    NodeClosedError,
)
from .status import NodeStatus
from .storage import Credentials, StorageClient, StorageError, classify_error

# Builds the storage client for an operation node
StorageClientFactory = Callable[[Credentials, str, "str | None"], StorageClient]

ConfigT = TypeVar("ConfigT", bound=OperationConfig)
RequestT = TypeVar("RequestT", bound="ObjectRequest")


class NodeState(str, Enum):
    """Node lifecycle state."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DISABLED = "disabled"
    CLOSED = "closed"


class ObjectRequest(BaseModel):
    """Resolved target of a single storage request."""

    bucket: str
    key: str


class Node(ABC):
    """
    Node interface.

    The flow host creates a node, calls init() once, delivers input
    with receive() and finally calls close(). Input delivery does not
    wait for earlier input to finish.
    """

    def __init__(self, ctx: NodeContext):
        self._ctx = ctx
        self._state = NodeState.UNINITIALIZED
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    @abstractmethod
    def node_type(self) -> str:
        """Node type name (e.g., 's3-download')."""

    @property
    def ctx(self) -> NodeContext:
        return self._ctx

    @property
    def state(self) -> NodeState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is NodeState.CLOSED

    async def init(self) -> None:
        """Prepare the node for input."""
        self._state = NodeState.READY

    async def handle_input(self, msg: dict[str, Any]) -> None:
        """Process one input message to completion.

        Config nodes take no input; operation nodes override this.
        """
        self._ctx.logger.debug("Ignoring input for node without inputs")

    def receive(self, msg: dict[str, Any]) -> asyncio.Task[None] | None:
        """
        Deliver an input message.

        Schedules handle_input() without waiting for requests already in
        flight. Returns None if the node does not accept input.
        """
        if self._state is not NodeState.READY:
            self._ctx.logger.debug(f"Dropping input, node is {self._state.value}")
            return None

        task = asyncio.create_task(self.handle_input(msg))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def busy(self) -> bool:
        """Check if any delivered input is still being processed."""
        return any(not task.done() for task in self._tasks)

    async def drain(self) -> None:
        """Wait for all delivered input to finish processing."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def close(self) -> None:
        """Tear the node down. No further input is accepted."""
        self._state = NodeState.CLOSED


class OperationNode(Node, Generic[ConfigT, RequestT]):
    """
    Shared behaviour of the download and upload nodes.

    Each input runs: resolve and validate the request, perform one
    storage call, then emit exactly one message. Validation failures
    are reported without output. Storage failures are attached to the
    message, which is still emitted.
    """

    # Prefix of the operator-facing failure message
    failure_label = "Operation failed"

    def __init__(
        self,
        config: ConfigT,
        ctx: NodeContext,
        credentials: Credentials | None,
        client_factory: StorageClientFactory | None = None,
    ):
        super().__init__(ctx)
        self._config = config
        self._credentials = credentials
        self._client_factory = client_factory or StorageClient
        self._client: StorageClient | None = None

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def client(self) -> StorageClient | None:
        return self._client

    async def init(self) -> None:
        """Create the storage client, or disable the node without credentials."""
        if self._credentials is None:
            self._state = NodeState.DISABLED
            self._ctx.warn("Missing AWS credentials, node disabled")
            self._ctx.set_status(NodeStatus.missing_credentials())
            return

        self._client = self._client_factory(
            self._credentials, self._config.region, self._config.endpoint_url
        )
        await self._client.open()
        self._state = NodeState.READY
        self._ctx.logger.debug(
            "Node ready",
            extra={"node_id": self._ctx.node_id, "region": self._config.region},
        )

    async def close(self) -> None:
        """Release the storage client exactly once."""
        if self._state is NodeState.CLOSED:
            return
        self._state = NodeState.CLOSED

        client, self._client = self._client, None
        if client is not None:
            await client.close()

    def require_client(self) -> StorageClient:
        """Get the storage client.

        Raises:
            NodeClosedError: Node is not initialized or already closed
        """
        if self._client is None:
            raise NodeClosedError(f"Node {self._ctx.node_id} has no storage client")
        return self._client

    def resolve_target(self, msg: dict[str, Any]) -> ObjectRequest:
        """
        Resolve bucket and key for a message.

        A non-empty node value always wins; otherwise the message value
        is used. Bucket is checked before filename.

        Raises:
            MissingBucketError: Neither node nor message names a bucket
            MissingFilenameError: Neither node nor message names a filename
        """
        bucket = self._config.bucket or msg.get("bucket")
        if not bucket:
            raise MissingBucketError()

        filename = self._config.filename or msg.get("filename")
        if not filename:
            raise MissingFilenameError()

        return ObjectRequest(bucket=str(bucket), key=str(filename))

    @abstractmethod
    def prepare(self, msg: dict[str, Any]) -> RequestT:
        """
        Build the request for a message.

        Raises:
            InputValidationError: Message cannot be turned into a request
            StorageError: Request would break a local limit
        """

    @abstractmethod
    async def execute(self, request: RequestT) -> Any:
        """Perform the storage call and return the success payload."""

    async def handle_input(self, msg: dict[str, Any]) -> None:
        if self._state is not NodeState.READY:
            return

        try:
            request = self.prepare(msg)
        except (InputValidationError, StorageError) as e:
            self._ctx.error(str(e), msg)
            self._ctx.set_status(NodeStatus.error())
            return

        msg["bucket"] = request.bucket
        msg["filename"] = request.key

        try:
            payload = await self.execute(request)
        except Exception as e:
            self._fail(msg, e)
            return

        if self.closed:
            self._ctx.logger.debug("Node closed, discarding result")
            return

        msg["payload"] = payload
        msg.pop("error", None)
        self._ctx.set_status(NodeStatus.clear())
        self._ctx.send(msg)

    def _fail(self, msg: dict[str, Any], exc: Exception) -> None:
        if self.closed:
            self._ctx.logger.debug(f"Node closed, discarding failure: {exc}")
            return

        msg["payload"] = None
        msg["error"] = exc
        self._ctx.error(f"{self.failure_label}: {classify_error(exc)}", msg)
        self._ctx.set_status(NodeStatus.error())
        self._ctx.send(msg)

    def set_status(self, status: NodeStatus) -> None:
        """Update the status slot unless the node has closed."""
        if not self.closed:
            self._ctx.set_status(status)
