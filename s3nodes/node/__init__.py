"""
S3 connector nodes.

Message-driven nodes bridging a flow to an S3-compatible object store.

Example usage:
    from s3nodes.node import NodeManager

    flow = [
        {
            "id": "creds",
            "type": "aws-config",
            "accesskeyid": "AKIA...",
            "secretaccesskey": "...",
        },
        {
            "id": "fetch",
            "type": "s3-download",
            "aws": "creds",
            "region": "eu-west-1",
            "bucket": "reports",
        },
    ]

    manager = NodeManager()
    await manager.deploy(flow)

    manager.receive("fetch", {"filename": "2024/summary.csv", "topic": "daily"})
    await manager.drain()

    msg = manager.outputs["fetch"][0]
    if msg.get("error") is None:
        print(len(msg["payload"]))

    await manager.close()
"""

from .base import Node, NodeState, ObjectRequest, OperationNode
from .config import (
    CredentialsConfig,
    CredentialsSettings,
    DownloadConfig,
    OperationConfig,
    UploadConfig,
)
from .context import NodeContext
from .credentials import CREDENTIALS_NODE_TYPE, CredentialsNode
from .download import DOWNLOAD_NODE_TYPE, MAX_DOWNLOAD_SIZE, DownloadNode
from .errors import (
    ConfigError,
    InputValidationError,
    InvalidPayloadError,
    MissingBucketError,
    MissingFilenameError,
    MissingPayloadError,
    NodeClosedError,
    NodeError,
    NodeTypeNotFoundError,
)
from .manager import FlowDefinition, NodeDefinition, NodeManager
from .payload import Payload, PayloadKind
from .registry import NodeRegistry, default_registry
from .status import NodeStatus, StatusFill, StatusShape
from .storage import (
    Credentials,
    SizeLimitExceededError,
    StorageClient,
    StorageError,
    UploadReceipt,
    classify_error,
    content_type_for,
)
from .upload import MAX_UPLOAD_SIZE, UPLOAD_NODE_TYPE, UploadNode

__all__ = [
    "CREDENTIALS_NODE_TYPE",
    "DOWNLOAD_NODE_TYPE",
    "MAX_DOWNLOAD_SIZE",
    "MAX_UPLOAD_SIZE",
    "UPLOAD_NODE_TYPE",
    "ConfigError",
    "Credentials",
    "CredentialsConfig",
    "CredentialsSettings",
    "CredentialsNode",
    "DownloadConfig",
    "DownloadNode",
    "FlowDefinition",
    "InputValidationError",
    "InvalidPayloadError",
    "MissingBucketError",
    "MissingFilenameError",
    "MissingPayloadError",
    "Node",
    "NodeClosedError",
    "NodeContext",
    "NodeDefinition",
    "NodeError",
    "NodeManager",
    "NodeRegistry",
    "NodeState",
    "NodeStatus",
    "NodeTypeNotFoundError",
    "ObjectRequest",
    "OperationConfig",
    "OperationNode",
    "Payload",
    "PayloadKind",
    "SizeLimitExceededError",
    "StatusFill",
    "StatusShape",
    "StorageClient",
    "StorageError",
    "UploadConfig",
    "UploadNode",
    "UploadReceipt",
    "classify_error",
    "content_type_for",
    "default_registry",
]
