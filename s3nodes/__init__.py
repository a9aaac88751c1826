"""S3 connector nodes for flow automation.

Download and upload nodes that move message payloads to and from an
S3-compatible object store, plus the credentials node they share.

Example:
    from s3nodes import NodeManager

    manager = NodeManager()
    await manager.deploy(
        [
            {"id": "creds", "type": "aws-config",
             "accesskeyid": "AKIA...", "secretaccesskey": "..."},
            {"id": "put", "type": "s3-upload", "aws": "creds",
             "bucket": "exports", "acl": "private"},
        ]
    )

    manager.receive("put", {"filename": "data/output.txt", "payload": "Hello, S3!"})
    await manager.drain()

    receipt = manager.outputs["put"][0]["payload"]
    # {"success": True, "bucket": "exports", "key": "data/output.txt", "etag": "..."}
"""

from importlib.metadata import PackageNotFoundError, version

from .node import (
    CredentialsNode,
    DownloadNode,
    FlowDefinition,
    NodeContext,
    NodeManager,
    NodeRegistry,
    NodeStatus,
    UploadNode,
    UploadReceipt,
    classify_error,
    content_type_for,
    default_registry,
)

try:
    __version__ = version("s3nodes")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "CredentialsNode",
    "DownloadNode",
    "FlowDefinition",
    "NodeContext",
    "NodeManager",
    "NodeRegistry",
    "NodeStatus",
    "UploadNode",
    "UploadReceipt",
    "__version__",
    "classify_error",
    "content_type_for",
    "default_registry",
]
