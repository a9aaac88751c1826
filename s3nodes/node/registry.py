"""Node type registry.

Dispatch table from node type name to the factory that builds it.
"""

from collections.abc import Callable
from typing import Any

from .base import Node, StorageClientFactory
from .config import CredentialsConfig, DownloadConfig, UploadConfig
from .context import NodeContext
from .credentials import CREDENTIALS_NODE_TYPE, CredentialsNode
from .download import DOWNLOAD_NODE_TYPE, DownloadNode
from .errors import NodeTypeNotFoundError
from .storage import Credentials
from .upload import UPLOAD_NODE_TYPE, UploadNode

# Looks up another deployed node by id
NodeResolver = Callable[[str], "Node | None"]

# Builds a node from its raw configuration
NodeFactory = Callable[[dict[str, Any], NodeContext, NodeResolver], Node]


def resolve_credentials(ref: str | None, resolve: NodeResolver) -> Credentials | None:
    """Look up the credentials held by a referenced credentials node."""
    if not ref:
        return None
    node = resolve(ref)
    if isinstance(node, CredentialsNode):
        return node.credentials
    return None


class NodeRegistry:
    """
    Node type registry.

    Config nodes (those other nodes refer to) are flagged so the
    manager can create them first.
    """

    def __init__(self) -> None:
        self._factories: dict[str, NodeFactory] = {}
        self._config_types: set[str] = set()

    def register(
        self, node_type: str, factory: NodeFactory, config_node: bool = False
    ) -> None:
        """
        Register a factory for a node type.

        Args:
            node_type: Type name used in flow definitions (e.g., "s3-upload")
            factory: Callable building the node
            config_node: Whether other nodes reference this type
        """
        self._factories[node_type] = factory
        if config_node:
            self._config_types.add(node_type)

    def get(self, node_type: str) -> NodeFactory | None:
        """Get factory by node type."""
        return self._factories.get(node_type)

    def node_types(self) -> list[str]:
        """Get all registered node types."""
        return list(self._factories.keys())

    def is_config_type(self, node_type: str) -> bool:
        return node_type in self._config_types

    def create(
        self,
        node_type: str,
        config: dict[str, Any],
        ctx: NodeContext,
        resolve: NodeResolver,
    ) -> Node:
        """
        Build a node.

        Raises:
            NodeTypeNotFoundError: Node type not registered
            pydantic.ValidationError: Configuration is invalid
        """
        factory = self._factories.get(node_type)
        if not factory:
            raise NodeTypeNotFoundError(f"Node type not found: {node_type}")
        return factory(config, ctx, resolve)


def default_registry(client_factory: StorageClientFactory | None = None) -> NodeRegistry:
    """
    Create a registry with the credentials, download and upload nodes.

    Args:
        client_factory: Storage client factory for operation nodes
            (defaults to StorageClient)
    """

    def credentials_factory(
        config: dict[str, Any], ctx: NodeContext, resolve: NodeResolver
    ) -> Node:
        return CredentialsNode(CredentialsConfig.model_validate(config), ctx)

    def download_factory(
        config: dict[str, Any], ctx: NodeContext, resolve: NodeResolver
    ) -> Node:
        parsed = DownloadConfig.model_validate(config)
        return DownloadNode(
            parsed,
            ctx,
            resolve_credentials(parsed.credentials, resolve),
            client_factory=client_factory,
        )

    def upload_factory(
        config: dict[str, Any], ctx: NodeContext, resolve: NodeResolver
    ) -> Node:
        parsed = UploadConfig.model_validate(config)
        return UploadNode(
            parsed,
            ctx,
            resolve_credentials(parsed.credentials, resolve),
            client_factory=client_factory,
        )

    registry = NodeRegistry()
    registry.register(CREDENTIALS_NODE_TYPE, credentials_factory, config_node=True)
    registry.register(DOWNLOAD_NODE_TYPE, download_factory)
    registry.register(UPLOAD_NODE_TYPE, upload_factory)
    return registry
