"""Credentials node.

Holds a static access key pair for the operation nodes that reference
it. Missing or partial credentials are not an error here; the
operation nodes disable themselves instead.
"""

from .base import Node
from .config import CredentialsConfig
from .context import NodeContext
from .storage import Credentials

CREDENTIALS_NODE_TYPE = "aws-config"


class CredentialsNode(Node):
    """Config node exposing Credentials, or None when incomplete."""

    def __init__(self, config: CredentialsConfig, ctx: NodeContext):
        super().__init__(ctx)
        self._credentials = config.to_credentials()

    @property
    def node_type(self) -> str:
        return CREDENTIALS_NODE_TYPE

    @property
    def credentials(self) -> Credentials | None:
        return self._credentials

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None
