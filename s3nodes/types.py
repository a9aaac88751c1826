"""Common annotated types for field validation.

These types provide consistent validation patterns across the nodes.
"""

from typing import Annotated

from pydantic import Field

# Pattern for node type names (lowercase, starts with letter)
NODE_TYPE_PATTERN = r"^[a-z][a-z0-9_-]*$"

# Default AWS region used when a node does not configure one
DEFAULT_REGION = "us-east-1"


# Node type name - key into the node registry (e.g. "s3-download")
NodeTypeName = Annotated[str, Field(min_length=1, pattern=NODE_TYPE_PATTERN)]

# Node id - assigned by the flow host, opaque to the nodes
NodeId = Annotated[str, Field(min_length=1)]

# Region - any non-empty region name; the service rejects unknown ones
Region = Annotated[str, Field(min_length=1)]
