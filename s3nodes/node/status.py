"""Node status indicator.

Each node has a single status slot shown by the flow host. Requests
that are in flight at the same time write to the same slot, so the
text may belong to whichever request updated it last. Every message
still carries its own result.
"""

from enum import Enum

from pydantic import BaseModel
from typing_extensions import Self


class StatusFill(str, Enum):
    """Status indicator colour."""

    RED = "red"
    BLUE = "blue"


class StatusShape(str, Enum):
    """Status indicator shape."""

    DOT = "dot"
    RING = "ring"


class NodeStatus(BaseModel):
    """Status shown next to a node. An empty status clears the indicator."""

    fill: StatusFill | None = None
    shape: StatusShape | None = None
    text: str | None = None

    @property
    def is_clear(self) -> bool:
        return self.fill is None and self.shape is None and not self.text

    @classmethod
    def clear(cls) -> Self:
        return cls()

    @classmethod
    def downloading(cls) -> Self:
        return cls(fill=StatusFill.BLUE, shape=StatusShape.DOT, text="Downloading")

    @classmethod
    def uploading(cls) -> Self:
        return cls(fill=StatusFill.BLUE, shape=StatusShape.DOT, text="Uploading")

    @classmethod
    def progress(cls, megabytes: int) -> Self:
        """Download progress in whole megabytes."""
        return cls(
            fill=StatusFill.BLUE,
            shape=StatusShape.DOT,
            text=f"Downloaded: {megabytes} MB",
        )

    @classmethod
    def error(cls) -> Self:
        return cls(fill=StatusFill.RED, shape=StatusShape.DOT, text="Error")

    @classmethod
    def missing_credentials(cls) -> Self:
        return cls(
            fill=StatusFill.RED, shape=StatusShape.RING, text="Missing credentials"
        )
