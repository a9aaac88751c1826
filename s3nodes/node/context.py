"""Node execution context.

The bridge between a node and the flow host that runs it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, PrivateAttr

from ..types import NodeId, NodeTypeName
from .status import NodeStatus

# Host callbacks
SendHandler = Callable[[dict[str, Any]], None]
StatusHandler = Callable[[NodeStatus], None]
ReportHandler = Callable[[int, str, "dict[str, Any] | None"], None]


class NodeContext(BaseModel):
    """
    Context passed to nodes.

    Provides the node identity, logging, status updates and message
    output. Host callbacks are optional; without them the context only
    logs, which is what tests and the CLI rely on.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    node_id: NodeId
    node_type: NodeTypeName
    name: str | None = None

    # Host callbacks (not part of public interface)
    _send: SendHandler | None = PrivateAttr(default=None)
    _status: StatusHandler | None = PrivateAttr(default=None)
    _report: ReportHandler | None = PrivateAttr(default=None)
    _logger: logging.Logger | None = PrivateAttr(default=None)

    @classmethod
    def create(
        cls,
        node_id: str,
        node_type: str,
        name: str | None = None,
        send: SendHandler | None = None,
        status: StatusHandler | None = None,
        report: ReportHandler | None = None,
    ) -> NodeContext:
        """Create a context wired to host callbacks."""
        ctx = cls(node_id=node_id, node_type=node_type, name=name)
        ctx._send = send
        ctx._status = status
        ctx._report = report
        return ctx

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this node."""
        if self._logger is None:
            self._logger = logging.getLogger(
                f"s3nodes.node.{self.node_type}.{self.node_id}"
            )
        return self._logger

    def send(self, msg: dict[str, Any]) -> None:
        """Emit an output message."""
        if self._send is not None:
            self._send(msg)

    def set_status(self, status: NodeStatus) -> None:
        """Replace the node's status indicator."""
        if self._status is not None:
            self._status(status)

    def warn(self, text: str) -> None:
        """Report a warning to the operator."""
        self.logger.warning(text)
        if self._report is not None:
            self._report(logging.WARNING, text, None)

    def error(self, text: str, msg: dict[str, Any] | None = None) -> None:
        """Report an error to the operator, optionally tied to a message."""
        self.logger.error(text)
        if self._report is not None:
            self._report(logging.ERROR, text, msg)
