"""Node manager - deploys a flow definition into live nodes.

Stands in for the flow host: creates nodes from their definitions,
wires outputs to inputs, keeps each node's status and tears
everything down again.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..types import NodeId, NodeTypeName
from .base import Node
from .context import NodeContext
from .errors import ConfigError, NodeTypeNotFoundError
from .registry import NodeRegistry, default_registry
from .status import NodeStatus

logger = logging.getLogger(__name__)


class NodeDefinition(BaseModel):
    """
    One node in a flow definition.

    id, type, name and wires are structural; every other key is passed
    to the node type's factory as configuration.
    """

    model_config = ConfigDict(extra="allow")

    id: NodeId
    type: NodeTypeName
    name: str | None = None

    # One list of target node ids per output port
    wires: list[list[str]] = Field(default_factory=list)

    @field_validator("wires", mode="before")
    @classmethod
    def _single_port(cls, value: Any) -> Any:
        # Allow a flat list of targets for single-output nodes
        if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
            return [value]
        return value

    def settings(self) -> dict[str, Any]:
        """Node configuration without the structural keys."""
        settings = dict(self.model_extra or {})
        if self.name is not None:
            settings["name"] = self.name
        return settings

    def targets(self) -> list[str]:
        return [target for port in self.wires for target in port]


class FlowDefinition(BaseModel):
    """A deployable set of nodes."""

    nodes: list[NodeDefinition] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> FlowDefinition:
        """
        Load a flow definition from a YAML file.

        The file holds either a list of nodes or a mapping with a
        "nodes" key.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if isinstance(data, list):
            data = {"nodes": data}
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid flow definition: {path}")
        return cls.model_validate(data)


class NodeManager:
    """
    Node manager - high-level API for running nodes.

    Records every message a node sends in outputs[node_id] and forwards
    it to the nodes wired to it.
    """

    def __init__(self, registry: NodeRegistry | None = None):
        self._registry = registry or default_registry()
        self._nodes: dict[str, Node] = {}
        self._wires: dict[str, list[str]] = {}
        self._statuses: dict[str, NodeStatus] = {}
        self.outputs: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.reports: dict[str, list[tuple[int, str]]] = defaultdict(list)

    @property
    def nodes(self) -> dict[str, Node]:
        return dict(self._nodes)

    def get_node(self, node_id: str) -> Node | None:
        """Get deployed node by id."""
        return self._nodes.get(node_id)

    def status(self, node_id: str) -> NodeStatus:
        """Get the current status of a node."""
        return self._statuses.get(node_id, NodeStatus.clear())

    async def deploy(self, flow: FlowDefinition | list[dict[str, Any]]) -> None:
        """
        Create and initialize every node of a flow.

        Config nodes are created before the nodes that refer to them.

        Raises:
            ConfigError: Duplicate node id
            NodeTypeNotFoundError: Unknown node type
            pydantic.ValidationError: Invalid node configuration
        """
        if not isinstance(flow, FlowDefinition):
            flow = FlowDefinition(nodes=flow)  # type: ignore[arg-type]

        logger.info("Deploying flow", extra={"node_count": len(flow.nodes)})

        ordered = sorted(
            flow.nodes, key=lambda n: not self._registry.is_config_type(n.type)
        )
        for definition in ordered:
            if definition.id in self._nodes:
                raise ConfigError(f"Duplicate node id: {definition.id}")
            if self._registry.get(definition.type) is None:
                raise NodeTypeNotFoundError(f"Node type not found: {definition.type}")

            ctx = NodeContext.create(
                node_id=definition.id,
                node_type=definition.type,
                name=definition.name,
                send=self._sender(definition.id),
                status=self._status_setter(definition.id),
                report=self._reporter(definition.id),
            )
            node = self._registry.create(
                definition.type, definition.settings(), ctx, self.get_node
            )
            self._nodes[definition.id] = node
            self._wires[definition.id] = definition.targets()

        for definition in ordered:
            await self._nodes[definition.id].init()

        logger.info("Flow deployed")

    def receive(self, node_id: str, msg: dict[str, Any]) -> None:
        """
        Deliver an input message to a node.

        Raises:
            KeyError: No node with this id
        """
        self._nodes[node_id].receive(msg)

    async def drain(self) -> None:
        """Wait until no node has input in flight, including forwarded input."""
        while True:
            busy = [
                node
                for node in self._nodes.values()
                if node.busy
            ]
            if not busy:
                return
            for node in busy:
                await node.drain()

    async def close(self) -> None:
        """Close every node once. In-flight requests are abandoned."""
        logger.info("Stopping nodes")
        for node in self._nodes.values():
            try:
                await node.close()
            except Exception as e:
                logger.warning(
                    f"Error closing node: {e}",
                    extra={"node_id": node.ctx.node_id},
                )
        logger.info("Nodes stopped")

    def _sender(self, node_id: str):
        def send(msg: dict[str, Any]) -> None:
            self.outputs[node_id].append(msg)
            targets = self._wires.get(node_id, [])
            for target_id in targets:
                target = self._nodes.get(target_id)
                if target is None:
                    logger.warning(f"Wire to unknown node: {target_id}")
                    continue
                # Each target gets its own shallow copy
                target.receive(copy.copy(msg))

        return send

    def _status_setter(self, node_id: str):
        def set_status(status: NodeStatus) -> None:
            self._statuses[node_id] = status

        return set_status

    def _reporter(self, node_id: str):
        def report(level: int, text: str, msg: dict[str, Any] | None) -> None:
            self.reports[node_id].append((level, text))

        return report
