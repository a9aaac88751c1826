"""Node error types."""


class NodeError(Exception):
    """Base class for node errors."""


class ConfigError(NodeError):
    """Configuration error."""


class NodeTypeNotFoundError(NodeError):
    """Node type not found in registry."""


class NodeClosedError(NodeError):
    """Node has been closed and accepts no further input."""


class InputValidationError(NodeError):
    """Input message is missing a required field.

    Raised before any storage request is made. The node reports it
    without emitting an output message.
    """


class MissingBucketError(InputValidationError):
    """No bucket on the node or the message."""

    def __init__(self) -> None:
        super().__init__("No bucket specified")


class MissingFilenameError(InputValidationError):
    """No filename on the node or the message."""

    def __init__(self) -> None:
        super().__init__("No filename specified")


class MissingPayloadError(InputValidationError):
    """No payload on the message (upload only)."""

    def __init__(self) -> None:
        super().__init__("No payload specified")


class InvalidPayloadError(InputValidationError):
    """Structured payload could not be serialized (upload only)."""

    def __init__(self, reason: str):
        super().__init__(f"Payload could not be serialized: {reason}")
