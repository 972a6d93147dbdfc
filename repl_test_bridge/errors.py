"""Error types raised by the test bridge."""


class BridgeError(Exception):
    """Base class for errors reported to the user."""


class NotConnectedError(BridgeError):
    """Raised when the remote evaluation channel is unavailable."""


class MalformedResultError(BridgeError):
    """Raised when a result payload does not have the expected shape."""


class MissingMetadataError(BridgeError):
    """Raised when a test record carries no source file."""

    def __init__(self, test_id: str) -> None:
        super().__init__(f"No source file recorded for test {test_id}")
        self.test_id = test_id


class NoProblemFoundError(BridgeError):
    """Raised when navigation finds no further annotated region."""

    def __init__(self, direction: str) -> None:
        super().__init__(f"No {direction} problem")
        self.direction = direction


class EvalError(BridgeError):
    """Raised when the remote runtime fails to evaluate an expression."""


class NamespaceError(BridgeError, ValueError):
    """Raised when a namespace cannot be mapped to a path."""
