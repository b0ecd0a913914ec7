class SinkError(RuntimeError):
    """Base class for errors raised by output sinks."""


class DescriptorError(SinkError, ValueError):
    """Raised when a connection descriptor cannot be parsed."""


class DialError(SinkError):
    """Raised when the remote endpoint cannot be reached."""

    def __init__(self, descriptor: str, cause: BaseException) -> None:
        super().__init__(f"Error connecting to '{descriptor}': {cause}")
        self.descriptor = descriptor
        self.cause = cause


class DeliveryError(SinkError):
    """Raised when a write still fails after one reconnect and retry."""


class SinkNotInitializedError(SinkError):
    """Raised when the forwarder is started before any connection was opened."""
