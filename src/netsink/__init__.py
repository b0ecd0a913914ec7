from netsink.errors import (
    DeliveryError,
    DescriptorError,
    DialError,
    SinkError,
    SinkNotInitializedError,
)
from netsink.io.output import NetOutputSink
from netsink.types import ConnectionState, StatisticsSnapshot

__all__ = [
    "ConnectionState",
    "DeliveryError",
    "DescriptorError",
    "DialError",
    "NetOutputSink",
    "SinkError",
    "SinkNotInitializedError",
    "StatisticsSnapshot",
]
