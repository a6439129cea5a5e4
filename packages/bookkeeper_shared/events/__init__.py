"""Event Record types and wire codec."""

from packages.bookkeeper_shared.events.codec import (
    CONTENT_TYPE,
    EventDecodeError,
    decode_event,
    encode_event,
)
from packages.bookkeeper_shared.events.types import (
    EventRecord,
    EventType,
    new_event_record,
)

__all__ = [
    "CONTENT_TYPE",
    "EventDecodeError",
    "EventRecord",
    "EventType",
    "decode_event",
    "encode_event",
    "new_event_record",
]
