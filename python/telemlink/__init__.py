"""telemlink - WebSocket telemetry client and line decoder."""

from .decoder import (
    ClassifiedRecord, Informational, StructuredReading, FallbackReading,
    Timestamp, SensorFields, decode, decode_line, parse_timestamp,
    extract_fields,
)
from .transport import (
    Transport, WebSocketTransport, ConstructionError, TransportError,
    endpoint_url,
)
from .session import (
    SessionManager, SessionListener, QueueListener, SessionEvent, EventKind,
    SessionState, CloseReason, RetryPolicy,
)
from .background import BackgroundSession
from .history import ReadingHistory

__all__ = [
    "ClassifiedRecord", "Informational", "StructuredReading",
    "FallbackReading", "Timestamp", "SensorFields", "decode", "decode_line",
    "parse_timestamp", "extract_fields",
    "Transport", "WebSocketTransport", "ConstructionError", "TransportError",
    "endpoint_url",
    "SessionManager", "SessionListener", "QueueListener", "SessionEvent",
    "EventKind", "SessionState", "CloseReason", "RetryPolicy",
    "BackgroundSession",
    "ReadingHistory",
]
