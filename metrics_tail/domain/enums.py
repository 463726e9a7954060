"""Domain enums for type safety and consistency.

This module centralizes all enumeration types used across the package,
ensuring type safety and preventing string literal errors.
"""

from enum import Enum


class MetricType(str, Enum):
    """Kind of metric carried by an event or an exported payload."""

    COUNT = "COUNT"  # Values for the same key are summed
    GAUGE = "GAUGE"  # Latest observed value wins
    HISTOGRAM = "HISTOGRAM"  # All samples kept, resolved at export time


class AggregateKind(str, Enum):
    """Summary statistics a histogram can be exported as."""

    MAX = "max"
    MIN = "min"
    AVG = "avg"
    SUM = "sum"


class TriggerKind(str, Enum):
    """What caused a traced invocation to run.

    Derived from the shape of the trace's event payload.
    """

    FETCH = "fetch"
    SCHEDULED = "scheduled"
    ALARM = "alarm"
    QUEUE = "queue"
    EMAIL = "email"
    TAIL = "tail"
    RPC = "rpc"
    WEBSOCKET = "websocket"
    UNKNOWN = "unknown"


class FlushDecision(str, Enum):
    """Outcome of handing an ingested batch to the flush scheduler."""

    IMMEDIATE = "immediate"  # Buffer full, flushed in the same turn
    SCHEDULED = "scheduled"  # Timer armed for a new window
    COALESCED = "coalesced"  # A pending timer already covers this window
    IDLE = "idle"  # Nothing buffered
