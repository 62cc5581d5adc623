"""Event layer for filtered fragment building.

Key Components:
    XMLEvent: Immutable unit of the forward-only event stream
    EventType: Enumeration of supported event kinds
    Namespace: Prefix/URI namespace binding carried by element events
    EventSource: Base class of pull-based event producers
    ExpatEventSource: Streaming adapter over the expat tokenizer
    IterableEventSource: Adapter over pre-tokenized event sequences
"""

from .types import (
    NO_NAMESPACE,
    XML_NAMESPACE,
    EventPosition,
    EventType,
    Namespace,
    XMLEvent,
)
from .source import (
    EventSource,
    ExpatEventSource,
    IterableEventSource,
    open_event_source,
)

__all__ = [
    "NO_NAMESPACE",
    "XML_NAMESPACE",
    "EventPosition",
    "EventType",
    "Namespace",
    "XMLEvent",
    "EventSource",
    "ExpatEventSource",
    "IterableEventSource",
    "open_event_source",
]
