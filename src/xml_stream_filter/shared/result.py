"""Diagnostic and metric types for filtered fragment building.

This module defines the diagnostic entries and build metrics that accompany
every build result.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Suspicious but legal input


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    depth: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to dictionary representation."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.depth is not None:
            result["depth"] = self.depth
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class BuildMetrics:
    """Counters collected while a build walks the event stream."""

    events_processed: int = 0
    events_discarded: int = 0
    nodes_created: int = 0
    frames_pushed: int = 0
    frames_popped: int = 0
    filter_queries: int = 0
    max_depth_seen: int = 0
    processing_time_ms: float = 0.0

    @property
    def events_per_second(self) -> float:
        """Calculate events processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    @property
    def is_balanced(self) -> bool:
        """Check that every pushed element frame was popped."""
        return self.frames_pushed == self.frames_popped

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "events_processed": self.events_processed,
            "events_discarded": self.events_discarded,
            "nodes_created": self.nodes_created,
            "frames_pushed": self.frames_pushed,
            "frames_popped": self.frames_popped,
            "filter_queries": self.filter_queries,
            "max_depth_seen": self.max_depth_seen,
            "processing_time_ms": self.processing_time_ms,
        }
