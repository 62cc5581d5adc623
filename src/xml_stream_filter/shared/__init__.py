"""Shared utilities for filtered fragment building.

This module provides configuration objects, error types, diagnostics and
logging used across the event, filter and tree layers.
"""

from .config import (
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    EventSourceConfig,
    FragmentBuilderConfig,
    GlobalConfig,
)
from .errors import (
    DepthLimitExceededError,
    FragmentBuildError,
    MalformedStreamError,
    StructuralError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    BuildMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)

__all__ = [
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "EventSourceConfig",
    "FragmentBuilderConfig",
    "GlobalConfig",
    "DepthLimitExceededError",
    "FragmentBuildError",
    "MalformedStreamError",
    "StructuralError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "BuildMetrics",
    "DiagnosticEntry",
    "DiagnosticSeverity",
]
