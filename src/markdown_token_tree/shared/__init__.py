"""Shared utilities for markdown token tree construction.

This module provides configuration objects, result metadata types and logging
helpers used across the tokenization, reference and tree layers.
"""

from .result import (
    BuildStatistics,
    DiagnosticSeverity,
)
from .config import (
    SUPPORTED_PRESETS,
    ConfigError,
    ConfigValidationError,
    ParseOptions,
    TokenizerConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "BuildStatistics",
    "DiagnosticSeverity",
    "SUPPORTED_PRESETS",
    "ConfigError",
    "ConfigValidationError",
    "ParseOptions",
    "TokenizerConfig",
    "CorrelationLogger",
    "get_logger",
]
