"""Result metadata types for markdown token tree construction.

This module defines the severity scale shared by validation issues and the
statistics a tree build records about the event stream it consumed.
"""

from dataclasses import dataclass
from enum import Enum, auto


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Suspicious but structurally acceptable
    ERROR = auto()      # Invariant violations
    CRITICAL = auto()   # Tree cannot be trusted at all


@dataclass
class BuildStatistics:
    """Counters collected while turning an event stream into a token tree."""

    events_processed: int = 0
    tokens_created: int = 0
    suppressed_events: int = 0
    delegated_reparses: int = 0
    delegated_tokens: int = 0
    processing_time_ms: float = 0.0

    @property
    def total_tokens(self) -> int:
        """Tokens in the flat list, including delegated ones."""
        return self.tokens_created + self.delegated_tokens

    @property
    def suppression_rate(self) -> float:
        """Fraction of events skipped because a delegated parse replaced them."""
        if self.events_processed == 0:
            return 0.0
        return self.suppressed_events / self.events_processed

    @property
    def events_per_second(self) -> float:
        """Calculate events consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> dict:
        """Convert statistics to a dictionary suitable for log ``extra``."""
        return {
            "events_processed": self.events_processed,
            "tokens_created": self.tokens_created,
            "suppressed_events": self.suppressed_events,
            "delegated_reparses": self.delegated_reparses,
            "delegated_tokens": self.delegated_tokens,
            "processing_time_ms": self.processing_time_ms,
        }
