"""Diagnostic and metric types reported alongside conversion output."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()      # Conversion failed, no output produced
    CRITICAL = auto()   # Input could not be read at all


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
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
        """Convert the entry to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class ConversionMetrics:
    """Counters collected while a single input is converted."""

    processing_time_ms: float = 0.0
    characters_in: int = 0
    characters_out: int = 0
    tokens_consumed: int = 0
    nodes_built: int = 0
    memory_used_bytes: int = 0

    @property
    def characters_per_second(self) -> float:
        """Input characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_in * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Tokens consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_consumed * 1000.0) / self.processing_time_ms

    @property
    def size_ratio(self) -> float:
        """Output size relative to input size."""
        if self.characters_in == 0:
            return 0.0
        return self.characters_out / self.characters_in

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a JSON-friendly dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_in": self.characters_in,
            "characters_out": self.characters_out,
            "tokens_consumed": self.tokens_consumed,
            "nodes_built": self.nodes_built,
            "memory_used_bytes": self.memory_used_bytes,
        }
