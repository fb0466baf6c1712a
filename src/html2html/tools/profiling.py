"""Timing and memory profiling of conversions.

A session covers one conversion and is split into stages (parse, serialize).
Each stage records wall time and the process RSS before and after, taken from
psutil.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

import psutil

from html2html.shared import ConversionMetrics, ConverterConfig, get_logger

if TYPE_CHECKING:
    from html2html.api.converter import Converter, InputType

BYTES_PER_MB = 1024 * 1024


@dataclass
class StagePerformance:
    """Timing and memory figures for one stage of a conversion."""

    stage_name: str
    start_time: float
    end_time: float = 0.0
    memory_start: int = 0  # bytes
    memory_end: int = 0  # bytes

    @property
    def duration_ms(self) -> float:
        """Stage duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def memory_delta(self) -> int:
        """RSS change in bytes, negative when memory was released."""
        return self.memory_end - self.memory_start


@dataclass
class ProfilingSession:
    """All stages recorded for one profiled conversion."""

    session_id: str
    start_time: float
    end_time: float = 0.0
    input_size: int = 0  # characters
    stages: List[StagePerformance] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000

    @property
    def throughput_mb_per_s(self) -> float:
        """Input processed per second, counting one byte per character."""
        duration_s = self.end_time - self.start_time
        if duration_s <= 0:
            return 0.0
        return (self.input_size / BYTES_PER_MB) / duration_s

    @property
    def peak_memory_delta(self) -> int:
        """Largest RSS growth seen in any stage."""
        return max((stage.memory_delta for stage in self.stages), default=0)

    def stage(self, name: str) -> Optional[StagePerformance]:
        for stage in self.stages:
            if stage.stage_name == name:
                return stage
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "input_size": self.input_size,
            "total_duration_ms": self.total_duration_ms,
            "throughput_mb_s": self.throughput_mb_per_s,
            "metadata": self.metadata,
            "stages": [
                {
                    "stage_name": stage.stage_name,
                    "duration_ms": stage.duration_ms,
                    "memory_delta": stage.memory_delta,
                }
                for stage in self.stages
            ],
        }


@dataclass
class PerformanceReport:
    """Aggregate over a set of profiling sessions."""

    sessions: List[ProfilingSession]
    generation_time: float

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def average_duration_ms(self) -> float:
        if not self.sessions:
            return 0.0
        return sum(s.total_duration_ms for s in self.sessions) / len(self.sessions)

    @property
    def average_throughput_mb_per_s(self) -> float:
        if not self.sessions:
            return 0.0
        return sum(s.throughput_mb_per_s for s in self.sessions) / len(self.sessions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_time": self.generation_time,
            "summary": {
                "session_count": self.session_count,
                "average_duration_ms": self.average_duration_ms,
                "average_throughput_mb_s": self.average_throughput_mb_per_s,
            },
            "sessions": [session.to_dict() for session in self.sessions],
        }


class ConversionProfiler:
    """Profiler for converter runs.

    Examples:
        >>> from html2html import Converter
        >>> profiler = ConversionProfiler()
        >>> output, session = profiler.profile_conversion(Converter(), "<p>Hi</p>")
        >>> output
        '<p>Hi</p>'
        >>> [stage.stage_name for stage in session.stages]
        ['parse', 'serialize']
    """

    def __init__(self, enable_memory_tracking: bool = True) -> None:
        """Initialize profiler.

        Args:
            enable_memory_tracking: Whether to sample process RSS around stages
        """
        self.enable_memory_tracking = enable_memory_tracking
        self.sessions: List[ProfilingSession] = []
        self.logger = get_logger(__name__, None, "conversion_profiler")
        self._process = psutil.Process() if enable_memory_tracking else None

    def current_rss(self) -> int:
        """Resident set size of this process in bytes, 0 when not tracking."""
        if self._process is None:
            return 0
        return self._process.memory_info().rss

    def start_session(self, session_id: str, input_size: int = 0) -> ProfilingSession:
        session = ProfilingSession(
            session_id=session_id,
            start_time=time.time(),
            input_size=input_size
        )
        self.logger.debug(
            "Started profiling session",
            extra={"session_id": session_id, "input_size": input_size}
        )
        return session

    def end_session(self, session: ProfilingSession) -> None:
        session.end_time = time.time()
        self.sessions.append(session)
        self.logger.info(
            "Ended profiling session",
            extra={
                "session_id": session.session_id,
                "duration_ms": session.total_duration_ms,
                "stage_count": len(session.stages)
            }
        )

    def profile_stage(self, session: ProfilingSession, stage_name: str) -> "StageProfiler":
        """Context manager that records one stage into ``session``."""
        return StageProfiler(self, session, stage_name)

    def profile_conversion(
        self,
        converter: "Converter",
        source: "InputType",
        session_id: Optional[str] = None
    ) -> Tuple[str, ProfilingSession]:
        """Convert ``source`` with ``converter`` and profile both stages.

        Conversion errors propagate; the session is only stored on success.

        Returns:
            The converted markup and the finished session
        """
        session = self.start_session(session_id or f"session_{len(self.sessions) + 1}")

        with self.profile_stage(session, "parse"):
            root = converter.parse(source)
        with self.profile_stage(session, "serialize"):
            output = root.to_html(converter.void_elements)

        metrics = converter.last_metrics
        if metrics is not None:
            session.input_size = metrics.characters_in
            session.metadata["tokens_consumed"] = metrics.tokens_consumed
            session.metadata["nodes_built"] = metrics.nodes_built
        session.metadata["strict"] = converter.strict
        self.end_session(session)
        return output, session

    def metrics_for(self, session: ProfilingSession, output: str) -> ConversionMetrics:
        """Build conversion metrics from a finished session."""
        return ConversionMetrics(
            processing_time_ms=session.total_duration_ms,
            characters_in=session.input_size,
            characters_out=len(output),
            tokens_consumed=session.metadata.get("tokens_consumed", 0),
            nodes_built=session.metadata.get("nodes_built", 0),
            memory_used_bytes=max(session.peak_memory_delta, 0),
        )

    def generate_report(self) -> PerformanceReport:
        return PerformanceReport(sessions=list(self.sessions), generation_time=time.time())

    def save_report(self, report: PerformanceReport, output_path: Union[str, Path]) -> None:
        """Write ``report`` as JSON."""
        path_obj = Path(output_path)
        path_obj.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        self.logger.info(
            "Saved performance report",
            extra={"output_path": str(path_obj), "session_count": report.session_count}
        )

    def clear_sessions(self) -> None:
        self.sessions.clear()


class StageProfiler:
    """Context manager recording wall time and RSS around one stage."""

    def __init__(
        self, profiler: ConversionProfiler, session: ProfilingSession, stage_name: str
    ) -> None:
        self.profiler = profiler
        self.session = session
        self.stage_name = stage_name
        self.stage: Optional[StagePerformance] = None

    def __enter__(self) -> StagePerformance:
        self.stage = StagePerformance(
            stage_name=self.stage_name,
            start_time=time.time(),
            memory_start=self.profiler.current_rss()
        )
        return self.stage

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.stage is None:
            return
        self.stage.end_time = time.time()
        self.stage.memory_end = self.profiler.current_rss()
        self.session.stages.append(self.stage)


def benchmark_presets(markup: str, iterations: int = 10) -> Dict[str, PerformanceReport]:
    """Profile ``markup`` under each configuration preset.

    Presets that cannot convert the markup (strict on broken nesting) are
    reported with no sessions.
    """
    from html2html.api.converter import Converter
    from html2html.shared import ConversionError

    results = {}
    for preset_name in ("strict", "lenient", "sanitizing"):
        profiler = ConversionProfiler()
        converter = Converter(ConverterConfig.preset(preset_name))
        for i in range(iterations):
            try:
                profiler.profile_conversion(converter, markup, f"{preset_name}_{i}")
            except ConversionError:
                break
        results[preset_name] = profiler.generate_report()
    return results
