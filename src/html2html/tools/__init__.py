"""Developer tools for html2html."""

from .profiling import (
    ConversionProfiler,
    PerformanceReport,
    ProfilingSession,
    StagePerformance,
    benchmark_presets,
)

__all__ = [
    "ConversionProfiler",
    "PerformanceReport",
    "ProfilingSession",
    "StagePerformance",
    "benchmark_presets",
]
