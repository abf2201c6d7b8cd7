"""Pure analysis logic: validation, metric calculators, and orchestration.

This package contains NO I/O operations and NO OpenCV imports.
All functions operate on typed dataclasses and return results.
"""

from gd_analyzer.analysis.analyzer import FrameAnalyzer, analyze_frame
from gd_analyzer.analysis.fallback import FallbackAnalyzer, FallbackPayload, analyze_fallback
from gd_analyzer.analysis.metrics import MetricsAccumulator, SessionSummary
from gd_analyzer.analysis.validators import LandmarkValidator

__all__ = [
    "FrameAnalyzer",
    "analyze_frame",
    "FallbackAnalyzer",
    "FallbackPayload",
    "analyze_fallback",
    "LandmarkValidator",
    "MetricsAccumulator",
    "SessionSummary",
]
