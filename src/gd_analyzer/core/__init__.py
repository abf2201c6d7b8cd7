"""Core infrastructure: config, types, exceptions, and logging."""

from gd_analyzer.core.config import Settings, get_settings
from gd_analyzer.core.exceptions import (
    GDAnalyzerError,
    LandmarkExtractionError,
    PayloadError,
)
from gd_analyzer.core.logging import get_logger, setup_logging
from gd_analyzer.core.types import (
    AnalysisMetrics,
    FaceIndex,
    FaceLandmarks,
    FrameInput,
    FrameRequest,
    FrameResponse,
    HandLandmarks,
    Landmark,
    PoseIndex,
    PoseLandmarks,
    PreviousState,
    ValidationResult,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "Landmark",
    "FaceIndex",
    "PoseIndex",
    "FaceLandmarks",
    "HandLandmarks",
    "PoseLandmarks",
    "FrameInput",
    "FrameRequest",
    "PreviousState",
    "AnalysisMetrics",
    "ValidationResult",
    "FrameResponse",
    # Exceptions
    "GDAnalyzerError",
    "PayloadError",
    "LandmarkExtractionError",
    # Logging
    "setup_logging",
    "get_logger",
]
