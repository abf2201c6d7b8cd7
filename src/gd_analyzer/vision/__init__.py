"""Landmark extraction from video frames.

``LandmarkExtractor`` needs MediaPipe and OpenCV; import it from
``gd_analyzer.vision.landmarks``. The result conversion is importable on
its own.
"""

from gd_analyzer.vision.conversion import build_frame_input, frame_confidence

__all__ = ["build_frame_input", "frame_confidence"]
