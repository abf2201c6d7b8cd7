"""Degraded-mode analysis over a loosely typed landmark payload.

Used when the primary analyzer is unreachable. Only geometrically safe
metrics are computed (shoulder tilt and posture, hand count and centroid,
head offset); gaze and expression are always reported as unavailable.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from gd_analyzer.analysis.calculators import round_half_up
from gd_analyzer.core.config import FallbackSettings
from gd_analyzer.core.logging import get_logger
from gd_analyzer.core.types import AnalysisMetrics, FaceIndex, Landmark, PoseIndex

logger = get_logger(__name__)

# A point may arrive as [x, y, z?, visibility?] or {"x": .., "y": .., ...}
LoosePoint = Sequence[float] | Mapping[str, Any]

SUCCESS = "success"
CALCULATION_FAILED = "calculation_failed"
NOT_AVAILABLE = "not_available_in_fallback"
REQUIRES_GAZE_MODEL = "requires_gaze_model"
REQUIRES_EXPRESSION_MODEL = "requires_expression_model"

# (upper bound in degrees, score) for the posture bands
POSTURE_BANDS = ((3.0, 95), (5.0, 85), (10.0, 70), (15.0, 55))
POSTURE_FLOOR = 40


@dataclass(frozen=True, slots=True)
class FallbackPayload:
    """Loose landmark payload accepted in degraded mode."""

    face_landmarks: Sequence[LoosePoint] | None = None
    pose_landmarks: Sequence[LoosePoint] | None = None
    hands: Sequence[Sequence[LoosePoint]] | None = None
    frame_width: int | None = None
    frame_height: int | None = None
    timestamp: float = 0.0


@dataclass(slots=True)
class FallbackResult:
    """Fallback analysis output."""

    metrics: AnalysisMetrics
    frame_confidence: float
    timestamp: float
    explanations: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire shape."""
        return {
            "success": True,
            "metrics": self.metrics.to_dict(),
            "explanations": dict(self.explanations),
            "warnings": list(self.warnings),
            "fallback": True,
            "frame_confidence": self.frame_confidence,
            "timestamp": self.timestamp,
        }


def to_landmark(point: LoosePoint | None) -> Landmark | None:
    """Read a point given either as an array or as an ``{x, y}`` object."""
    if point is None:
        return None

    if isinstance(point, Mapping):
        if point.get("x") is None or point.get("y") is None:
            return None
        visibility = point.get("visibility")
        return Landmark(
            x=float(point["x"]),
            y=float(point["y"]),
            z=float(point.get("z") or 0.0),
            visibility=float(visibility) if visibility is not None else None,
        )

    return Landmark.from_row(point)


def fallback_posture_score(tilt_deg: float) -> int:
    """Banded posture score for an absolute shoulder angle."""
    for upper, score in POSTURE_BANDS:
        if tilt_deg < upper:
            return score
    return POSTURE_FLOOR


class FallbackAnalyzer:
    """Computes the safe metric subset from raw x/y geometry.

    No validation layer: every metric is still None unless its inputs
    were present and produced a finite number.
    """

    def __init__(self, settings: FallbackSettings | None = None) -> None:
        """Initialize analyzer with settings.

        Args:
            settings: Fallback parameters (uses defaults if None)
        """
        self.settings = settings or FallbackSettings()

    def analyze(self, payload: FallbackPayload) -> FallbackResult:
        """Analyze a loose payload.

        Args:
            payload: Landmarks in array or object form

        Returns:
            FallbackResult with gaze and expression always unavailable
        """
        width = payload.frame_width or self.settings.default_frame_width
        height = payload.frame_height or self.settings.default_frame_height

        result = FallbackResult(
            metrics=AnalysisMetrics(hands_detected_count=0),
            frame_confidence=self.settings.reported_confidence,
            timestamp=payload.timestamp,
        )

        self._shoulders(payload.pose_landmarks, width, height, result)
        self._hands(payload.hands, result)
        self._head(payload.face_landmarks, width, height, result)

        result.explanations["attention"] = NOT_AVAILABLE
        result.explanations["eye_contact"] = REQUIRES_GAZE_MODEL
        result.explanations["expression"] = REQUIRES_EXPRESSION_MODEL
        result.warnings.append("Fallback mode: gaze and expression unavailable")

        logger.debug(
            "Fallback analyzed: posture=%s tilt=%s hands=%s",
            result.metrics.posture_score,
            result.metrics.shoulder_tilt_deg,
            result.metrics.hands_detected_count,
        )
        return result

    def _shoulders(
        self,
        pose: Sequence[LoosePoint] | None,
        width: int,
        height: int,
        result: FallbackResult,
    ) -> None:
        if not pose or len(pose) < self.settings.min_pose_rows:
            result.explanations["posture"] = "no_pose_data"
            return

        left = to_landmark(pose[PoseIndex.LEFT_SHOULDER])
        right = to_landmark(pose[PoseIndex.RIGHT_SHOULDER])
        if left is None or right is None:
            result.explanations["posture"] = "missing_shoulder_landmarks"
            return

        floor = self.settings.min_shoulder_visibility
        left_visibility = left.visibility if left.visibility is not None else 1.0
        right_visibility = right.visibility if right.visibility is not None else 1.0
        if left_visibility <= floor or right_visibility <= floor:
            result.explanations["posture"] = "shoulders_not_visible"
            return

        dx = (right.x - left.x) * width
        dy = (right.y - left.y) * height
        if abs(dx) <= 1e-3:
            result.explanations["posture"] = CALCULATION_FAILED
            return

        angle = abs(math.degrees(math.atan(dy / dx)))
        if not math.isfinite(angle):
            result.explanations["posture"] = CALCULATION_FAILED
            return

        result.metrics.shoulder_tilt_deg = round_half_up(angle, 1)
        result.metrics.posture_score = fallback_posture_score(angle)
        result.explanations["posture"] = SUCCESS

    def _hands(self, hands: Sequence[Sequence[LoosePoint]] | None, result: FallbackResult) -> None:
        if not hands:
            result.explanations["hands"] = "no_hands_detected"
            return

        result.metrics.hands_detected_count = len(hands)
        result.explanations["hands"] = SUCCESS

        first = hands[0]
        if not first or len(first) < self.settings.min_hand_points:
            result.explanations["hand_activity"] = "insufficient_landmarks"
            return

        points = [to_landmark(point) for point in first]
        if any(point is None for point in points):
            result.explanations["hand_activity"] = "invalid_landmark_format"
            return

        xy = np.array([[point.x, point.y] for point in points if point is not None])
        cx, cy = xy.mean(axis=0)
        # Centroid magnitude scaled to [0, 1] by the unit square diagonal
        norm = float(math.hypot(cx, cy) / math.sqrt(2))
        if math.isnan(norm):
            result.explanations["hand_activity"] = CALCULATION_FAILED
            return

        result.metrics.hand_activity_normalized = round_half_up(norm, 3)
        result.explanations["hand_activity"] = SUCCESS

    def _head(
        self,
        face: Sequence[LoosePoint] | None,
        width: int,
        height: int,
        result: FallbackResult,
    ) -> None:
        if not face or len(face) < self.settings.min_face_rows:
            result.explanations["head_movement"] = "no_face_data"
            return

        nose = to_landmark(face[FaceIndex.NOSE_TIP])
        left_eye = to_landmark(face[FaceIndex.LEFT_EYE_OUTER])
        right_eye = to_landmark(face[FaceIndex.RIGHT_EYE_OUTER])
        if nose is None or left_eye is None or right_eye is None:
            result.explanations["head_movement"] = "invalid_landmark_format"
            return

        cx = (left_eye.x + right_eye.x) / 2
        cy = (left_eye.y + right_eye.y) / 2
        dx = (nose.x - cx) * width
        dy = (nose.y - cy) * height

        movement = math.hypot(dx, dy) / math.hypot(width, height)
        if math.isnan(movement):
            result.explanations["head_movement"] = CALCULATION_FAILED
            return

        result.metrics.head_movement_normalized = round_half_up(movement, 3)
        result.explanations["head_movement"] = SUCCESS


def analyze_fallback(
    payload: FallbackPayload,
    settings: FallbackSettings | None = None,
) -> FallbackResult:
    """Pure function wrapper around FallbackAnalyzer."""
    return FallbackAnalyzer(settings).analyze(payload)
