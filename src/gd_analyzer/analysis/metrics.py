"""Session-level aggregation of per-frame metrics.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gd_analyzer.analysis.calculators import round_half_up
from gd_analyzer.core.types import AnalysisMetrics


@dataclass
class RunningMean:
    """Sum and count of the non-null values seen for one metric."""

    total: float = 0.0
    count: int = 0

    def add(self, value: float | None) -> None:
        if value is None:
            return
        self.total += value
        self.count += 1

    def mean(self, digits: int = 0) -> float | None:
        if self.count == 0:
            return None
        return round_half_up(self.total / self.count, digits)


@dataclass
class SessionSummary:
    """Averaged metrics for a practice session."""

    posture_score: int | None
    eye_contact_score: int | None
    expression_score: int | None
    attention_percent: float | None
    head_movement_avg: float | None
    hand_activity_avg: float | None
    shoulder_tilt_avg: float | None
    hands_detected_max: int
    tips: list[str]
    total_frames: int
    valid_frames: int
    frame_capture_rate: int


@dataclass
class _Accumulated:
    attention: RunningMean = field(default_factory=RunningMean)
    head_movement: RunningMean = field(default_factory=RunningMean)
    posture: RunningMean = field(default_factory=RunningMean)
    eye_contact: RunningMean = field(default_factory=RunningMean)
    expression: RunningMean = field(default_factory=RunningMean)
    hand_activity: RunningMean = field(default_factory=RunningMean)
    shoulder_tilt: RunningMean = field(default_factory=RunningMean)
    hands_detected_max: int = 0
    total_frames: int = 0
    valid_frames: int = 0
    # Insertion-ordered set
    tips: dict[str, None] = field(default_factory=dict)


class MetricsAccumulator:
    """Accumulates frame metrics into session averages and coaching tips.

    Null metrics are skipped, never counted as zero.
    """

    def __init__(self, max_tips: int = 5) -> None:
        """Initialize accumulator.

        Args:
            max_tips: Maximum number of tips reported in the summary
        """
        self.max_tips = max_tips
        self._acc = _Accumulated()

    @property
    def total_frames(self) -> int:
        """Number of frames with metrics added so far."""
        return self._acc.total_frames

    def add(self, metrics: AnalysisMetrics) -> None:
        """Add one frame's metrics.

        Args:
            metrics: Metrics from a frame that was not rejected outright
        """
        acc = self._acc
        acc.total_frames += 1

        if metrics.attention_percent is not None:
            acc.valid_frames += 1

        acc.attention.add(metrics.attention_percent)
        acc.head_movement.add(metrics.head_movement_normalized)
        acc.posture.add(metrics.posture_score)
        acc.eye_contact.add(metrics.eye_contact_score)
        acc.expression.add(metrics.expression_score)
        acc.hand_activity.add(metrics.hand_activity_normalized)
        if metrics.shoulder_tilt_deg is not None:
            acc.shoulder_tilt.add(abs(metrics.shoulder_tilt_deg))

        if metrics.hands_detected_count is not None:
            acc.hands_detected_max = max(acc.hands_detected_max, metrics.hands_detected_count)

        for tip in generate_tips(metrics):
            acc.tips.setdefault(tip, None)

    def summary(self) -> SessionSummary:
        """Get session-averaged metrics.

        Returns:
            SessionSummary with None for metrics never observed
        """
        acc = self._acc
        capture_rate = (
            int(round_half_up(acc.valid_frames / acc.total_frames * 100))
            if acc.total_frames > 0
            else 0
        )

        return SessionSummary(
            posture_score=_as_int(acc.posture.mean()),
            eye_contact_score=_as_int(acc.eye_contact.mean()),
            expression_score=_as_int(acc.expression.mean()),
            attention_percent=acc.attention.mean(1),
            head_movement_avg=acc.head_movement.mean(3),
            hand_activity_avg=acc.hand_activity.mean(3),
            shoulder_tilt_avg=acc.shoulder_tilt.mean(1),
            hands_detected_max=acc.hands_detected_max,
            tips=list(acc.tips)[: self.max_tips],
            total_frames=acc.total_frames,
            valid_frames=acc.valid_frames,
            frame_capture_rate=capture_rate,
        )

    def reset(self) -> None:
        """Clear all accumulated data."""
        self._acc = _Accumulated()


def generate_tips(metrics: AnalysisMetrics) -> list[str]:
    """Improvement tips triggered by one frame's metrics."""
    tips: list[str] = []

    if metrics.attention_percent is not None and metrics.attention_percent < 50:
        tips.append("Try to maintain eye contact with the camera")

    if metrics.posture_score is not None and metrics.posture_score < 70:
        tips.append("Keep your shoulders level for better posture")

    if metrics.shoulder_tilt_deg is not None and abs(metrics.shoulder_tilt_deg) > 10:
        tips.append("Straighten your posture - shoulders appear tilted")

    if metrics.expression_score is not None and metrics.expression_score < 40:
        tips.append("Try to show more engagement through facial expressions")

    if metrics.eye_contact_score is not None and metrics.eye_contact_score < 50:
        tips.append("Look directly at the camera for better eye contact")

    return tips


def _as_int(value: float | None) -> int | None:
    return int(value) if value is not None else None
