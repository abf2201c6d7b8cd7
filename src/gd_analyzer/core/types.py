"""Core data types and structures.

Landmark coordinates are kept as the raw rows the detector emits
(``[x, y]``, ``[x, y, z]`` or ``[x, y, z, visibility]``) so that they can be
round-tripped through ``PreviousState`` without conversion.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Literal

Row = Sequence[float]
Rows = Sequence[Row]
Handedness = Literal["Left", "Right"]


@dataclass(frozen=True, slots=True)
class Landmark:
    """A single landmark with normalized coordinates and optional visibility.

    Coordinates are normalized [0, 1] relative to frame dimensions.
    """

    x: float
    y: float
    z: float = 0.0
    visibility: float | None = None

    @classmethod
    def from_row(cls, row: Row | None) -> Landmark | None:
        """Build a landmark from a raw row, or None if it has no x/y pair."""
        if row is None or len(row) < 2:
            return None
        return cls(
            x=float(row[0]),
            y=float(row[1]),
            z=float(row[2]) if len(row) >= 3 else 0.0,
            visibility=float(row[3]) if len(row) >= 4 else None,
        )


# MediaPipe face mesh landmark indices
class FaceIndex(IntEnum):
    """MediaPipe face mesh indices (subset used by the calculators)."""

    NOSE_TIP = 1
    FOREHEAD = 10
    UPPER_LIP = 13
    LOWER_LIP = 14
    LEFT_EYE_OUTER = 33
    LEFT_MOUTH = 61
    LEFT_EYE_INNER = 133
    CHIN = 152
    LEFT_EAR = 234
    RIGHT_EYE_OUTER = 263
    RIGHT_MOUTH = 291
    RIGHT_EYE_INNER = 362
    RIGHT_EAR = 454


# MediaPipe pose landmark indices
class PoseIndex(IntEnum):
    """MediaPipe pose indices (subset used by the calculators)."""

    NOSE = 0
    LEFT_EAR = 7
    RIGHT_EAR = 8
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12


def landmark_at(rows: Rows | None, index: int) -> Landmark | None:
    """Get the landmark at ``index`` if the row exists and carries x/y."""
    if not rows or index >= len(rows):
        return None
    return Landmark.from_row(rows[index])


@dataclass(frozen=True, slots=True)
class FaceLandmarks:
    """Face mesh landmarks (468-point topology) for one frame."""

    landmarks: Rows
    confidence: float

    def get(self, index: int) -> Landmark | None:
        """Get a specific landmark by index."""
        return landmark_at(self.landmarks, index)


@dataclass(frozen=True, slots=True)
class HandLandmarks:
    """Hand landmarks (21 points) with handedness for one frame."""

    landmarks: Rows
    confidence: float
    handedness: Handedness = "Right"


@dataclass(frozen=True, slots=True)
class PoseLandmarks:
    """Body pose landmarks (33 points, 4th element visibility)."""

    landmarks: Rows
    confidence: float

    def get(self, index: int) -> Landmark | None:
        """Get a specific landmark by index."""
        return landmark_at(self.landmarks, index)


@dataclass(frozen=True, slots=True)
class FrameInput:
    """Detector output for one video frame.

    Attributes:
        frame_confidence: Aggregate trust score for the whole frame [0, 1]
        face: Face landmarks, if a face was detected
        hands: Zero or more hand landmark sets
        pose: Pose landmarks, if a body was detected
        image_width: Frame width in pixels
        image_height: Frame height in pixels
    """

    frame_confidence: float
    face: FaceLandmarks | None = None
    hands: list[HandLandmarks] | None = None
    pose: PoseLandmarks | None = None
    image_width: int = 0
    image_height: int = 0


@dataclass(frozen=True, slots=True)
class PreviousState:
    """Raw coordinates retained from the previous analyzed frame.

    Produced by the analyzer, stored opaquely by the caller and replayed on
    the next call. Only used for motion deltas.
    """

    face_landmarks: Rows | None = None
    hand_landmarks: Sequence[Rows] | None = None
    pose_landmarks: Rows | None = None
    timestamp: float = 0.0

    @classmethod
    def empty(cls, timestamp: float) -> PreviousState:
        """State with no landmarks, carrying only the timestamp."""
        return cls(timestamp=timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire shape."""
        return {
            "face_landmarks": _rows_to_lists(self.face_landmarks),
            "hand_landmarks": (
                [_rows_to_lists(hand) for hand in self.hand_landmarks]
                if self.hand_landmarks is not None
                else None
            ),
            "pose_landmarks": _rows_to_lists(self.pose_landmarks),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class FrameRequest:
    """One analysis request: landmarks, timestamp and optional prior state."""

    landmarks: FrameInput | None
    timestamp: float = 0.0
    previous_state: PreviousState | None = None


@dataclass(slots=True)
class AnalysisMetrics:
    """Per-frame behavioural metrics.

    Every field is independently nullable. A field is set only when its
    calculator ran to completion on validated input in this frame.
    """

    attention_percent: float | None = None
    head_movement_normalized: float | None = None
    shoulder_tilt_deg: float | None = None
    hand_activity_normalized: float | None = None
    hands_detected_count: int | None = None
    posture_score: int | None = None
    eye_contact_score: int | None = None
    expression_score: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a validator check."""

    valid: bool
    reason: str

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True, reason="success")

    @classmethod
    def fail(cls, reason: str) -> ValidationResult:
        return cls(valid=False, reason=reason)


@dataclass(slots=True)
class FrameResponse:
    """Result of analyzing one frame.

    Attributes:
        metrics: Computed metrics, or None if the whole frame was rejected
        frame_confidence: Frame confidence passed through from the request
        explanations: Computation name -> "success" or a reason code
        warnings: Human-readable diagnostics for the UI
        next_state: State to pass back in on the following frame
    """

    metrics: AnalysisMetrics | None
    frame_confidence: float
    explanations: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    next_state: PreviousState = field(default_factory=PreviousState)

    @classmethod
    def empty(
        cls,
        timestamp: float,
        explanations: dict[str, str],
        warnings: list[str],
        frame_confidence: float = 0.0,
        next_state: PreviousState | None = None,
    ) -> FrameResponse:
        """All-null response used for rejected or unparseable frames."""
        return cls(
            metrics=None,
            frame_confidence=frame_confidence,
            explanations=explanations,
            warnings=warnings,
            next_state=next_state or PreviousState.empty(timestamp),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire shape."""
        return {
            "metrics": self.metrics.to_dict() if self.metrics is not None else None,
            "frame_confidence": self.frame_confidence,
            "explanations": dict(self.explanations),
            "warnings": list(self.warnings),
            "next_state": self.next_state.to_dict(),
        }


def _rows_to_lists(rows: Rows | None) -> list[list[float]] | None:
    if rows is None:
        return None
    return [list(row) for row in rows]
