"""Landmark validation with zero tolerance for placeholder data.

This module is pure logic with NO I/O. Validators never raise: every
failure is returned as a ValidationResult carrying a reason code.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from gd_analyzer.core.config import ValidationSettings
from gd_analyzer.core.types import (
    FaceLandmarks,
    HandLandmarks,
    PoseIndex,
    PoseLandmarks,
    Rows,
    ValidationResult,
)

NO_FACE = "no_face_detected"
NO_HAND = "no_hand_detected"
NO_POSE = "no_pose_detected"
LOW_CONFIDENCE = "low_confidence"
INSUFFICIENT_LANDMARKS = "insufficient_landmarks"
INVALID_FORMAT = "invalid_landmark_format"
OUT_OF_BOUNDS = "coordinates_out_of_bounds"
UNIFORM_VALUES = "suspected_fake_uniform_values"
BBOX_TOO_SMALL = "bbox_too_small"
MISSING_SHOULDERS = "missing_shoulder_landmarks"
LEFT_SHOULDER_HIDDEN = "left_shoulder_not_visible"
RIGHT_SHOULDER_HIDDEN = "right_shoulder_not_visible"
FRAME_CONFIDENCE_TOO_LOW = "frame_confidence_too_low"


class LandmarkValidator:
    """Gates landmark sets before any metric is computed from them.

    Checks run in a fixed order and short-circuit: the first failing
    check's reason is returned.
    """

    def __init__(self, settings: ValidationSettings | None = None) -> None:
        """Initialize validator with settings.

        Args:
            settings: Validation floors (uses defaults if None)
        """
        self.settings = settings or ValidationSettings()

    def validate_face(self, face: FaceLandmarks | None) -> ValidationResult:
        """Validate face landmarks, rejecting stubbed or degenerate detections."""
        if face is None:
            return ValidationResult.fail(NO_FACE)

        if face.confidence < self.settings.min_face_confidence:
            return ValidationResult.fail(LOW_CONFIDENCE)

        landmarks = face.landmarks
        if not landmarks or len(landmarks) < self.settings.min_face_landmarks:
            return ValidationResult.fail(INSUFFICIENT_LANDMARKS)

        coords = _coordinates(landmarks)
        if coords is None:
            return ValidationResult.fail(INVALID_FORMAT)

        if not _in_bounds(coords):
            return ValidationResult.fail(OUT_OF_BOUNDS)

        if self._looks_uniform(coords):
            return ValidationResult.fail(UNIFORM_VALUES)

        if _bbox_area(coords) < self.settings.min_bbox_area:
            return ValidationResult.fail(BBOX_TOO_SMALL)

        return ValidationResult.ok()

    def validate_hand(self, hand: HandLandmarks | None) -> ValidationResult:
        """Validate hand landmarks.

        No uniform-value check: hands legitimately occupy a small region.
        """
        if hand is None:
            return ValidationResult.fail(NO_HAND)

        if hand.confidence < self.settings.min_hand_confidence:
            return ValidationResult.fail(LOW_CONFIDENCE)

        landmarks = hand.landmarks
        if not landmarks or len(landmarks) < self.settings.min_hand_landmarks:
            return ValidationResult.fail(INSUFFICIENT_LANDMARKS)

        coords = _coordinates(landmarks)
        if coords is None:
            return ValidationResult.fail(INVALID_FORMAT)

        if not _in_bounds(coords):
            return ValidationResult.fail(OUT_OF_BOUNDS)

        if _bbox_area(coords) < self.settings.min_bbox_area:
            return ValidationResult.fail(BBOX_TOO_SMALL)

        return ValidationResult.ok()

    def validate_pose(self, pose: PoseLandmarks | None) -> ValidationResult:
        """Validate pose landmarks; both shoulders must be present and visible."""
        if pose is None:
            return ValidationResult.fail(NO_POSE)

        if pose.confidence < self.settings.min_pose_confidence:
            return ValidationResult.fail(LOW_CONFIDENCE)

        landmarks = pose.landmarks
        if not landmarks or len(landmarks) < self.settings.min_pose_landmarks:
            return ValidationResult.fail(INSUFFICIENT_LANDMARKS)

        left = landmarks[PoseIndex.LEFT_SHOULDER]
        right = landmarks[PoseIndex.RIGHT_SHOULDER]
        if not left or not right:
            return ValidationResult.fail(MISSING_SHOULDERS)

        floor = self.settings.min_shoulder_visibility
        if len(left) >= 4 and left[3] < floor:
            return ValidationResult.fail(LEFT_SHOULDER_HIDDEN)
        if len(right) >= 4 and right[3] < floor:
            return ValidationResult.fail(RIGHT_SHOULDER_HIDDEN)

        return ValidationResult.ok()

    def validate_frame(self, frame_confidence: float) -> ValidationResult:
        """Fast-reject check on the aggregate frame confidence."""
        if frame_confidence < self.settings.min_frame_confidence:
            return ValidationResult.fail(FRAME_CONFIDENCE_TOO_LOW)
        return ValidationResult.ok()

    def _looks_uniform(self, coords: NDArray[np.float64]) -> bool:
        """Detect detector stubs that emit (near-)identical points."""
        precision = self.settings.uniform_precision
        # Half-up rounding to the configured grid
        rounded = np.floor(coords * precision + 0.5)
        unique_x = np.unique(rounded[:, 0]).size
        unique_y = np.unique(rounded[:, 1]).size

        floor = len(coords) * self.settings.max_uniform_ratio
        return bool(unique_x < floor or unique_y < floor)


def _coordinates(landmarks: Rows) -> NDArray[np.float64] | None:
    """Stack the x/y pairs of every row, or None if any row lacks them."""
    if any(len(point) < 2 for point in landmarks):
        return None
    return np.array([[point[0], point[1]] for point in landmarks], dtype=np.float64)


def _in_bounds(coords: NDArray[np.float64]) -> bool:
    return bool(np.all(np.isfinite(coords)) and np.all((coords >= 0.0) & (coords <= 1.0)))


def _bbox_area(coords: NDArray[np.float64]) -> float:
    width, height = np.ptp(coords, axis=0)
    return float(width * height)
