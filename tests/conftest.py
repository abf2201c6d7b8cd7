"""Pytest fixtures for GD Analyzer tests."""

from __future__ import annotations

import pytest

from gd_analyzer.core.config import Settings
from gd_analyzer.core.types import (
    FaceIndex,
    FaceLandmarks,
    FrameInput,
    HandLandmarks,
    PoseIndex,
    PoseLandmarks,
)

FACE_POINTS = 468
HAND_POINTS = 21
POSE_POINTS = 33

# Frontal, level face looking straight at the camera
FACE_KEY_POINTS = {
    FaceIndex.NOSE_TIP: (0.5, 0.5),
    FaceIndex.FOREHEAD: (0.5, 0.25),
    FaceIndex.CHIN: (0.5, 0.75),
    FaceIndex.LEFT_EYE_OUTER: (0.4, 0.4),
    FaceIndex.RIGHT_EYE_OUTER: (0.6, 0.4),
    FaceIndex.LEFT_EYE_INNER: (0.46, 0.4),
    FaceIndex.RIGHT_EYE_INNER: (0.54, 0.4),
    FaceIndex.LEFT_MOUTH: (0.44, 0.62),
    FaceIndex.RIGHT_MOUTH: (0.56, 0.62),
    FaceIndex.UPPER_LIP: (0.5, 0.61),
    FaceIndex.LOWER_LIP: (0.5, 0.63),
    FaceIndex.LEFT_EAR: (0.3, 0.45),
    FaceIndex.RIGHT_EAR: (0.7, 0.45),
}


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the cached instance."""
    return Settings()


@pytest.fixture
def face_rows() -> list[list[float]]:
    """468 distinct face points spread over the face region."""
    rows = []
    for i in range(FACE_POINTS):
        x = 0.3 + 0.4 * ((i * 37) % FACE_POINTS) / (FACE_POINTS - 1)
        y = 0.2 + 0.6 * ((i * 53) % FACE_POINTS) / (FACE_POINTS - 1)
        rows.append([x, y, 0.0])

    for index, (x, y) in FACE_KEY_POINTS.items():
        rows[index] = [x, y, 0.0]
    return rows


@pytest.fixture
def sample_face(face_rows: list[list[float]]) -> FaceLandmarks:
    """Create a valid frontal face."""
    return FaceLandmarks(landmarks=face_rows, confidence=0.95)


@pytest.fixture
def pose_rows() -> list[list[float]]:
    """33 pose points with level, visible shoulders."""
    rows = [[0.5, 0.5, 0.0, 0.9] for _ in range(POSE_POINTS)]
    rows[PoseIndex.LEFT_SHOULDER] = [0.4, 0.6, 0.0, 0.9]
    rows[PoseIndex.RIGHT_SHOULDER] = [0.6, 0.6, 0.0, 0.9]
    return rows


@pytest.fixture
def sample_pose(pose_rows: list[list[float]]) -> PoseLandmarks:
    """Create a valid upright pose."""
    return PoseLandmarks(landmarks=pose_rows, confidence=0.9)


@pytest.fixture
def hand_rows() -> list[list[float]]:
    """21 hand points spread over a 0.2 x 0.2 region."""
    return [[0.6 + 0.01 * i, 0.6 + 0.05 * (i % 5), 0.0] for i in range(HAND_POINTS)]


@pytest.fixture
def sample_hand(hand_rows: list[list[float]]) -> HandLandmarks:
    """Create a valid right hand."""
    return HandLandmarks(landmarks=hand_rows, confidence=0.9, handedness="Right")


@pytest.fixture
def sample_frame(
    sample_face: FaceLandmarks,
    sample_pose: PoseLandmarks,
    sample_hand: HandLandmarks,
) -> FrameInput:
    """Create a frame with every landmark group present and valid."""
    return FrameInput(
        frame_confidence=0.9,
        face=sample_face,
        hands=[sample_hand],
        pose=sample_pose,
        image_width=640,
        image_height=480,
    )


def shifted(rows: list[list[float]], dx: float = 0.0, dy: float = 0.0) -> list[list[float]]:
    """Copy of ``rows`` moved by (dx, dy)."""
    return [[row[0] + dx, row[1] + dy, *row[2:]] for row in rows]


@pytest.fixture
def shift():
    """Expose the row shifting helper to tests."""
    return shifted
