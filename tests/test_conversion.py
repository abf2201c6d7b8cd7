"""Tests for MediaPipe result conversion.

Results are stubbed with SimpleNamespace, so MediaPipe is not needed.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from gd_analyzer.core.config import DetectorSettings
from gd_analyzer.core.types import FaceLandmarks, PoseLandmarks
from gd_analyzer.vision.conversion import (
    DEFAULT_HAND_CONFIDENCE,
    build_frame_input,
    face_from_result,
    frame_confidence,
    hands_from_result,
    pose_from_result,
)


def _point(x: float, y: float, z: float = 0.0, visibility: float | None = None):
    return SimpleNamespace(x=x, y=y, z=z, visibility=visibility)


@pytest.fixture
def face_result() -> SimpleNamespace:
    return SimpleNamespace(face_landmarks=[[_point(0.1 * i, 0.2) for i in range(5)]])


@pytest.fixture
def hand_result() -> SimpleNamespace:
    return SimpleNamespace(
        hand_landmarks=[[_point(0.5, 0.5)] * 21, [_point(0.2, 0.3)] * 21],
        handedness=[
            [SimpleNamespace(category_name="Left", score=0.97)],
            [],
        ],
    )


@pytest.fixture
def pose_result() -> SimpleNamespace:
    return SimpleNamespace(
        pose_landmarks=[[_point(0.4, 0.6, 0.1, 0.8), _point(0.6, 0.6, 0.1, None)]]
    )


class TestResultConversion:
    """Tests for per-landmarker conversion."""

    def test_face_rows(self, face_result: SimpleNamespace) -> None:
        face = face_from_result(face_result, confidence=0.9)

        assert face is not None
        assert len(face.landmarks) == 5
        assert face.landmarks[2] == [pytest.approx(0.2), 0.2, 0.0]
        assert face.confidence == 0.9

    def test_no_face(self) -> None:
        assert face_from_result(SimpleNamespace(face_landmarks=[]), 0.9) is None

    def test_hands_with_handedness(self, hand_result: SimpleNamespace) -> None:
        hands = hands_from_result(hand_result)

        assert hands is not None
        assert len(hands) == 2
        assert hands[0].handedness == "Left"
        assert hands[0].confidence == pytest.approx(0.97)
        # Missing category falls back to defaults
        assert hands[1].handedness == "Right"
        assert hands[1].confidence == DEFAULT_HAND_CONFIDENCE

    def test_pose_visibility_column(self, pose_result: SimpleNamespace) -> None:
        pose = pose_from_result(pose_result, confidence=0.9)

        assert pose is not None
        assert pose.landmarks[0] == [0.4, 0.6, 0.1, 0.8]
        assert pose.landmarks[1][3] == 1.0


class TestFrameConfidence:
    """Tests for aggregate frame confidence."""

    def test_no_face_is_zero(self) -> None:
        assert frame_confidence(None, PoseLandmarks([], 0.9)) == 0.0

    def test_face_dominates(self) -> None:
        assert frame_confidence(FaceLandmarks([], 0.9), PoseLandmarks([], 0.9)) == 0.9

    def test_half_pose_weight(self) -> None:
        assert frame_confidence(FaceLandmarks([], 0.3), PoseLandmarks([], 0.9)) == 0.45


class TestBuildFrameInput:
    """Tests for merging landmarker results."""

    def test_merges_all_groups(
        self,
        face_result: SimpleNamespace,
        hand_result: SimpleNamespace,
        pose_result: SimpleNamespace,
    ) -> None:
        frame = build_frame_input(
            face_result,
            hand_result,
            pose_result,
            width=640,
            height=480,
            settings=DetectorSettings(),
        )

        assert frame.face is not None
        assert frame.pose is not None
        assert frame.hands is not None and len(frame.hands) == 2
        assert frame.frame_confidence == 0.9
        assert (frame.image_width, frame.image_height) == (640, 480)

    def test_failed_landmarkers(self) -> None:
        frame = build_frame_input(None, None, None, width=640, height=480)

        assert frame.face is None
        assert frame.hands is None
        assert frame.pose is None
        assert frame.frame_confidence == 0.0
