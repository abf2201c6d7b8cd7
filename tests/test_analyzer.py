"""Tests for the frame analyzer."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from gd_analyzer.analysis.analyzer import FrameAnalyzer, analyze_frame
from gd_analyzer.core.config import Settings
from gd_analyzer.core.types import (
    FaceIndex,
    FaceLandmarks,
    FrameInput,
    FrameRequest,
    HandLandmarks,
    PoseLandmarks,
    PreviousState,
)


@pytest.fixture
def analyzer(settings: Settings) -> FrameAnalyzer:
    return FrameAnalyzer(settings)


class TestFrameGate:
    """Tests for whole-frame rejection."""

    def test_low_frame_confidence_rejects_everything(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        frame = replace(sample_frame, frame_confidence=0.2)

        response = analyzer.analyze(frame, timestamp=1500.0)

        assert response.metrics is None
        assert response.explanations == {"frame": "frame_confidence_too_low"}
        assert response.warnings == ["Frame confidence below threshold"]
        assert response.frame_confidence == 0.2
        assert response.next_state == PreviousState(timestamp=1500.0)


class TestFullFrame:
    """Tests for a frame with every group valid."""

    def test_first_frame_metrics(self, analyzer: FrameAnalyzer, sample_frame: FrameInput) -> None:
        response = analyzer.analyze(sample_frame, None, timestamp=0.0)
        metrics = response.metrics

        assert metrics is not None
        assert metrics.attention_percent == 100.0
        assert metrics.eye_contact_score == 100
        assert metrics.expression_score == 42
        assert metrics.head_movement_normalized == 0.0
        assert metrics.shoulder_tilt_deg == 0.0
        assert metrics.posture_score == 100
        assert metrics.hands_detected_count == 1
        assert metrics.hand_activity_normalized == 0.0
        assert response.warnings == []

    def test_first_frame_explanations(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        response = analyzer.analyze(sample_frame)

        assert response.explanations == {
            "attention": "success",
            "eye_contact": "success",
            "expression": "success",
            "head_movement": "first_frame",
            "shoulder_tilt": "success",
            "posture": "success",
            "hands": "success",
            "hand_activity": "first_frame",
        }

    def test_motion_against_previous_state(
        self,
        analyzer: FrameAnalyzer,
        sample_frame: FrameInput,
        face_rows,
        hand_rows,
        shift,
    ) -> None:
        previous = PreviousState(
            face_landmarks=shift(face_rows, dx=0.01),
            hand_landmarks=[shift(hand_rows, dx=0.01)],
            pose_landmarks=None,
            timestamp=0.0,
        )

        response = analyzer.analyze(sample_frame, previous, timestamp=100.0)

        assert response.metrics is not None
        assert response.metrics.head_movement_normalized == pytest.approx(0.02)
        assert response.metrics.hand_activity_normalized == pytest.approx(0.01)
        assert response.explanations["head_movement"] == "success"
        assert response.explanations["hand_activity"] == "success"

    def test_previous_state_without_comparable_points(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        """A previous state that exists but has nothing to compare yields null, not 0."""
        previous = PreviousState(face_landmarks=[[0.5] for _ in range(12)], timestamp=0.0)

        response = analyzer.analyze(sample_frame, previous)

        assert response.metrics is not None
        assert response.metrics.head_movement_normalized is None
        assert response.explanations["head_movement"] == "calculation_failed"

    def test_empty_previous_face(self, analyzer: FrameAnalyzer, sample_frame: FrameInput) -> None:
        response = analyzer.analyze(sample_frame, PreviousState(face_landmarks=[]))

        assert response.metrics is not None
        assert response.metrics.head_movement_normalized is None

    def test_next_state_carries_raw_rows(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        response = analyzer.analyze(sample_frame, timestamp=42.0)
        state = response.next_state

        assert state.timestamp == 42.0
        assert state.face_landmarks == sample_frame.face.landmarks
        assert state.pose_landmarks == sample_frame.pose.landmarks
        assert state.hand_landmarks == [sample_frame.hands[0].landmarks]

    def test_idempotent(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, face_rows, shift
    ) -> None:
        previous = PreviousState(face_landmarks=shift(face_rows, dy=0.02), timestamp=1.0)

        first = analyzer.analyze(sample_frame, previous, timestamp=2.0)
        second = analyzer.analyze(sample_frame, previous, timestamp=2.0)

        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())


class TestFaceFailures:
    """Tests for invalid face data."""

    def test_uniform_face_nulls_face_metrics(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        fake = FaceLandmarks([[0.5, 0.5, 0.0]] * 468, confidence=0.95)
        frame = replace(sample_frame, face=fake)

        response = analyzer.analyze(frame)
        metrics = response.metrics

        assert metrics is not None
        assert metrics.attention_percent is None
        assert metrics.eye_contact_score is None
        assert metrics.expression_score is None
        assert metrics.head_movement_normalized is None
        assert response.explanations["face"] == "suspected_fake_uniform_values"
        assert "Face validation failed: suspected_fake_uniform_values" in response.warnings
        # Pose is independent of the face
        assert metrics.posture_score == 100

    def test_missing_face(self, analyzer: FrameAnalyzer, sample_frame: FrameInput) -> None:
        response = analyzer.analyze(replace(sample_frame, face=None))

        assert response.explanations["face"] == "no_face_detected"
        assert response.next_state.face_landmarks is None


class TestPoseFallbacks:
    """Tests for posture when pose is unusable."""

    def test_posture_estimated_from_ears(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        response = analyzer.analyze(replace(sample_frame, pose=None))

        assert response.metrics is not None
        assert response.metrics.shoulder_tilt_deg == 0.0
        assert response.metrics.posture_score == 100
        assert response.explanations["pose"] == "no_pose_detected"
        assert response.explanations["posture"] == "estimated_from_face"
        assert response.explanations["shoulder_tilt"] == "estimated_from_face"
        assert "Posture estimated from face landmarks (pose not available)" in response.warnings

    def test_ear_estimate_failure(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, face_rows
    ) -> None:
        face_rows[FaceIndex.LEFT_EAR] = [0.5, 0.4, 0.0]
        face_rows[FaceIndex.RIGHT_EAR] = [0.505, 0.5, 0.0]
        frame = replace(sample_frame, face=FaceLandmarks(face_rows, 0.95), pose=None)

        response = analyzer.analyze(frame)

        assert response.metrics is not None
        assert response.metrics.posture_score is None
        assert response.metrics.shoulder_tilt_deg is None
        assert response.explanations["posture"] == "face_estimate_failed"

    def test_no_estimate_without_valid_face(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput
    ) -> None:
        response = analyzer.analyze(replace(sample_frame, face=None, pose=None))

        assert response.metrics is not None
        assert response.metrics.posture_score is None
        assert response.metrics.shoulder_tilt_deg is None
        assert "posture" not in response.explanations

    def test_short_pose(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, pose_rows
    ) -> None:
        frame = replace(sample_frame, pose=PoseLandmarks(pose_rows[:10], 0.9))

        response = analyzer.analyze(frame)

        assert response.explanations["pose"] == "insufficient_landmarks"
        assert "Pose validation failed: insufficient_landmarks" in response.warnings

    def test_posture_null_iff_tilt_null(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, pose_rows
    ) -> None:
        pose_rows[12] = [0.6, 0.8, 0.0, 0.9]
        frame = replace(sample_frame, pose=PoseLandmarks(pose_rows, 0.9))

        response = analyzer.analyze(frame)

        assert response.metrics is not None
        assert response.metrics.shoulder_tilt_deg == 45.0
        assert response.metrics.posture_score == 10


class TestHands:
    """Tests for hand handling."""

    def test_no_hands(self, analyzer: FrameAnalyzer, sample_frame: FrameInput) -> None:
        response = analyzer.analyze(replace(sample_frame, hands=None))

        assert response.metrics is not None
        assert response.metrics.hands_detected_count == 0
        assert response.metrics.hand_activity_normalized is None
        assert response.explanations["hands"] == "no_hands_detected"
        assert response.warnings == []

    def test_invalid_hand_only(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, hand_rows
    ) -> None:
        weak = HandLandmarks(hand_rows, confidence=0.1)

        response = analyzer.analyze(replace(sample_frame, hands=[weak]))

        assert response.metrics is not None
        assert response.metrics.hands_detected_count == 0
        assert response.explanations["hands"] == "low_confidence"
        assert "Hand validation failed: low_confidence" in response.warnings

    def test_counts_only_valid_hands(
        self, analyzer: FrameAnalyzer, sample_frame: FrameInput, sample_hand, hand_rows
    ) -> None:
        partial = HandLandmarks(hand_rows[:8], confidence=0.9, handedness="Left")

        response = analyzer.analyze(replace(sample_frame, hands=[sample_hand, partial]))

        assert response.metrics is not None
        assert response.metrics.hands_detected_count == 1
        # Every detected hand is kept for the next frame
        assert len(response.next_state.hand_landmarks) == 2

    @pytest.mark.parametrize("weak_first", [True, False])
    def test_rejected_hand_keeps_pairing_aligned(
        self,
        analyzer: FrameAnalyzer,
        sample_frame: FrameInput,
        sample_hand: HandLandmarks,
        hand_rows,
        shift,
        weak_first: bool,
    ) -> None:
        """A still frame replayed against its own state shows no hand motion."""
        weak = HandLandmarks(shift(hand_rows, dx=-0.3), confidence=0.2, handedness="Left")
        hands = [weak, sample_hand] if weak_first else [sample_hand, weak]
        frame = replace(sample_frame, hands=hands)

        first = analyzer.analyze(frame, timestamp=0.0)
        second = analyzer.analyze(frame, first.next_state, timestamp=100.0)

        assert second.metrics is not None
        assert second.metrics.hands_detected_count == 1
        assert second.metrics.hand_activity_normalized == 0.0
        assert second.explanations["hand_activity"] == "success"

    def test_valid_hand_compared_with_its_own_slot(
        self,
        analyzer: FrameAnalyzer,
        sample_frame: FrameInput,
        sample_hand: HandLandmarks,
        hand_rows,
        shift,
    ) -> None:
        weak = HandLandmarks(shift(hand_rows, dx=-0.3), confidence=0.2, handedness="Left")
        previous = PreviousState(
            hand_landmarks=[weak.landmarks, shift(hand_rows, dx=0.01)], timestamp=0.0
        )

        response = analyzer.analyze(replace(sample_frame, hands=[weak, sample_hand]), previous)

        assert response.metrics is not None
        assert response.metrics.hand_activity_normalized == pytest.approx(0.01)


class TestAnalyzeFrame:
    """Tests for the request-level wrapper."""

    def test_missing_landmarks(self, analyzer: FrameAnalyzer) -> None:
        response = analyze_frame(FrameRequest(landmarks=None, timestamp=7.0), analyzer)

        assert response.metrics is None
        assert response.explanations == {"error": "missing_landmarks"}
        assert response.warnings == ["No landmark data provided"]
        assert response.next_state.timestamp == 7.0

    def test_state_round_trip(self, analyzer: FrameAnalyzer, sample_frame: FrameInput) -> None:
        first = analyze_frame(FrameRequest(sample_frame, timestamp=0.0), analyzer)
        second = analyze_frame(
            FrameRequest(sample_frame, timestamp=100.0, previous_state=first.next_state),
            analyzer,
        )

        assert second.metrics is not None
        assert second.metrics.head_movement_normalized == 0.0
        assert second.explanations["head_movement"] == "success"
