"""Stateless per-frame behaviour analysis.

This module is pure logic with NO I/O. The analyzer holds only its
settings: the previous frame's coordinates are passed in by the caller
and the state for the next frame is handed back in the response.
"""

from __future__ import annotations

from gd_analyzer.analysis.calculators import (
    calculate_attention,
    calculate_expression_score,
    calculate_eye_contact,
    calculate_hand_activity,
    calculate_head_movement,
    calculate_posture_score,
    calculate_shoulder_tilt,
    calculate_tilt_between,
    count_valid_hands,
    round_half_up,
)
from gd_analyzer.analysis.validators import LandmarkValidator
from gd_analyzer.core.config import Settings, get_settings
from gd_analyzer.core.logging import get_logger
from gd_analyzer.core.types import (
    AnalysisMetrics,
    FaceIndex,
    FaceLandmarks,
    FrameInput,
    FrameRequest,
    FrameResponse,
    HandLandmarks,
    PoseLandmarks,
    PreviousState,
)

logger = get_logger(__name__)

SUCCESS = "success"
FIRST_FRAME = "first_frame"
CALCULATION_FAILED = "calculation_failed"
NO_SHOULDER_DATA = "no_shoulder_data"
ESTIMATED_FROM_FACE = "estimated_from_face"
FACE_ESTIMATE_FAILED = "face_estimate_failed"
NO_HANDS = "no_hands_detected"
MISSING_LANDMARKS = "missing_landmarks"


class FrameAnalyzer:
    """Validates and scores one frame of face, pose and hand landmarks.

    Each landmark group is validated first; a group that fails validation
    never reaches its calculators. Results are merged into one metrics
    record with a per-computation explanation and accumulated warnings.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize analyzer with settings.

        Args:
            settings: Application settings (uses cached defaults if None)
        """
        self.settings = settings or get_settings()
        self.validator = LandmarkValidator(self.settings.validation)

    def analyze(
        self,
        frame: FrameInput,
        previous_state: PreviousState | None = None,
        timestamp: float = 0.0,
    ) -> FrameResponse:
        """Analyze a single frame.

        Args:
            frame: Detector output for this frame
            previous_state: State returned by the previous call, if any
            timestamp: Caller timestamp, passed through to the next state

        Returns:
            FrameResponse with nullable metrics, explanations and next state
        """
        frame_check = self.validator.validate_frame(frame.frame_confidence)
        if not frame_check.valid:
            logger.debug("Frame rejected: %s", frame_check.reason)
            return FrameResponse.empty(
                timestamp,
                explanations={"frame": frame_check.reason},
                warnings=["Frame confidence below threshold"],
                frame_confidence=frame.frame_confidence,
            )

        metrics = AnalysisMetrics()
        explanations: dict[str, str] = {}
        warnings: list[str] = []

        face_valid = self._analyze_face(frame.face, previous_state, metrics, explanations, warnings)
        self._analyze_pose(
            frame.pose,
            frame.face if face_valid else None,
            metrics,
            explanations,
            warnings,
        )
        self._analyze_hands(frame.hands, previous_state, metrics, explanations, warnings)

        logger.debug(
            "Frame analyzed: attention=%s posture=%s hands=%s warnings=%d",
            metrics.attention_percent,
            metrics.posture_score,
            metrics.hands_detected_count,
            len(warnings),
        )

        return FrameResponse(
            metrics=metrics,
            frame_confidence=frame.frame_confidence,
            explanations=explanations,
            warnings=warnings,
            next_state=build_next_state(frame, timestamp),
        )

    def _analyze_face(
        self,
        face: FaceLandmarks | None,
        previous_state: PreviousState | None,
        metrics: AnalysisMetrics,
        explanations: dict[str, str],
        warnings: list[str],
    ) -> bool:
        """Run face calculators. Returns whether the face validated."""
        check = self.validator.validate_face(face)
        if not check.valid or face is None:
            explanations["face"] = check.reason
            warnings.append(f"Face validation failed: {check.reason}")
            return False

        scoring = self.settings.scoring

        attention = calculate_attention(face, scoring)
        metrics.attention_percent = attention
        explanations["attention"] = SUCCESS if attention is not None else CALCULATION_FAILED

        eye_contact = calculate_eye_contact(face, scoring)
        if eye_contact is not None:
            metrics.eye_contact_score = int(round_half_up(eye_contact))
            explanations["eye_contact"] = SUCCESS
        else:
            explanations["eye_contact"] = CALCULATION_FAILED

        expression = calculate_expression_score(face, scoring)
        metrics.expression_score = expression
        explanations["expression"] = SUCCESS if expression is not None else CALCULATION_FAILED

        previous_face = previous_state.face_landmarks if previous_state is not None else None
        if previous_face is None:
            metrics.head_movement_normalized = 0.0
            explanations["head_movement"] = FIRST_FRAME
        else:
            movement = calculate_head_movement(face, previous_face, scoring)
            metrics.head_movement_normalized = movement
            explanations["head_movement"] = SUCCESS if movement is not None else CALCULATION_FAILED

        return True

    def _analyze_pose(
        self,
        pose: PoseLandmarks | None,
        validated_face: FaceLandmarks | None,
        metrics: AnalysisMetrics,
        explanations: dict[str, str],
        warnings: list[str],
    ) -> None:
        """Run pose calculators, or the ear-based estimate when pose is unusable."""
        scoring = self.settings.scoring
        check = self.validator.validate_pose(pose)

        if check.valid and pose is not None:
            tilt = calculate_shoulder_tilt(pose, scoring)
            if tilt is None:
                explanations["shoulder_tilt"] = CALCULATION_FAILED
                explanations["posture"] = NO_SHOULDER_DATA
                return

            metrics.shoulder_tilt_deg = tilt
            metrics.posture_score = calculate_posture_score(tilt, scoring)
            explanations["shoulder_tilt"] = SUCCESS
            explanations["posture"] = SUCCESS
            return

        explanations["pose"] = check.reason
        warnings.append(f"Pose validation failed: {check.reason}")

        if validated_face is None:
            return

        tilt = calculate_tilt_between(
            validated_face.get(FaceIndex.LEFT_EAR),
            validated_face.get(FaceIndex.RIGHT_EAR),
            scoring,
        )
        if tilt is None:
            explanations["posture"] = FACE_ESTIMATE_FAILED
            return

        metrics.shoulder_tilt_deg = tilt
        metrics.posture_score = calculate_posture_score(tilt, scoring)
        explanations["shoulder_tilt"] = ESTIMATED_FROM_FACE
        explanations["posture"] = ESTIMATED_FROM_FACE
        warnings.append("Posture estimated from face landmarks (pose not available)")

    def _analyze_hands(
        self,
        hands: list[HandLandmarks] | None,
        previous_state: PreviousState | None,
        metrics: AnalysisMetrics,
        explanations: dict[str, str],
        warnings: list[str],
    ) -> None:
        """Validate each hand and compute activity over the valid ones."""
        if not hands:
            metrics.hands_detected_count = 0
            explanations["hands"] = NO_HANDS
            return

        # Rejected hands keep their slot so pairing matches next_state order
        slots: list[HandLandmarks | None] = []
        first_failure: str | None = None
        for hand in hands:
            check = self.validator.validate_hand(hand)
            if check.valid:
                slots.append(hand)
            else:
                slots.append(None)
                if first_failure is None:
                    first_failure = check.reason

        valid_hands = [hand for hand in slots if hand is not None]
        # Re-counted against the validation floors so the two cannot drift
        metrics.hands_detected_count = count_valid_hands(valid_hands, self.settings.validation)

        if not valid_hands:
            reason = first_failure or NO_HANDS
            explanations["hands"] = reason
            warnings.append(f"Hand validation failed: {reason}")
            return

        explanations["hands"] = SUCCESS

        previous_hands = previous_state.hand_landmarks if previous_state is not None else None
        if not previous_hands:
            metrics.hand_activity_normalized = 0.0
            explanations["hand_activity"] = FIRST_FRAME
            return

        activity = calculate_hand_activity(slots, previous_hands, self.settings.scoring)
        metrics.hand_activity_normalized = activity
        explanations["hand_activity"] = SUCCESS if activity is not None else CALCULATION_FAILED


def build_next_state(frame: FrameInput, timestamp: float) -> PreviousState:
    """Collect raw coordinates of every group present, validated or not."""
    return PreviousState(
        face_landmarks=frame.face.landmarks if frame.face is not None else None,
        hand_landmarks=[hand.landmarks for hand in frame.hands] if frame.hands is not None else None,
        pose_landmarks=frame.pose.landmarks if frame.pose is not None else None,
        timestamp=timestamp,
    )


def analyze_frame(
    request: FrameRequest,
    analyzer: FrameAnalyzer | None = None,
) -> FrameResponse:
    """Analyze a decoded frame request.

    A request without landmarks gets the all-null response rather than an
    error. Its next state carries the request timestamp; the HTTP layer
    fills that with the arrival time when the body has none.

    Args:
        request: Decoded request
        analyzer: Analyzer to use (default settings if None)

    Returns:
        FrameResponse for the frame
    """
    if request.landmarks is None:
        return FrameResponse.empty(
            request.timestamp,
            explanations={"error": MISSING_LANDMARKS},
            warnings=["No landmark data provided"],
        )

    analyzer = analyzer or FrameAnalyzer()
    return analyzer.analyze(request.landmarks, request.previous_state, request.timestamp)
