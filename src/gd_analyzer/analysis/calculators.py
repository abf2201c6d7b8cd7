"""Per-frame metric calculators.

This module is pure logic with NO I/O. Every calculator is a pure function:
the same landmark input always gives the same output, and each returns None
when the geometry cannot support a meaningful number.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from gd_analyzer.core.config import ScoringSettings, ValidationSettings
from gd_analyzer.core.types import (
    FaceIndex,
    FaceLandmarks,
    HandLandmarks,
    Landmark,
    PoseIndex,
    PoseLandmarks,
    Rows,
    landmark_at,
)

_DEFAULT_SCORING = ScoringSettings()
_DEFAULT_VALIDATION = ValidationSettings()

# Landmarks that stay rigid relative to the skull
HEAD_MOTION_INDICES = (
    FaceIndex.NOSE_TIP,
    FaceIndex.LEFT_EYE_OUTER,
    FaceIndex.RIGHT_EYE_OUTER,
    FaceIndex.CHIN,
    FaceIndex.FOREHEAD,
)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward positive infinity.

    Python's round() uses banker's rounding; scores here must round the same
    way the browser client does.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def calculate_attention(
    face: FaceLandmarks | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Estimate attention from head yaw and pitch.

    Yaw comes from the nose tip's horizontal offset from the outer-eye
    midpoint, pitch from its vertical position along the forehead-chin
    axis. The larger of the two penalties is used so that a side turn and
    a downward glance do not stack.

    Args:
        face: Validated face landmarks
        settings: Scoring coefficients

    Returns:
        Attention percentage [0, 100] with one decimal, or None for a
        degenerate or profile detection
    """
    cfg = settings or _DEFAULT_SCORING
    if face is None:
        return None

    nose = face.get(FaceIndex.NOSE_TIP)
    left_eye = face.get(FaceIndex.LEFT_EYE_OUTER)
    right_eye = face.get(FaceIndex.RIGHT_EYE_OUTER)
    chin = face.get(FaceIndex.CHIN)
    forehead = face.get(FaceIndex.FOREHEAD)

    if nose is None or left_eye is None or right_eye is None or chin is None or forehead is None:
        return None

    eye_center_x = (left_eye.x + right_eye.x) / 2
    eye_width = abs(right_eye.x - left_eye.x)
    if eye_width < cfg.min_normalizer:
        return None

    yaw = (nose.x - eye_center_x) / eye_width * cfg.yaw_scale_deg

    face_height = abs(chin.y - forehead.y)
    if face_height < cfg.min_normalizer:
        return None

    nose_vertical = (nose.y - forehead.y) / face_height
    pitch = (nose_vertical - 0.5) * cfg.pitch_scale_deg

    yaw_penalty = min(abs(yaw) / cfg.max_attention_angle, 1.0)
    pitch_penalty = min(abs(pitch) / cfg.max_attention_angle, 1.0)

    attention = max(0.0, (1.0 - max(yaw_penalty, pitch_penalty)) * 100.0)
    return round_half_up(attention, 1)


def calculate_eye_contact(
    face: FaceLandmarks | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Weight attention by how open the eyes appear.

    Derived from calculate_attention so the two stay consistent: returns
    None whenever attention is None, and otherwise lies between half the
    attention value and the attention value itself.
    """
    cfg = settings or _DEFAULT_SCORING
    if face is None:
        return None

    left_inner = face.get(FaceIndex.LEFT_EYE_INNER)
    left_outer = face.get(FaceIndex.LEFT_EYE_OUTER)
    right_inner = face.get(FaceIndex.RIGHT_EYE_INNER)
    right_outer = face.get(FaceIndex.RIGHT_EYE_OUTER)

    if left_inner is None or left_outer is None or right_inner is None or right_outer is None:
        return None

    attention = calculate_attention(face, cfg)
    if attention is None:
        return None

    left_width = abs(left_outer.x - left_inner.x)
    right_width = abs(right_outer.x - right_inner.x)

    reference = cfg.eye_reference_width
    visibility = min(left_width + right_width, reference) / reference
    eye_contact = attention * max(cfg.min_eye_visibility, visibility)

    return round_half_up(eye_contact, 1)


def calculate_head_movement(
    current_face: FaceLandmarks | None,
    previous_face: Rows | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Average displacement of rigid head landmarks since the previous frame.

    Args:
        current_face: Validated face landmarks for this frame
        previous_face: Raw face rows from the previous frame

    Returns:
        Movement normalized to [0, 1] with three decimals, or None when the
        frames cannot be compared
    """
    cfg = settings or _DEFAULT_SCORING
    if current_face is None or not current_face.landmarks or previous_face is None:
        return None

    current = current_face.landmarks
    if len(current) < cfg.min_motion_landmarks or len(previous_face) < cfg.min_motion_landmarks:
        return None

    average = _mean_displacement(
        (current_face.get(idx), landmark_at(previous_face, idx)) for idx in HEAD_MOTION_INDICES
    )
    if average is None:
        return None

    normalized = min(average / cfg.max_head_movement, 1.0)
    return round_half_up(normalized, 3)


def calculate_tilt_between(
    left: Landmark | None,
    right: Landmark | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Angle of the line from ``left`` to ``right`` in degrees.

    Shared by the shoulder measurement and the ear-based estimate.
    Returns None when the points are too close horizontally for a stable
    angle.
    """
    cfg = settings or _DEFAULT_SCORING
    if left is None or right is None:
        return None

    dy = right.y - left.y
    dx = right.x - left.x
    if abs(dx) < cfg.min_normalizer:
        return None

    angle = math.degrees(math.atan2(dy, dx))
    capped = max(-cfg.max_shoulder_tilt, min(cfg.max_shoulder_tilt, angle))
    return round_half_up(capped, 1)


def calculate_shoulder_tilt(
    pose: PoseLandmarks | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Shoulder line angle in degrees, clamped to the configured maximum."""
    cfg = settings or _DEFAULT_SCORING
    if pose is None:
        return None

    left = pose.get(PoseIndex.LEFT_SHOULDER)
    right = pose.get(PoseIndex.RIGHT_SHOULDER)
    if left is None or right is None:
        return None

    for shoulder in (left, right):
        if shoulder.visibility is not None and shoulder.visibility < cfg.min_tilt_visibility:
            return None

    return calculate_tilt_between(left, right, cfg)


def calculate_posture_score(
    shoulder_tilt: float | None,
    settings: ScoringSettings | None = None,
) -> int | None:
    """Posture score (100 = level shoulders) derived purely from tilt."""
    cfg = settings or _DEFAULT_SCORING
    if shoulder_tilt is None:
        return None

    deviation = abs(shoulder_tilt - cfg.ideal_shoulder_tilt)
    score = max(0.0, 100.0 - deviation * cfg.posture_penalty_per_degree)
    return int(round_half_up(score))


def calculate_hand_activity(
    current_hands: Sequence[HandLandmarks | None] | None,
    previous_hands: Sequence[Rows] | None,
    settings: ScoringSettings | None = None,
) -> float | None:
    """Average per-landmark hand displacement since the previous frame.

    Hands are paired by position in the list. A None entry holds the slot
    of a rejected hand so later hands stay aligned with the previous frame.

    Returns:
        None when no hands are present, 0.0 on the first frame with hands,
        otherwise activity normalized to [0, 1] with three decimals (None
        if no landmark pair could be compared)
    """
    cfg = settings or _DEFAULT_SCORING
    if not current_hands or all(hand is None for hand in current_hands):
        return None

    if not previous_hands:
        return 0.0

    pairs: list[tuple[Landmark | None, Landmark | None]] = []
    for hand, previous in zip(current_hands, previous_hands):
        if hand is None or not hand.landmarks or not previous:
            continue
        for current_row, previous_row in zip(hand.landmarks, previous):
            pairs.append((Landmark.from_row(current_row), Landmark.from_row(previous_row)))

    average = _mean_displacement(pairs)
    if average is None:
        return None

    normalized = min(average / cfg.max_hand_activity, 1.0)
    return round_half_up(normalized, 3)


def calculate_expression_score(
    face: FaceLandmarks | None,
    settings: ScoringSettings | None = None,
) -> int | None:
    """Rough engagement proxy from mouth openness and corner lift.

    This is a heuristic, not facial expression recognition: a neutral
    baseline plus capped contributions for an open mouth and for mouth
    corners raised above the lip centre.
    """
    cfg = settings or _DEFAULT_SCORING
    if face is None:
        return None

    upper_lip = face.get(FaceIndex.UPPER_LIP)
    lower_lip = face.get(FaceIndex.LOWER_LIP)
    left_mouth = face.get(FaceIndex.LEFT_MOUTH)
    right_mouth = face.get(FaceIndex.RIGHT_MOUTH)

    if upper_lip is None or lower_lip is None or left_mouth is None or right_mouth is None:
        return None

    mouth_width = abs(right_mouth.x - left_mouth.x)
    if mouth_width < cfg.min_normalizer:
        return None

    mouth_open = abs(lower_lip.y - upper_lip.y)

    # Image y grows downward: raised corners sit above the lip centre
    corners_y = (left_mouth.y + right_mouth.y) / 2
    lips_y = (upper_lip.y + lower_lip.y) / 2
    smile = max(0.0, lips_y - corners_y)

    open_score = min(mouth_open / cfg.mouth_open_threshold, 1.0) * cfg.mouth_open_weight
    smile_score = min(smile / cfg.smile_threshold, 1.0) * cfg.smile_weight

    total = min(100.0, cfg.expression_baseline + open_score + smile_score)
    return int(round_half_up(total))


def count_valid_hands(
    hands: Sequence[HandLandmarks] | None,
    settings: ValidationSettings | None = None,
) -> int:
    """Count hands clearing the same confidence and size floors as validation."""
    cfg = settings or _DEFAULT_VALIDATION
    if not hands:
        return 0

    return sum(
        1
        for hand in hands
        if hand.confidence >= cfg.min_hand_confidence
        and hand.landmarks
        and len(hand.landmarks) >= cfg.min_hand_landmarks
    )


def _mean_displacement(
    pairs: Iterable[tuple[Landmark | None, Landmark | None]],
) -> float | None:
    """Mean Euclidean distance over pairs where both points exist."""
    total = 0.0
    compared = 0
    for current, previous in pairs:
        if current is None or previous is None:
            continue
        total += math.hypot(current.x - previous.x, current.y - previous.y)
        compared += 1

    if compared == 0:
        return None
    return total / compared
