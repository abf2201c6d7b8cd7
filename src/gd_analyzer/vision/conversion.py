"""Conversion of MediaPipe landmarker results to FrameInput.

Kept free of MediaPipe imports: results are read by attribute only, so
MediaPipe objects never leak past this module.
"""

from __future__ import annotations

from typing import Any

from gd_analyzer.core.config import DetectorSettings
from gd_analyzer.core.types import FaceLandmarks, FrameInput, HandLandmarks, PoseLandmarks

# Reported when the detector gives no handedness score
DEFAULT_HAND_CONFIDENCE = 0.9


def face_from_result(result: Any, confidence: float) -> FaceLandmarks | None:
    """Take the first face of a FaceLandmarkerResult as ``[x, y, z]`` rows."""
    faces = getattr(result, "face_landmarks", None)
    if not faces:
        return None

    rows = [[float(lm.x), float(lm.y), float(lm.z or 0.0)] for lm in faces[0]]
    return FaceLandmarks(landmarks=rows, confidence=confidence)


def hands_from_result(result: Any) -> list[HandLandmarks] | None:
    """Convert every hand of a HandLandmarkerResult."""
    hands = getattr(result, "hand_landmarks", None)
    if not hands:
        return None

    handedness = getattr(result, "handedness", None) or []
    converted: list[HandLandmarks] = []
    for idx, hand in enumerate(hands):
        label = "Right"
        score = DEFAULT_HAND_CONFIDENCE
        if idx < len(handedness) and handedness[idx]:
            category = handedness[idx][0]
            if getattr(category, "category_name", None) in ("Left", "Right"):
                label = category.category_name
            if getattr(category, "score", None):
                score = float(category.score)

        converted.append(
            HandLandmarks(
                landmarks=[[float(lm.x), float(lm.y), float(lm.z or 0.0)] for lm in hand],
                confidence=score,
                handedness=label,
            )
        )
    return converted


def pose_from_result(result: Any, confidence: float) -> PoseLandmarks | None:
    """Take the first pose of a PoseLandmarkerResult as ``[x, y, z, visibility]`` rows."""
    poses = getattr(result, "pose_landmarks", None)
    if not poses:
        return None

    rows = []
    for lm in poses[0]:
        visibility = getattr(lm, "visibility", None)
        rows.append(
            [
                float(lm.x),
                float(lm.y),
                float(lm.z or 0.0),
                float(visibility) if visibility is not None else 1.0,
            ]
        )
    return PoseLandmarks(landmarks=rows, confidence=confidence)


def frame_confidence(face: FaceLandmarks | None, pose: PoseLandmarks | None) -> float:
    """Aggregate frame confidence: a frame without a face is not trusted."""
    if face is None:
        return 0.0
    pose_confidence = pose.confidence if pose is not None else 0.0
    return max(face.confidence, pose_confidence * 0.5)


def build_frame_input(
    face_result: Any,
    hand_result: Any,
    pose_result: Any,
    width: int,
    height: int,
    settings: DetectorSettings | None = None,
) -> FrameInput:
    """Merge the three landmarker results into one FrameInput.

    Any result may be None when that landmarker failed for the frame.
    """
    cfg = settings or DetectorSettings()

    face = face_from_result(face_result, cfg.face_confidence) if face_result is not None else None
    hands = hands_from_result(hand_result) if hand_result is not None else None
    pose = pose_from_result(pose_result, cfg.pose_confidence) if pose_result is not None else None

    return FrameInput(
        frame_confidence=frame_confidence(face, pose),
        face=face,
        hands=hands,
        pose=pose,
        image_width=width,
        image_height=height,
    )
