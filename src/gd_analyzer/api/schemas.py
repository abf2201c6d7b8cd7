"""Pydantic wire models for the HTTP service.

Parsing is the only place a request can fail as a whole; everything past
``parse_frame_request`` works on the core dataclasses.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gd_analyzer.analysis.fallback import FallbackPayload
from gd_analyzer.core.exceptions import PayloadError
from gd_analyzer.core.types import (
    FaceLandmarks,
    FrameInput,
    FrameRequest,
    HandLandmarks,
    PoseLandmarks,
    PreviousState,
)

LandmarkRows = list[list[float]]
LoosePointModel = list[float] | dict[str, float | None]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)


class FaceLandmarksModel(_WireModel):
    """Face mesh landmarks as ``[x, y, z]`` rows."""

    landmarks: LandmarkRows
    confidence: float


class HandLandmarksModel(_WireModel):
    """One hand: 21 ``[x, y, z]`` rows with handedness."""

    landmarks: LandmarkRows
    confidence: float
    handedness: Literal["Left", "Right"] = "Right"


class PoseLandmarksModel(_WireModel):
    """Pose landmarks as ``[x, y, z, visibility]`` rows."""

    landmarks: LandmarkRows
    confidence: float


class LandmarkPayload(_WireModel):
    """Detector output for one frame."""

    face: FaceLandmarksModel | None = None
    hands: list[HandLandmarksModel] | None = None
    pose: PoseLandmarksModel | None = None
    frame_confidence: float
    image_width: int = 0
    image_height: int = 0

    def to_frame_input(self) -> FrameInput:
        return FrameInput(
            frame_confidence=self.frame_confidence,
            face=(
                FaceLandmarks(self.face.landmarks, self.face.confidence)
                if self.face is not None
                else None
            ),
            hands=(
                [HandLandmarks(h.landmarks, h.confidence, h.handedness) for h in self.hands]
                if self.hands is not None
                else None
            ),
            pose=(
                PoseLandmarks(self.pose.landmarks, self.pose.confidence)
                if self.pose is not None
                else None
            ),
            image_width=self.image_width,
            image_height=self.image_height,
        )


class PreviousStatePayload(_WireModel):
    """State echoed back by the client from the previous response."""

    face_landmarks: LandmarkRows | None = None
    hand_landmarks: list[LandmarkRows] | None = None
    pose_landmarks: LandmarkRows | None = None
    timestamp: float = 0.0

    def to_state(self) -> PreviousState:
        return PreviousState(
            face_landmarks=self.face_landmarks,
            hand_landmarks=self.hand_landmarks,
            pose_landmarks=self.pose_landmarks,
            timestamp=self.timestamp,
        )


class FrameRequestModel(_WireModel):
    """Body of ``POST /analyze-frame``."""

    landmarks: LandmarkPayload | None = None
    timestamp: float | None = None
    previous_state: PreviousStatePayload | None = None


class FallbackRequestModel(_WireModel):
    """Body of ``POST /analyze-frame/fallback`` (camelCase keys)."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False, populate_by_name=True)

    face_landmarks: list[LoosePointModel] | None = Field(default=None, alias="faceLandmarks")
    pose_landmarks: list[LoosePointModel] | None = Field(default=None, alias="poseLandmarks")
    hands: list[list[LoosePointModel]] | None = None
    frame_width: int | None = Field(default=None, alias="frameWidth")
    frame_height: int | None = Field(default=None, alias="frameHeight")
    timestamp: float | None = None


def parse_frame_request(data: Any, default_timestamp: float = 0.0) -> FrameRequest:
    """Validate a decoded JSON body into a FrameRequest.

    Args:
        data: Decoded JSON body
        default_timestamp: Timestamp used when the body carries none

    Returns:
        FrameRequest with ``landmarks`` None when the body had none

    Raises:
        PayloadError: If the body does not match the request schema
    """
    try:
        model = FrameRequestModel.model_validate(data)
    except ValidationError as e:
        raise PayloadError(f"Invalid frame request: {e.error_count()} validation error(s)") from e

    return FrameRequest(
        landmarks=model.landmarks.to_frame_input() if model.landmarks is not None else None,
        timestamp=model.timestamp if model.timestamp is not None else default_timestamp,
        previous_state=(
            model.previous_state.to_state() if model.previous_state is not None else None
        ),
    )


def parse_fallback_payload(data: Any, default_timestamp: float = 0.0) -> FallbackPayload:
    """Validate a decoded JSON body into a FallbackPayload.

    Raises:
        PayloadError: If the body does not match the loose schema
    """
    try:
        model = FallbackRequestModel.model_validate(data)
    except ValidationError as e:
        raise PayloadError(f"Invalid fallback payload: {e.error_count()} validation error(s)") from e

    return FallbackPayload(
        face_landmarks=model.face_landmarks,
        pose_landmarks=model.pose_landmarks,
        hands=model.hands,
        frame_width=model.frame_width,
        frame_height=model.frame_height,
        timestamp=model.timestamp if model.timestamp is not None else default_timestamp,
    )
