"""MediaPipe face, hand and pose landmark extraction using the Tasks API."""

from __future__ import annotations

import urllib.request
from pathlib import Path
from typing import Any

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision
from numpy.typing import NDArray

from gd_analyzer.core.config import DetectorSettings
from gd_analyzer.core.exceptions import LandmarkExtractionError
from gd_analyzer.core.logging import get_logger
from gd_analyzer.core.types import FrameInput
from gd_analyzer.vision.conversion import build_frame_input

logger = get_logger(__name__)

MODEL_BASE_URL = "https://storage.googleapis.com/mediapipe-models"
MODEL_URLS = {
    "face_landmarker.task": f"{MODEL_BASE_URL}/face_landmarker/face_landmarker/float16/1/face_landmarker.task",
    "hand_landmarker.task": f"{MODEL_BASE_URL}/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task",
    "pose_landmarker_lite.task": f"{MODEL_BASE_URL}/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task",
}


def _download_model(name: str, model_dir: Path) -> Path:
    """Download a landmarker model if not present.

    Returns:
        Path to the model file

    Raises:
        LandmarkExtractionError: If download fails
    """
    model_path = model_dir / name
    if model_path.exists():
        return model_path

    logger.info("Downloading MediaPipe model %s...", name)
    model_dir.mkdir(parents=True, exist_ok=True)

    try:
        urllib.request.urlretrieve(MODEL_URLS[name], model_path)
        logger.info("Model downloaded to %s", model_path)
        return model_path
    except Exception as e:
        raise LandmarkExtractionError(f"Failed to download model {name}: {e}") from e


class LandmarkExtractor:
    """Runs the MediaPipe face, hand and pose landmarkers on video frames.

    Produces FrameInput values so MediaPipe objects never reach the
    analyzer. Each landmarker failing on a frame only drops its own group.
    """

    def __init__(self, settings: DetectorSettings | None = None) -> None:
        """Initialize extractor with settings.

        Args:
            settings: Detector settings (uses defaults if None)
        """
        self.settings = settings or DetectorSettings()
        self._face: vision.FaceLandmarker | None = None
        self._hands: vision.HandLandmarker | None = None
        self._pose: vision.PoseLandmarker | None = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the MediaPipe models are loaded."""
        return self._initialized

    def initialize(self) -> None:
        """Load all three MediaPipe landmarkers.

        Raises:
            LandmarkExtractionError: If a model fails to load
        """
        model_dir = Path(self.settings.model_dir)
        cfg = self.settings

        try:
            self._face = vision.FaceLandmarker.create_from_options(
                vision.FaceLandmarkerOptions(
                    base_options=python.BaseOptions(
                        model_asset_path=str(_download_model("face_landmarker.task", model_dir))
                    ),
                    running_mode=vision.RunningMode.VIDEO,
                    num_faces=1,
                    min_face_detection_confidence=cfg.min_detection_confidence,
                    min_face_presence_confidence=cfg.min_presence_confidence,
                    min_tracking_confidence=cfg.min_tracking_confidence,
                )
            )
            self._hands = vision.HandLandmarker.create_from_options(
                vision.HandLandmarkerOptions(
                    base_options=python.BaseOptions(
                        model_asset_path=str(_download_model("hand_landmarker.task", model_dir))
                    ),
                    running_mode=vision.RunningMode.VIDEO,
                    num_hands=cfg.num_hands,
                    min_hand_detection_confidence=cfg.min_detection_confidence,
                    min_hand_presence_confidence=cfg.min_presence_confidence,
                    min_tracking_confidence=cfg.min_tracking_confidence,
                )
            )
            self._pose = vision.PoseLandmarker.create_from_options(
                vision.PoseLandmarkerOptions(
                    base_options=python.BaseOptions(
                        model_asset_path=str(_download_model("pose_landmarker_lite.task", model_dir))
                    ),
                    running_mode=vision.RunningMode.VIDEO,
                    num_poses=1,
                    min_pose_detection_confidence=cfg.min_detection_confidence,
                    min_pose_presence_confidence=cfg.min_presence_confidence,
                    min_tracking_confidence=cfg.min_tracking_confidence,
                )
            )
            self._initialized = True
            logger.info("MediaPipe landmarkers initialized (Tasks API)")

        except LandmarkExtractionError:
            raise
        except Exception as e:
            raise LandmarkExtractionError(f"Failed to initialize MediaPipe: {e}") from e

    def close(self) -> None:
        """Release MediaPipe resources."""
        for landmarker in (self._face, self._hands, self._pose):
            if landmarker is not None:
                landmarker.close()
        self._face = self._hands = self._pose = None
        self._initialized = False

    def extract(self, image: NDArray[np.uint8], timestamp_ms: int) -> FrameInput:
        """Run all landmarkers on a BGR frame.

        Args:
            image: BGR image array (OpenCV format)
            timestamp_ms: Monotonically increasing frame timestamp

        Returns:
            FrameInput for the analyzer

        Raises:
            LandmarkExtractionError: If the frame cannot be converted
        """
        if not self._initialized:
            self.initialize()

        try:
            rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
            mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_image)
        except Exception as e:
            raise LandmarkExtractionError(f"Frame conversion failed: {e}") from e

        height, width = image.shape[:2]
        return build_frame_input(
            self._detect(self._face, mp_image, timestamp_ms, "face"),
            self._detect(self._hands, mp_image, timestamp_ms, "hand"),
            self._detect(self._pose, mp_image, timestamp_ms, "pose"),
            width=int(width),
            height=int(height),
            settings=self.settings,
        )

    def _detect(self, landmarker: Any, mp_image: mp.Image, timestamp_ms: int, name: str) -> Any:
        if landmarker is None:
            return None
        try:
            return landmarker.detect_for_video(mp_image, timestamp_ms)
        except Exception as e:
            logger.warning("%s detection failed: %s", name.capitalize(), e)
            return None

    def __enter__(self) -> LandmarkExtractor:
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()
