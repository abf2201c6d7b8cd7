"""Application configuration via Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidationSettings(BaseSettings):
    """Floors used to accept or reject detector output."""

    model_config = SettingsConfigDict(env_prefix="VALIDATION_")

    min_frame_confidence: float = 0.5
    min_face_confidence: float = 0.5
    min_hand_confidence: float = 0.5
    min_pose_confidence: float = 0.5

    min_face_landmarks: int = 468
    min_hand_landmarks: int = 21
    min_pose_landmarks: int = 33

    min_bbox_area: float = 0.0001
    # Reject faces where >90% of landmarks share a rounded coordinate
    max_uniform_ratio: float = 0.1
    uniform_precision: int = 1000

    min_shoulder_visibility: float = 0.5


class ScoringSettings(BaseSettings):
    """Coefficients for the per-frame metric calculators."""

    model_config = SettingsConfigDict(env_prefix="SCORING_")

    # Attention (degrees)
    max_attention_angle: float = 45.0
    yaw_scale_deg: float = 90.0
    pitch_scale_deg: float = 60.0
    min_normalizer: float = 0.01

    # Eye contact
    eye_reference_width: float = 0.1
    min_eye_visibility: float = 0.5

    # Head movement (normalized units)
    max_head_movement: float = 0.5
    min_motion_landmarks: int = 10

    # Shoulder tilt and posture
    max_shoulder_tilt: float = 45.0
    min_tilt_visibility: float = 0.3
    ideal_shoulder_tilt: float = 0.0
    posture_penalty_per_degree: float = 2.0

    # Hand activity (normalized units)
    max_hand_activity: float = 1.0

    # Expression heuristic
    mouth_open_threshold: float = 0.05
    smile_threshold: float = 0.03
    expression_baseline: float = 30.0
    mouth_open_weight: float = 30.0
    smile_weight: float = 40.0


class FallbackSettings(BaseSettings):
    """Degraded-mode analyzer parameters."""

    model_config = SettingsConfigDict(env_prefix="FALLBACK_")

    default_frame_width: int = 640
    default_frame_height: int = 480
    min_shoulder_visibility: float = 0.5
    reported_confidence: float = 0.5
    min_pose_rows: int = 13
    min_face_rows: int = 264
    min_hand_points: int = 5


class SessionSettings(BaseSettings):
    """Per-session throttling and aggregation."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    min_interval_ms: float = 100.0
    max_tips: int = 5


class DetectorSettings(BaseSettings):
    """MediaPipe landmarker settings."""

    model_config = SettingsConfigDict(env_prefix="DETECTOR_")

    num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    # MediaPipe does not report a per-face or per-pose score
    face_confidence: float = 0.9
    pose_confidence: float = 0.9
    model_dir: str = "data/models"


class ApiSettings(BaseSettings):
    """HTTP service settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    api_key: str | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: str | None = None


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    detector: DetectorSettings = Field(default_factory=DetectorSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings instance."""
    return Settings()
