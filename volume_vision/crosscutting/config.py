"""Application configuration loading helpers."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.camera.camera import FacingMode
from ..domain.settings.settings import PipelineSettings
from ..domain.volume.estimation import Unit


class AppSettings(BaseSettings):
    """Runtime configuration values.

    Values are read from environment variables with the ``VV_`` prefix, or from a
    local ``.env`` file. List values such as ``VV_ACCEPTED_LABELS`` are JSON encoded.
    """

    model_config = SettingsConfigDict(env_prefix="VV_", env_file=".env", extra="ignore")

    accepted_labels: tuple[str, ...] = ("cup", "wine glass")
    score_threshold: float = Field(0.5, ge=0.0, lt=1.0)
    capacity_ml: float = Field(350.0, gt=0.0)
    poll_interval: float = Field(1.0, gt=0.0)
    confidence_debounce: float = Field(0.25, ge=0.0)
    glass_shape: str = "Cylinder"

    detector_backend: Literal["yolo", "openai"] = "yolo"
    model_path: str = "yolov8n.pt"
    device: str | None = None

    camera_index_environment: int = 0
    camera_index_user: int = 1
    frame_width: int = Field(1280, gt=0)
    frame_height: int = Field(720, gt=0)
    target_fps: float = Field(30.0, gt=0.0)

    openai_model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    openai_timeout: float = Field(20.0, gt=0.0)

    initial_unit: Unit = Unit.ML
    initial_facing_mode: FacingMode = FacingMode.ENVIRONMENT
    initial_level: float = Field(50.0, ge=0.0, le=100.0)
    detection_enabled: bool = True

    log_level: str = "INFO"

    def camera_indices(self) -> dict[FacingMode, int]:
        return {
            FacingMode.ENVIRONMENT: self.camera_index_environment,
            FacingMode.USER: self.camera_index_user,
        }

    def pipeline(self) -> PipelineSettings:
        return PipelineSettings(
            accepted_labels=tuple(self.accepted_labels),
            score_threshold=self.score_threshold,
            capacity_ml=self.capacity_ml,
            poll_interval=self.poll_interval,
            confidence_debounce=self.confidence_debounce,
            glass_shape=self.glass_shape,
            model_path=self.openai_model if self.detector_backend == "openai" else self.model_path,
            device=self.device,
            frame_width=self.frame_width,
            frame_height=self.frame_height,
            target_fps=self.target_fps,
            initial_unit=self.initial_unit,
            initial_facing_mode=self.initial_facing_mode,
            initial_level=self.initial_level,
            detection_enabled=self.detection_enabled,
        )


def load_settings(**overrides: object) -> AppSettings:
    """Load configuration values from the current environment."""

    return AppSettings(**overrides)


__all__ = ["AppSettings", "load_settings"]
