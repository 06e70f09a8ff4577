from __future__ import annotations

from dataclasses import dataclass

from ..camera.camera import FacingMode
from ..volume.estimation import Unit


@dataclass(frozen=True)
class PipelineSettings:
    accepted_labels: tuple[str, ...] = ("cup", "wine glass")
    score_threshold: float = 0.5
    capacity_ml: float = 350.0
    poll_interval: float = 1.0
    confidence_debounce: float = 0.25
    glass_shape: str = "Cylinder"
    model_path: str = "yolov8n.pt"
    device: str | None = None
    frame_width: int = 1280
    frame_height: int = 720
    target_fps: float = 30.0
    initial_unit: Unit = Unit.ML
    initial_facing_mode: FacingMode = FacingMode.ENVIRONMENT
    initial_level: float = 50.0
    detection_enabled: bool = True

    def __post_init__(self) -> None:
        if not self.accepted_labels:
            raise ValueError("At least one accepted label is required")
        if not (0 <= self.score_threshold < 1):
            raise ValueError("Score threshold must be within [0, 1)")
        if self.capacity_ml <= 0:
            raise ValueError("Capacity must be positive")
        if self.poll_interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self.confidence_debounce < 0:
            raise ValueError("Confidence debounce cannot be negative")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError("Frame dimensions must be positive")
        if self.target_fps <= 0:
            raise ValueError("Target FPS must be positive")
        if not (0 <= self.initial_level <= 100):
            raise ValueError("Initial level must be within [0, 100]")
