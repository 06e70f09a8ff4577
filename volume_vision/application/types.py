from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..domain.camera.camera import FacingMode
from ..domain.confidence.service import ConfidenceResult
from ..domain.events import Notice
from ..domain.session.state import PermissionStatus
from ..domain.vision.model import DetectedObject
from ..domain.volume.estimation import Unit


@dataclass(frozen=True)
class SessionSnapshot:
    permission_status: PermissionStatus
    detection_enabled: bool
    facing_mode: FacingMode
    unit: Unit
    simulated_level: float
    detections: Sequence[DetectedObject]
    confidence: ConfidenceResult | None
    liquid_level: float
    volume_ml: float
    display_volume: float
    model_ready: bool
    polling: bool
    alert: Notice | None
    notices: Sequence[Notice]

    @property
    def is_simulating(self) -> bool:
        return not self.detections

    @property
    def confidence_band(self) -> str | None:
        if self.confidence is None:
            return None
        return self.confidence.band

    @property
    def analysis_message(self) -> str:
        if self.confidence is not None:
            return self.confidence.reasoning
        if not self.detection_enabled:
            return "Enable detection to see AI analysis."
        if self.permission_status is PermissionStatus.GRANTED:
            return "Point the camera at a glass."
        return "Camera not available."

    def describe(self) -> str:
        confidence = "n/a" if self.confidence is None else f"{self.confidence.score * 100:.0f}%"
        source = "simulated" if self.is_simulating else self.detections[0].label
        return (
            f"level={self.liquid_level:.0f}% volume={self.display_volume:.0f} {self.unit.value} "
            f"source={source} confidence={confidence}"
        )
