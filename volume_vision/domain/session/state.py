from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..camera.camera import FacingMode
from ..confidence.service import ConfidenceResult
from ..vision.model import DetectedObject
from ..volume.estimation import Unit


class PermissionStatus(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class SessionState:
    """Mutable fields of one live session; owned and locked by ``LiveSession``."""

    permission_status: PermissionStatus = PermissionStatus.UNKNOWN
    detection_enabled: bool = True
    facing_mode: FacingMode = FacingMode.ENVIRONMENT
    unit: Unit = Unit.ML
    simulated_level: float = 50.0
    detections: tuple[DetectedObject, ...] = ()
    confidence: ConfidenceResult | None = None
    model_ready: bool = False
