from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..application.types import SessionSnapshot
from ..domain.camera.camera import FacingMode
from ..domain.events import Notice
from ..domain.session.state import PermissionStatus
from ..domain.volume.estimation import Unit


class DetectedObjectModel(BaseModel):
    """A glass located on the latest frame."""

    label: str = Field(..., description="Detector label, e.g. 'cup' or 'wine glass'.")
    box: list[float] = Field(..., min_length=4, max_length=4, description="[x_min, y_min, x_max, y_max] normalised to the frame.")


class ConfidenceModel(BaseModel):
    score: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    band: str


class NoticeModel(BaseModel):
    level: str
    title: str
    message: str
    persistent: bool = False

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeModel":
        return cls(level=notice.level, title=notice.title, message=notice.message, persistent=notice.persistent)


class SessionSnapshotModel(BaseModel):
    """Everything a display needs for one refresh."""

    permission_status: PermissionStatus
    detection_enabled: bool
    facing_mode: FacingMode
    unit: Unit
    simulated_level: float
    detections: list[DetectedObjectModel]
    confidence: Optional[ConfidenceModel] = None
    liquid_level: float = Field(..., ge=0.0, le=100.0)
    volume_ml: float = Field(..., ge=0.0)
    display_volume: float = Field(..., ge=0.0)
    is_simulating: bool
    model_ready: bool
    polling: bool
    analysis_message: str
    alert: Optional[NoticeModel] = None
    notices: list[NoticeModel] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionSnapshotModel":
        confidence = None
        if snapshot.confidence is not None:
            confidence = ConfidenceModel(
                score=snapshot.confidence.score,
                reasoning=snapshot.confidence.reasoning,
                band=snapshot.confidence.band,
            )
        return cls(
            permission_status=snapshot.permission_status,
            detection_enabled=snapshot.detection_enabled,
            facing_mode=snapshot.facing_mode,
            unit=snapshot.unit,
            simulated_level=snapshot.simulated_level,
            detections=[DetectedObjectModel(label=d.label, box=list(d.box)) for d in snapshot.detections],
            confidence=confidence,
            liquid_level=snapshot.liquid_level,
            volume_ml=snapshot.volume_ml,
            display_volume=snapshot.display_volume,
            is_simulating=snapshot.is_simulating,
            model_ready=snapshot.model_ready,
            polling=snapshot.polling,
            analysis_message=snapshot.analysis_message,
            alert=NoticeModel.from_notice(snapshot.alert) if snapshot.alert else None,
            notices=[NoticeModel.from_notice(n) for n in snapshot.notices],
        )


class DetectionToggleRequestModel(BaseModel):
    enabled: bool


class UnitRequestModel(BaseModel):
    unit: Unit


class FacingModeRequestModel(BaseModel):
    facing_mode: FacingMode


class LevelRequestModel(BaseModel):
    level: float = Field(..., ge=0.0, le=100.0, description="Simulated liquid level in percent.")
