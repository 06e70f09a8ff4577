from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .confidence.service import ConfidenceResult
from .vision.model import DetectedObject


@dataclass(frozen=True)
class DetectionsPublished:
    detections: Sequence[DetectedObject]
    generation: int = 0


@dataclass(frozen=True)
class ConfidencePublished:
    result: ConfidenceResult | None
    sequence: int


@dataclass(frozen=True)
class Notice:
    level: str  # "info" | "error"
    title: str
    message: str
    persistent: bool = False


@dataclass(frozen=True)
class DeviceStateChanged:
    description: str


@dataclass(frozen=True)
class ErrorRaised:
    message: str
    exception: Exception | None = None
