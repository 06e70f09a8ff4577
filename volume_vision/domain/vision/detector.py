from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, Sequence

from ..camera.camera import Frame
from .model import RawDetection


class ObjectDetector(ABC):
    """Locates labelled objects on a frame."""

    @abstractmethod
    def labels(self) -> Sequence[str]:
        raise NotImplementedError

    @abstractmethod
    def detect(self, frame: Frame) -> Sequence[RawDetection]:
        """Return every prediction on ``frame``; raises ``DetectionCallError`` on failure."""
        raise NotImplementedError


class DetectorFactory(Protocol):
    def create(self, model_path: str, device: str | None = None) -> ObjectDetector:
        """Load a detector, raising ``ModelUnavailableError`` if it cannot be initialised."""
        ...
