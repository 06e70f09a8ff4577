from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from .camera import FacingMode, Frame, Resolution


class CameraStream(Protocol):
    def read(self) -> Frame | None:
        """Return the latest frame from the stream or ``None`` if unavailable."""

    def close(self) -> None:
        """Release the underlying camera resources."""


class CameraRepository(ABC):
    """Opens the camera that faces the requested direction."""

    @abstractmethod
    def open(self, facing_mode: FacingMode, resolution: Resolution, target_fps: float) -> CameraStream:
        """Acquire a stream, raising ``CameraPermissionError`` when access is refused."""
        raise NotImplementedError
