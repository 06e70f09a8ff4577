"""Fakes shared by the unit and integration tests."""

from __future__ import annotations

import threading
import time
from typing import Callable, Sequence

import numpy as np

from volume_vision.domain.camera.camera import FacingMode, Frame, Resolution
from volume_vision.domain.camera.camera_repository import CameraRepository
from volume_vision.domain.confidence.service import ConfidenceRequest, ConfidenceResult
from volume_vision.domain.vision.detector import ObjectDetector
from volume_vision.domain.vision.model import RawDetection
from volume_vision.shared.errors import CameraPermissionError, ModelUnavailableError

FRAME_WIDTH = 200
FRAME_HEIGHT = 100


def make_frame(width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> Frame:
    return Frame(data=np.zeros((height, width, 3), dtype=np.uint8), timestamp=time.time())


def glass(label: str = "cup", score: float = 0.9, bbox=(50.0, 10.0, 50.0, 80.0)) -> RawDetection:
    # On a 200x100 frame the default box normalises to (0.25, 0.1, 0.5, 0.9).
    return RawDetection(label=label, score=score, bbox=bbox)


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeStream:
    def __init__(self, facing_mode: FacingMode, events: list[str]) -> None:
        self.facing_mode = facing_mode
        self.close_calls = 0
        self._events = events

    def read(self) -> Frame | None:
        if self.close_calls:
            return None
        return make_frame()

    def close(self) -> None:
        self.close_calls += 1
        self._events.append(f"close:{self.facing_mode.value}")


class FakeCameraRepository(CameraRepository):
    def __init__(self, deny: Sequence[FacingMode] = ()) -> None:
        self.deny = set(deny)
        self.events: list[str] = []
        self.streams: list[FakeStream] = []

    def open(self, facing_mode: FacingMode, resolution: Resolution, target_fps: float) -> FakeStream:
        self.events.append(f"open:{facing_mode.value}")
        if facing_mode in self.deny:
            raise CameraPermissionError("Permission denied")
        stream = FakeStream(facing_mode, self.events)
        self.streams.append(stream)
        return stream


class FakeDetector(ObjectDetector):
    def __init__(
        self,
        detections: Sequence[RawDetection] = (),
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        gate: threading.Event | None = None,
    ) -> None:
        self.detections = tuple(detections)
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls = 0
        self.entered = threading.Event()

    def labels(self):
        return ("cup", "wine glass", "person")

    def detect(self, frame: Frame) -> Sequence[RawDetection]:
        self.calls += 1
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.detections


class FakeDetectorFactory:
    def __init__(self, detector: ObjectDetector | None = None, *, unavailable: bool = False) -> None:
        self.detector = detector or FakeDetector()
        self.unavailable = unavailable
        self.created = 0

    def create(self, model_path: str, device: str | None = None) -> ObjectDetector:
        self.created += 1
        if self.unavailable:
            raise ModelUnavailableError(f"Unable to load model {model_path}")
        return self.detector


class FakeConfidenceService:
    def __init__(
        self,
        result: ConfidenceResult | None = None,
        *,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.result = result or ConfidenceResult(score=0.82, reasoning="Level is consistent.")
        self.error = error
        self.gate = gate
        self.requests: list[ConfidenceRequest] = []
        self.entered = threading.Event()

    def score(self, request: ConfidenceRequest) -> ConfidenceResult:
        self.requests.append(request)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return ConfidenceResult(score=self.result.score, reasoning=f"{self.result.reasoning} ({request.volume_estimate:.0f} ml)")
