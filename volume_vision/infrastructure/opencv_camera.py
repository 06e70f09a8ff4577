from __future__ import annotations

import time
from typing import Mapping

import cv2

from ..domain.camera.camera import FacingMode, Frame, Resolution
from ..domain.camera.camera_repository import CameraRepository
from ..shared.errors import CameraPermissionError


class OpenCvCameraStream:
    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture

    def read(self) -> Frame | None:
        if self._capture is None:
            return None
        ret, frame = self._capture.read()
        if not ret:
            return None
        return Frame(data=frame, timestamp=time.time())

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None


class OpenCvCameraRepository(CameraRepository):
    """Maps each facing mode onto a local video device index."""

    def __init__(self, logger, camera_indices: Mapping[FacingMode, int] | None = None) -> None:
        self._logger = logger
        self._camera_indices = dict(camera_indices or {FacingMode.ENVIRONMENT: 0, FacingMode.USER: 1})

    def index_for(self, facing_mode: FacingMode) -> int:
        try:
            return self._camera_indices[facing_mode]
        except KeyError as exc:
            raise CameraPermissionError(f"No camera configured for facing mode {facing_mode.value}") from exc

    def open(self, facing_mode: FacingMode, resolution: Resolution, target_fps: float) -> OpenCvCameraStream:
        index = self.index_for(facing_mode)
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            backend = getattr(cv2, "CAP_V4L2", None)
            if backend is not None:
                capture = cv2.VideoCapture(index, backend)
        if not capture.isOpened():
            capture.release()
            raise CameraPermissionError(f"Unable to open camera index {index}")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, resolution.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, resolution.height)
        capture.set(cv2.CAP_PROP_FPS, target_fps)
        self._logger.debug("camera.opened", index=index, facing_mode=facing_mode.value)
        return OpenCvCameraStream(capture)
