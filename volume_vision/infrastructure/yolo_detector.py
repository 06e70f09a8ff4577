from __future__ import annotations

from typing import Sequence

import numpy as np
import torch
from ultralytics import YOLO

from ..domain.camera.camera import Frame
from ..domain.vision.detector import DetectorFactory, ObjectDetector
from ..domain.vision.model import RawDetection
from ..shared.errors import DetectionCallError, ModelUnavailableError


def _normalise_label_names(names) -> list[str]:
    if isinstance(names, dict):
        return [names[index] for index in sorted(names)]
    if isinstance(names, (list, tuple)):
        return list(names)
    try:
        return [value for _, value in sorted(names.items())]
    except AttributeError:
        return [str(names)]


class YoloObjectDetector(ObjectDetector):
    """COCO-trained YOLO model; its class names include ``cup`` and ``wine glass``."""

    def __init__(self, model_path: str, device: str | None, logger) -> None:
        self._model_path = model_path
        self._logger = logger
        try:
            self._device = device or self._resolve_device()
            self._model = YOLO(model_path)
            self._model.to(self._device)
            self._labels = _normalise_label_names(getattr(self._model, "names", {}))
            self._warmup()
        except Exception as exc:
            raise ModelUnavailableError(f"Unable to load model {model_path}") from exc
        self._logger.info("detector.loaded", model=model_path, device=self._device, labels=len(self._labels))

    def _resolve_device(self) -> str:
        return "cuda" if torch.cuda.is_available() else "cpu"

    def _warmup(self) -> None:
        model_args = getattr(self._model.model, "args", {})
        imgsz = 640
        if isinstance(model_args, dict):
            imgsz = int(model_args.get("imgsz", imgsz))
        dummy = np.zeros((imgsz, imgsz, 3), dtype=np.uint8)
        with torch.inference_mode():
            _ = self._model.predict(dummy, device=self._device, verbose=False)

    def labels(self) -> Sequence[str]:
        return tuple(self._labels)

    def detect(self, frame: Frame) -> Sequence[RawDetection]:
        try:
            with torch.inference_mode():
                results = self._model.predict(frame.data, device=self._device, verbose=False)
        except Exception as exc:
            raise DetectionCallError(str(exc)) from exc

        detections: list[RawDetection] = []
        for result in results:
            predictions = getattr(result, "boxes", None)
            if predictions is None:
                continue
            for prediction in predictions:
                score = float(prediction.conf[0])
                x1, y1, x2, y2 = (float(value) for value in prediction.xyxy[0])
                cls = int(prediction.cls[0])
                label = self._labels[cls] if cls < len(self._labels) else str(cls)
                detections.append(RawDetection(label=label, score=score, bbox=(x1, y1, x2 - x1, y2 - y1)))
        return tuple(detections)


class YoloDetectorFactory(DetectorFactory):
    def __init__(self, logger) -> None:
        self._logger = logger

    def create(self, model_path: str, device: str | None = None) -> ObjectDetector:
        return YoloObjectDetector(model_path, device, self._logger)
