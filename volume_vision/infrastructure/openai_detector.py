"""Glass detection through a vision-capable chat model.

Boxes come back normalised and are mapped to pixel ``(x, y, width, height)`` so
the poller filters and normalises them exactly like the on-device detector.
"""

from __future__ import annotations

import base64
from typing import Sequence

import cv2
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from ..domain.camera.camera import Frame
from ..domain.vision.detector import DetectorFactory, ObjectDetector
from ..domain.vision.model import RawDetection
from ..shared.errors import DetectionCallError, ModelUnavailableError
from .openai_client import build_client, first_message_content, json_schema_format

DETECTION_PROMPT = """Locate every drinking glass in the image.

Label each one "cup" or "wine glass", give a confidence score between 0 and 1 and a bounding
box [x_min, y_min, x_max, y_max] in normalised coordinates, (0, 0) being the top-left corner
and (1, 1) the bottom-right corner. Return an empty list when there is no drinking glass."""

DETECTION_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "objects": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "score": {"type": "number"},
                    "box": {"type": "array", "items": {"type": "number"}},
                },
                "required": ["label", "score", "box"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["objects"],
    "additionalProperties": False,
}

SUPPORTED_LABELS = ("cup", "wine glass")


class _DetectedItem(BaseModel):
    label: str
    score: float = Field(..., ge=0.0, le=1.0)
    box: list[float] = Field(..., min_length=4, max_length=4)


class _DetectionPayload(BaseModel):
    objects: list[_DetectedItem]


def encode_frame(frame: Frame, quality: int = 80) -> str:
    """Return ``frame`` as a base64 JPEG data URI."""

    ok, buffer = cv2.imencode(".jpg", frame.data, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise DetectionCallError("Unable to encode frame as JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.tobytes()).decode("ascii")


class OpenAiObjectDetector(ObjectDetector):
    def __init__(self, client: OpenAI, model: str, logger) -> None:
        self._client = client
        self._model = model
        self._logger = logger

    def labels(self) -> Sequence[str]:
        return SUPPORTED_LABELS

    def detect(self, frame: Frame) -> Sequence[RawDetection]:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": DETECTION_PROMPT},
                    {"type": "image_url", "image_url": {"url": encode_frame(frame)}},
                ],
            }
        ]
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=0.0,
                response_format=json_schema_format("glass_detection", DETECTION_RESPONSE_SCHEMA),
            )
        except OpenAIError as exc:
            raise DetectionCallError(str(exc)) from exc

        content = first_message_content(response)
        if content is None:
            return ()
        try:
            payload = _DetectionPayload.model_validate_json(content)
        except ValidationError as exc:
            raise DetectionCallError("Detection model returned an invalid payload") from exc

        width, height = frame.width, frame.height
        detections = []
        for item in payload.objects:
            x_min, y_min, x_max, y_max = item.box
            detections.append(
                RawDetection(
                    label=item.label,
                    score=item.score,
                    bbox=(x_min * width, y_min * height, (x_max - x_min) * width, (y_max - y_min) * height),
                )
            )
        return tuple(detections)


class OpenAiDetectorFactory(DetectorFactory):
    """``model_path`` names the chat model when this backend is selected."""

    def __init__(self, logger, *, api_key: str | None = None, timeout: float = 20.0, client: OpenAI | None = None) -> None:
        self._logger = logger
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def create(self, model_path: str, device: str | None = None) -> ObjectDetector:
        try:
            client = self._client or build_client(self._api_key, self._timeout)
        except OpenAIError as exc:
            raise ModelUnavailableError(f"Unable to reach detection model {model_path}: {exc}") from exc
        self._logger.info("detector.remote", model=model_path)
        return OpenAiObjectDetector(client, model_path, self._logger)
