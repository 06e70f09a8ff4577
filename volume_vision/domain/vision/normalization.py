"""Conversion of raw detector output into normalised glass detections."""

from __future__ import annotations

from typing import Iterable

from .model import DetectedObject, NormalizedBox, RawDetection


def _clip(value: float) -> float:
    return min(1.0, max(0.0, value))


def normalize_box(bbox: tuple[float, float, float, float], frame_width: int, frame_height: int) -> NormalizedBox:
    """Map a pixel ``(x, y, width, height)`` box to ``(x_min, y_min, x_max, y_max)`` in [0, 1]."""

    if frame_width <= 0 or frame_height <= 0:
        raise ValueError("Frame dimensions must be positive")
    x, y, width, height = bbox
    return (
        _clip(x / frame_width),
        _clip(y / frame_height),
        _clip((x + width) / frame_width),
        _clip((y + height) / frame_height),
    )


def select_glasses(
    raw: Iterable[RawDetection],
    frame_width: int,
    frame_height: int,
    *,
    accepted_labels: Iterable[str],
    score_threshold: float,
) -> tuple[DetectedObject, ...]:
    """Keep allow-listed labels scoring strictly above ``score_threshold``.

    Boxes that collapse to zero area once clipped to the frame are dropped.
    """

    allowed = {label.lower() for label in accepted_labels}
    glasses: list[DetectedObject] = []
    for detection in raw:
        if detection.label.lower() not in allowed:
            continue
        if not detection.score > score_threshold:
            continue
        box = normalize_box(detection.bbox, frame_width, frame_height)
        if box[0] >= box[2] or box[1] >= box[3]:
            continue
        glasses.append(DetectedObject(label=detection.label, box=box))
    return tuple(glasses)
