"""Preview overlay drawn on camera frames for the ``--preview`` window."""

from __future__ import annotations

import cv2
import cvzone
import numpy as np

from ..application.types import SessionSnapshot

BOX_COLOUR = (0, 200, 255)
WATER_COLOUR = (235, 160, 40)
BAND_COLOURS = {
    "high": (80, 200, 80),
    "medium": (0, 190, 255),
    "low": (60, 60, 230),
    None: (160, 160, 160),
}


def _to_pixels(box: tuple[float, float, float, float], width: int, height: int) -> tuple[int, int, int, int]:
    x_min, y_min, x_max, y_max = box
    return int(x_min * width), int(y_min * height), int(x_max * width), int(y_max * height)


def render_overlay(frame: np.ndarray, snapshot: SessionSnapshot, alpha: float = 0.45) -> np.ndarray:
    """Return a copy of ``frame`` with glass boxes, fill band and volume label."""

    canvas = frame.copy()
    height, width = canvas.shape[:2]

    if not snapshot.detection_enabled:
        shade = np.zeros_like(canvas)
        canvas = cv2.addWeighted(canvas, 0.3, shade, 0.7, 0)
        cvzone.putTextRect(canvas, "Detection Paused", (max(0, width // 2 - 160), height // 2), scale=2, thickness=2)
        return canvas

    water = canvas.copy()
    for detection in snapshot.detections:
        x1, y1, x2, y2 = _to_pixels(detection.box, width, height)
        fill_top = y2 - int((y2 - y1) * snapshot.liquid_level / 100.0)
        cv2.rectangle(water, (x1, fill_top), (x2, y2), WATER_COLOUR, -1)
        cv2.rectangle(canvas, (x1, y1), (x2, y2), BOX_COLOUR, 2)
    canvas = cv2.addWeighted(water, alpha, canvas, 1 - alpha, 0)

    if snapshot.detections:
        label = f"{snapshot.display_volume:.0f} {snapshot.unit.value}"
        if snapshot.confidence is not None:
            label += f"  Confidence: {snapshot.confidence.score * 100:.0f}%"
        cvzone.putTextRect(
            canvas,
            label,
            (int(width * 0.05), int(height * 0.12)),
            scale=1.5,
            thickness=2,
            offset=8,
            colorR=BAND_COLOURS.get(snapshot.confidence_band, BAND_COLOURS[None]),
        )
    if snapshot.alert is not None:
        cvzone.putTextRect(canvas, snapshot.alert.title, (10, height - 20), scale=1, thickness=1, offset=5)
    return canvas
