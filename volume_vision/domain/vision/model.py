from __future__ import annotations

from dataclasses import dataclass

# x_min, y_min, x_max, y_max normalised to the frame
NormalizedBox = tuple[float, float, float, float]


@dataclass(frozen=True)
class RawDetection:
    """Detector output before filtering: ``bbox`` is ``(x, y, width, height)`` in pixels."""

    label: str
    score: float
    bbox: tuple[float, float, float, float]


@dataclass(frozen=True)
class DetectedObject:
    """A glass located on the current frame.

    No identity survives between polls; each poll produces fresh instances.
    """

    label: str
    box: NormalizedBox

    def __post_init__(self) -> None:
        if len(self.box) != 4:
            raise ValueError("Bounding box must have four coordinates")
        x_min, y_min, x_max, y_max = self.box
        for value in self.box:
            if not 0.0 <= value <= 1.0:
                raise ValueError("Bounding box coordinates must be normalised to [0, 1]")
        if not (x_min < x_max and y_min < y_max):
            raise ValueError("Bounding box must satisfy x_min < x_max and y_min < y_max")

    @property
    def height(self) -> float:
        return self.box[3] - self.box[1]

    @property
    def width(self) -> float:
        return self.box[2] - self.box[0]
