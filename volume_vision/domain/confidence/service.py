from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ConfidenceRequest:
    glass_shape: str
    water_line_consistency: str
    volume_estimate: float


@dataclass(frozen=True)
class ConfidenceResult:
    score: float
    reasoning: str

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError("Confidence score must be within [0, 1]")

    @property
    def band(self) -> str:
        if self.score > 0.7:
            return "high"
        if self.score > 0.4:
            return "medium"
        return "low"


class ConfidenceService(Protocol):
    def score(self, request: ConfidenceRequest) -> ConfidenceResult:
        """Rate a volume reading; raises ``ConfidenceCallError`` on failure."""
        ...


SHAPE_ADJECTIVES = {"cylinder": "cylindrical", "cone": "conical", "sphere": "spherical"}


def describe_water_line(level: float, glass_shape: str) -> str:
    shape = glass_shape.strip().lower()
    return (
        f"Water line is horizontal at {level:.0f}% full, "
        f"which is consistent with a {SHAPE_ADJECTIVES.get(shape, shape)} glass."
    )
