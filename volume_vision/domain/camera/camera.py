from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class FacingMode(str, Enum):
    USER = "user"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class Frame:
    data: np.ndarray
    timestamp: float

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])
