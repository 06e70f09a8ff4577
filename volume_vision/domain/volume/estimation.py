"""Liquid level, volume and unit arithmetic.

The level heuristic reads only the glass bounding box: a box whose top edge sits
near the top of the frame is treated as fuller. It is an approximation, not a
measurement of the actual water line.
"""

from __future__ import annotations

import math
from enum import Enum

from ..vision.model import NormalizedBox

ML_TO_OZ = 0.033814

# Below this headroom the box covers the full frame height.
_SINGULAR_HEADROOM = 1e-6


class Unit(str, Enum):
    ML = "ml"
    OZ = "oz"


def _clamp_percentage(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(100.0, max(0.0, value))


def estimate_liquid_level(box: NormalizedBox) -> float:
    """Estimate the fill percentage of the glass framed by ``box``.

    ``level = 100 - y_min / (1 - box_height) * 100`` clamped to [0, 100].
    """

    _, y_min, _, y_max = box
    headroom = 1.0 - (y_max - y_min)
    if headroom <= _SINGULAR_HEADROOM:
        return 100.0
    return _clamp_percentage(100.0 - (y_min / headroom) * 100.0)


def estimate_volume(level: float, capacity_ml: float) -> float:
    return (level / 100.0) * capacity_ml


def convert_volume(volume_ml: float, unit: Unit) -> float:
    if Unit(unit) is Unit.OZ:
        return volume_ml * ML_TO_OZ
    return volume_ml
