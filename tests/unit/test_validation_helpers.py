from __future__ import annotations

import pytest

from volume_vision.domain.camera.camera import FacingMode
from volume_vision.domain.volume.estimation import Unit
from volume_vision.shared.validation import ValidationError, parse_choice, parse_float, parse_percentage


def test_parse_float_accepts_numeric_strings() -> None:
    assert parse_float("2.5", "Interval", minimum=0) == 2.5


@pytest.mark.parametrize("value", ["abc", None, True, float("nan")])
def test_parse_float_rejects_non_numbers(value) -> None:
    with pytest.raises(ValidationError):
        parse_float(value, "Interval")


@pytest.mark.parametrize("value", [0, 42.5, 100, "100"])
def test_parse_percentage_accepts_range(value) -> None:
    assert 0 <= parse_percentage(value) <= 100


@pytest.mark.parametrize("value", [-0.1, 100.5, 150])
def test_parse_percentage_rejects_out_of_range(value) -> None:
    with pytest.raises(ValidationError, match="Liquid level"):
        parse_percentage(value)


def test_parse_choice_normalises_input() -> None:
    assert parse_choice(" OZ ", Unit, "Unit") is Unit.OZ
    assert parse_choice(FacingMode.USER, FacingMode, "Facing mode") is FacingMode.USER


def test_parse_choice_lists_allowed_values() -> None:
    with pytest.raises(ValidationError, match="ml, oz"):
        parse_choice("litre", Unit, "Unit")
