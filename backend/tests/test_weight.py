from __future__ import annotations

import pytest

from partquote.services.weight import calculate_weight, density_of
from partquote.utils.rounding import round_half_up


@pytest.mark.parametrize("dims", [(0, 40, 100), (60, 0, 100), (60, 40, 0), (None, 40, 100), ("", "4", "10"), ("abc", 4, 10)])
def test_zero_or_missing_dimension_gives_zero_weight(dims) -> None:
    assert calculate_weight(*dims, "C45") == 0.0


def test_weight_from_geometry_and_density() -> None:
    expected = round_half_up(60 / 10 * 40 / 10 * 100 / 10 * 7.85, 3)
    assert calculate_weight(60, 40, 100, "C45") == expected
    assert calculate_weight(60, 40, 100, "C45") == pytest.approx(1884.0)


def test_both_volume_forms_round_the_same() -> None:
    w, h, d = 7, 13, 29
    per_axis = round_half_up((w / 10) * (h / 10) * (d / 10) * 7.85, 3)
    assert calculate_weight(w, h, d, "C45") == pytest.approx(per_axis)


def test_qualified_material_uses_base_density() -> None:
    assert calculate_weight(6, 4, 10, "C45K-variant") == calculate_weight(6, 4, 10, "C45")
    assert density_of("C45K") == 7.85


def test_unknown_material_falls_back_to_steel_density() -> None:
    assert density_of("Unobtainium") == 7.85
    assert calculate_weight(10, 10, 10, "Unobtainium") == pytest.approx(7.85)


def test_light_material_and_string_dimensions() -> None:
    assert calculate_weight("10", "10,0", "10", "Aluminium") == pytest.approx(2.7)


def test_weight_is_rounded_to_three_decimals() -> None:
    weight = calculate_weight(6, 4, 10, "C60")
    assert weight == round_half_up(0.24 * 7.84, 3)
    assert weight == pytest.approx(1.882)
