from __future__ import annotations

import pytest

from partquote.services.catalog import NONE, ProductFamily
from partquote.services.mapping import (
    coerce_configuration, configuration_from_item, parse_dimensions, parse_form_fill, parse_number,
    reference_from_item,
)
from partquote.services.text_parser import PastedTextParser


@pytest.mark.parametrize("value, expected", [("12", 12.0), ("12,5", 12.5), (" 7.25 ", 7.25), (3, 3.0), ("abc", 0.0), (None, 0.0)])
def test_parse_number(value, expected: float) -> None:
    assert parse_number(value) == expected


def test_coerce_configuration_accepts_external_names() -> None:
    config = coerce_configuration({
        "productGroup": "Passfeder",
        "dinNorm": "DIN 6885",
        "breite": "12,5",
        "hohe": "8",
        "tiefe": "-3",
        "qty": "0",
        "numberOfBores": "x",
        "coating": "",
        "toleranceHohe": "h9",
        "colour": "red",
    })
    assert config.product_group == ProductFamily.KEYWAY.value
    assert config.din_norm == "DIN 6885"
    assert (config.width, config.height, config.depth) == (12.5, 8.0, 0.0)
    assert config.quantity == 1
    assert config.number_of_bores == 1
    assert config.coating == NONE
    assert config.tolerance_height == "h9"


def test_coerce_configuration_overlays_base(config_factory) -> None:
    config = coerce_configuration({"material": "Messing"}, base=config_factory(quantity=7))
    assert config.material == "Messing"
    assert config.quantity == 7


def test_parse_form_fill() -> None:
    text = "productGroup: Passfeder• material: C45• breite: 4• bogus"
    assert parse_form_fill(text) == {"productGroup": "Passfeder", "material": "C45", "breite": "4"}
    assert parse_form_fill(None) == {}


@pytest.mark.parametrize(
    "item, expected",
    [
        ({"dimensions": "6x4x10"}, (6, 4, 10)),
        ({"dimensions": {"width": "8", "height": 7, "depth": "40"}}, (8, 7, 40)),
        ({"dimensions": "6x4x10", "depth": 12}, (6, 4, 12)),
        ({"article_name": "Passfeder DIN 6885 A 8x7x40 C45K"}, (8, 7, 40)),
        ({"article_name": "Passfeder 5,5 × 5"}, (5.5, 5, 0)),
        ({}, (0, 0, 0)),
    ],
)
def test_parse_dimensions(item, expected) -> None:
    assert parse_dimensions(item) == expected


def test_configuration_from_extracted_item() -> None:
    item = {"pos": 2, "article_name": "Passfeder DIN 6885 A 8x7x40 C45K", "qty": 400, "unit": "St"}
    config = configuration_from_item(item)
    assert config.product_group == ProductFamily.KEYWAY.value
    assert config.material == "C45"
    assert (config.width, config.height, config.depth) == (8, 7, 40)
    assert config.quantity == 400
    assert config.bore == NONE


def test_explicit_item_material_wins() -> None:
    config = configuration_from_item({"article_name": "Nutenstein 8x8x16 C45", "material": "Messing"})
    assert config.material == "Messing"


def test_reference_defaults() -> None:
    ref = reference_from_item({}, 2)
    assert ref.pos == 3
    assert ref.article_name == "Unnamed Article"
    assert ref.supplier_material_number == "N/A"
    assert ref.unit == "pcs"


def test_paste_json_array() -> None:
    items = PastedTextParser().parse('[{"article_name": "Passfeder 6x4x10", "qty": 2}, "junk"]')
    assert items == [{"article_name": "Passfeder 6x4x10", "qty": 2}]


def test_paste_requested_items_object() -> None:
    items = PastedTextParser().parse('{"requested_items": [{"pos": 1}, {"pos": 2}]}')
    assert [i["pos"] for i in items] == [1, 2]


def test_paste_repairs_loose_json() -> None:
    items = PastedTextParser().parse("{pos: 1, qty: 5,}")
    assert items == [{"pos": 1, "qty": 5}]


def test_paste_tab_table() -> None:
    text = (
        "Pos\tArtikel\tMenge\tEinheit\tGewicht\n"
        "1\tPassfeder DIN 6885 A 6x4x10 C45K\t400\tSt\t1,88\n"
        "2\tNutenstein 8x8x16\t20\tSt\t\n"
    )
    items = PastedTextParser().parse(text)
    assert items[0] == {
        "pos": "1", "article_name": "Passfeder DIN 6885 A 6x4x10 C45K", "qty": "400", "unit": "St", "weight": "1,88",
    }
    assert "weight" not in items[1]


def test_paste_single_line() -> None:
    items = PastedTextParser().parse("1 Passfeder DIN 6885 A 8x7x40 C45K 400 St 2,5")
    assert items == [{
        "pos": "1",
        "article_name": "Passfeder DIN 6885 A 8x7x40 C45K",
        "qty": 400.0,
        "unit": "St",
        "weight": 2.5,
        "dimensions": "8x7x40",
        "material": "C45K",
    }]


@pytest.mark.parametrize("text, message", [("", "No text provided"), ("   ", "No text provided"), ("hello there", "Could not parse")])
def test_paste_rejects_unusable_text(text: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        PastedTextParser().parse(text)
