from __future__ import annotations

from partquote.services.options import OptionResolver
from partquote.services.validation import ConfigurationValidator


def _report(config):
    options = OptionResolver().options_for(config.product_group)
    return ConfigurationValidator().validate(config, options)


def test_legal_configuration_is_complete(config_factory) -> None:
    report = _report(config_factory(bore="M4", number_of_bores=2, coating="Typ 3", tolerance_width="h7"))
    assert report == {"status": "complete", "issues": []}


def test_supplier_material_reduces_to_legal_base(config_factory) -> None:
    assert _report(config_factory(material="C45K"))["issues"] == []


def test_missing_dimensions_blocks(config_factory) -> None:
    report = _report(config_factory(depth=0))
    assert report["status"] == "incomplete"
    assert "missing_dimensions" in report["issues"]


def test_missing_material_blocks(config_factory) -> None:
    report = _report(config_factory(material=""))
    assert report["status"] == "incomplete"
    assert report["issues"] == ["missing_material"]


def test_unknown_family_blocks() -> None:
    from partquote.models.quote import Configuration

    config = Configuration(product_group="Zahnrad", material="C45", width=6, height=4, depth=10)
    report = ConfigurationValidator().validate(config)
    assert report["status"] == "incomplete"
    assert report["issues"] == ["unknown_family:Zahnrad"]


def test_illegal_choices_are_reported_but_not_blocking(config_factory) -> None:
    config = config_factory(material="Messing", width=30, bore="M20", coating="Typ 99", hardening="HRC 99",
                            tolerance_height="h2", din_norm="DIN 1")
    report = _report(config)
    assert report["status"] == "complete"
    assert report["issues"] == sorted([
        "illegal_norm:DIN 1",
        "illegal_material:Messing",
        "illegal_width:30",
        "illegal_bore:M20",
        "illegal_coating:Typ 99",
        "illegal_hardening:HRC 99",
        "illegal_tolerance_height:h2",
    ])


def test_unknown_material_and_bore_count(config_factory) -> None:
    report = _report(config_factory(material="Titan", bore="M2", number_of_bores=11))
    assert "unknown_material:Titan" in report["issues"]
    assert "illegal_number_of_bores:11" in report["issues"]


def test_bore_count_ignored_without_bore(config_factory) -> None:
    assert _report(config_factory(number_of_bores=50))["issues"] == []


def test_invalid_quantity(config_factory) -> None:
    report = _report(config_factory(quantity=0))
    assert report["issues"] == ["invalid_quantity"]
    assert report["status"] == "complete"
