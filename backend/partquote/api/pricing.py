from fastapi import APIRouter, HTTPException
from typing import Any, Dict, Tuple
import logging

from partquote.api.deps import get_option_resolver, get_price_engine
from partquote.models.quote import Configuration
from partquote.services.mapping import coerce_configuration
from partquote.services.options import OptionResolver
from partquote.services.pricing import PricingMode
from partquote.services.validation import ConfigurationValidator
from partquote.utils.currency import format_eur

logger = logging.getLogger(__name__)
router = APIRouter()


def _parse_mode(payload: Dict[str, Any], default: PricingMode = PricingMode.PER_UNIT) -> PricingMode:
    raw = payload.get("mode")
    if raw is None and payload.get("materialOnly"):
        return PricingMode.PER_UNIT_MATERIAL_ONLY
    try:
        return PricingMode(raw) if raw else default
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown pricing mode: {raw}")


def _prepare(payload: Dict[str, Any]) -> Tuple[Configuration, OptionResolver]:
    """Loose payload -> configuration with the family's defaults applied."""
    resolver = get_option_resolver()
    configuration = resolver.apply_defaults(coerce_configuration(payload))
    return configuration, resolver


@router.post("/")
async def calculate_price(payload: Dict[str, Any]) -> Dict[str, Any]:
    mode = _parse_mode(payload)
    configuration, resolver = _prepare(payload)
    result = get_price_engine().quote(configuration, mode)
    logger.info("Price for product_group=%s mode=%s => %s", configuration.product_group, mode.value, result.unit_price)
    return {
        "price": result.unit_price,
        "weight": result.weight,
        "line_total": result.line_total,
        "formatted_price": format_eur(result.unit_price),
        "mode": mode.value,
        "configuration": configuration.to_payload(),
        "warnings": result.warnings,
        "notices": resolver.notices,
    }


@router.post("/total")
async def calculate_order_total(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Whole-order price with the volume discount."""
    configuration, _ = _prepare(payload)
    result = get_price_engine().quote(configuration, PricingMode.PER_ORDER_VOLUME_DISCOUNT)
    logger.info("Order total for product_group=%s qty=%s => %s", configuration.product_group,
                configuration.quantity, result.line_total)
    return {"grand_total": result.line_total, "weight": result.weight, "warnings": result.warnings}


@router.post("/validate")
async def validate_configuration(payload: Dict[str, Any]) -> Dict[str, Any]:
    configuration, resolver = _prepare(payload)
    options = resolver.options_for(configuration.product_group)
    report = ConfigurationValidator().validate(configuration, options)
    report["notices"] = resolver.notices
    return report
