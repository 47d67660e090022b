from dataclasses import dataclass, field
from enum import Enum
from typing import List
import logging
import math

from partquote.services.catalog import is_none
from partquote.services.costs import CostBreakdown, StaticCostTable, lookup_costs
from partquote.services.weight import calculate_weight
from partquote.utils.rounding import MILLIGRAMS, round_half_up

logger = logging.getLogger(__name__)

PRICE_FAILED = "Failed to calculate price."


class PricingMode(str, Enum):
    PER_UNIT = "per_unit"
    PER_UNIT_MATERIAL_ONLY = "per_unit_material_only"
    PER_ORDER_VOLUME_DISCOUNT = "per_order_volume_discount"


@dataclass
class PriceResult:
    weight: float = 0.0
    unit_price: float = 0.0
    line_total: float = 0.0
    mode: PricingMode = PricingMode.PER_UNIT
    warnings: List[str] = field(default_factory=list)


class PriceEngine:
    """Rule-based pricing engine for configured parts.

    Each price is a pure function of the configuration snapshot and the cost table:
    weight from geometry, material cost per gram, then flat and per-bore option costs.
    The engine never raises for bad input; it degrades to 0 and reports a warning.
    """

    MAX_DISCOUNT = 0.20
    DISCOUNT_STEP = 0.02   # per full 10 pieces
    DISCOUNT_FROM_QUANTITY = 10

    def __init__(self, cost_table=None, densities=None):
        self.cost_table = cost_table or StaticCostTable()
        # None: densities come from the cost table's catalog
        self.densities = densities

    def weight_of(self, configuration) -> float:
        densities = self.densities if self.densities is not None else self.cost_table.densities()
        weight = calculate_weight(configuration.width, configuration.height, configuration.depth,
                                  configuration.material, densities)
        if not weight and configuration.weight and configuration.weight > 0:
            # incomplete geometry: fall back to a weight supplied with the configuration
            return round_half_up(float(configuration.weight), MILLIGRAMS)
        return weight

    def volume_discount(self, quantity: int) -> float:
        if quantity <= self.DISCOUNT_FROM_QUANTITY:
            return 0.0
        return min(self.MAX_DISCOUNT, math.floor(quantity / 10) * self.DISCOUNT_STEP)

    def _accumulate(self, total: float, configuration, costs: CostBreakdown) -> float:
        if not is_none(configuration.bore):
            total += costs.bore * max(configuration.number_of_bores, 1)
        if not is_none(configuration.coating):
            total += costs.coating
        if not is_none(configuration.hardening):
            total += costs.hardening
        if not is_none(configuration.tolerance_width):
            total += costs.tolerance_width
        if not is_none(configuration.tolerance_height):
            total += costs.tolerance_height
        return total

    def unit_price(self, configuration, mode: PricingMode = PricingMode.PER_UNIT) -> float:
        return self.quote(configuration, mode).unit_price

    def line_total(self, configuration, mode: PricingMode = PricingMode.PER_UNIT) -> float:
        return self.quote(configuration, mode).line_total

    def quote(self, configuration, mode: PricingMode = PricingMode.PER_UNIT) -> PriceResult:
        mode = PricingMode(mode)
        result = PriceResult(mode=mode)
        try:
            self._price(configuration, mode, result)
        except Exception as e:
            logger.exception("Price calculation failed: %s", e)
            result.unit_price = 0.0
            result.line_total = 0.0
            self._warn(result, PRICE_FAILED)
        return result

    def _price(self, configuration, mode: PricingMode, result: PriceResult) -> None:
        quantity = max(int(configuration.quantity or 1), 1)
        result.weight = self.weight_of(configuration)
        if not result.weight:
            logger.warning("Zero weight for material=%r dims=%sx%sx%s", configuration.material,
                           configuration.width, configuration.height, configuration.depth)
            self._warn(result, PRICE_FAILED)

        costs = lookup_costs(self.cost_table, configuration,
                             include_options=mode != PricingMode.PER_UNIT_MATERIAL_ONLY)
        if costs.failed_axes:
            self._warn(result, PRICE_FAILED)
        if not costs.material_per_gram:
            logger.warning("No material cost for %r", configuration.material)
            self._warn(result, PRICE_FAILED)
        base_cost = result.weight * costs.material_per_gram

        if mode == PricingMode.PER_UNIT_MATERIAL_ONLY:
            result.unit_price = round_half_up(base_cost)
            result.line_total = result.unit_price * quantity
            return

        if mode == PricingMode.PER_UNIT:
            result.unit_price = round_half_up(self._accumulate(base_cost, configuration, costs))
            result.line_total = result.unit_price * quantity
            return

        try:
            total = self.cost_table.base_price(configuration.product_group)
        except Exception as e:
            logger.exception("Base price lookup failed for %r: %s", configuration.product_group, e)
            self._warn(result, PRICE_FAILED)
            total = 0.0
        total += self._accumulate(base_cost, configuration, costs)
        total = total * quantity
        discount = self.volume_discount(quantity)
        if discount:
            total *= (1 - discount)
            logger.debug("Applied %s%% volume discount", discount * 100)
        result.line_total = round_half_up(total)
        result.unit_price = round_half_up(result.line_total / quantity)

    def _warn(self, result: PriceResult, message: str) -> None:
        if message not in result.warnings:
            result.warnings.append(message)
