from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
import logging

from sqlmodel import select

from partquote.services import catalog
from partquote.services.catalog import ProductFamily, base_material, is_none

logger = logging.getLogger(__name__)


class CostAxis(str, Enum):
    MATERIAL = "material"      # per gram
    BORE = "bore"              # per bore
    COATING = "coating"        # flat
    HARDENING = "hardening"    # flat
    TOLERANCE = "tolerance"    # flat, per side


@dataclass
class CostBreakdown:
    material_per_gram: float = 0.0
    bore: float = 0.0
    coating: float = 0.0
    hardening: float = 0.0
    tolerance_width: float = 0.0
    tolerance_height: float = 0.0
    failed_axes: List[str] = field(default_factory=list)


class StaticCostTable:
    """Cost lookups against the in-process catalog."""

    TABLES: Dict[CostAxis, Dict[str, float]] = {
        CostAxis.MATERIAL: catalog.MATERIAL_COST_PER_GRAM,
        CostAxis.BORE: catalog.BORE_COST,
        CostAxis.COATING: catalog.COATING_COST,
        CostAxis.HARDENING: catalog.HARDENING_COST,
        CostAxis.TOLERANCE: catalog.TOLERANCE_COST,
    }

    def find(self, axis: CostAxis, value: Optional[str]) -> Optional[float]:
        """Cost of ``value`` on ``axis``, or None when the table has no entry."""
        table = self.TABLES[CostAxis(axis)]
        name = str(value).strip()
        if name in table:
            return table[name]
        if axis == CostAxis.MATERIAL:
            return table.get(base_material(name))
        return None

    def cost_of(self, axis: CostAxis, value: Optional[str]) -> float:
        if is_none(value):
            return 0.0
        cost = self.find(axis, value)
        return 0.0 if cost is None else cost

    def find_base_price(self, family: Optional[str]) -> Optional[float]:
        parsed = ProductFamily.parse(family)
        return catalog.FAMILY_BASE_PRICE.get(parsed) if parsed else None

    def base_price(self, family: Optional[str]) -> float:
        price = self.find_base_price(family)
        return 0.0 if price is None else price

    def densities(self) -> Dict[str, float]:
        return catalog.MATERIAL_DENSITY


class DatabaseCostTable:
    """Cost lookups against the catalog tables; each lookup runs in its own session."""

    def __init__(self, session_factory: Optional[Callable] = None):
        if session_factory is None:
            from partquote.db.session import get_session
            session_factory = get_session
        self.session_factory = session_factory

    def _columns(self, axis: CostAxis):
        from partquote.models.catalog import Bore, Coating, HardeningLevel, Material, Tolerance
        return {
            CostAxis.MATERIAL: (Material.material_name, Material.cost_per_gram),
            CostAxis.BORE: (Bore.bore_size, Bore.cost_per_bore),
            CostAxis.COATING: (Coating.coating_type, Coating.cost_per_part),
            CostAxis.HARDENING: (HardeningLevel.hardening_level, HardeningLevel.cost_per_lot),
            CostAxis.TOLERANCE: (Tolerance.tolerance_grade, Tolerance.cost_per_side),
        }[CostAxis(axis)]

    def _fetch(self, axis: CostAxis, name: str) -> Optional[float]:
        name_col, cost_col = self._columns(axis)
        session = self.session_factory()
        try:
            return session.exec(select(cost_col).where(name_col == name)).first()
        finally:
            session.close()

    def find(self, axis: CostAxis, value: Optional[str]) -> Optional[float]:
        name = str(value).strip()
        cost = self._fetch(axis, name)
        if cost is None and axis == CostAxis.MATERIAL:
            base = base_material(name)
            if base != name:
                cost = self._fetch(axis, base)
        return None if cost is None else float(cost)

    def cost_of(self, axis: CostAxis, value: Optional[str]) -> float:
        if is_none(value):
            return 0.0
        cost = self.find(axis, value)
        if cost is None:
            logger.warning("No cost found for %s in %s", value, CostAxis(axis).value)
            return 0.0
        return cost

    def find_base_price(self, family: Optional[str]) -> Optional[float]:
        from partquote.models.catalog import ProductGroup
        parsed = ProductFamily.parse(family)
        group_name = parsed.value if parsed else (family or "")
        session = self.session_factory()
        try:
            price = session.exec(select(ProductGroup.base_price).where(ProductGroup.group_name == group_name)).first()
        finally:
            session.close()
        return None if price is None else float(price)

    def base_price(self, family: Optional[str]) -> float:
        price = self.find_base_price(family)
        if price is None:
            logger.warning("Product group %r not found; base price 0", family)
            return 0.0
        return price

    def densities(self) -> Dict[str, float]:
        from partquote.models.catalog import Material
        session = self.session_factory()
        try:
            rows = session.exec(select(Material.material_name, Material.density)).all()
        finally:
            session.close()
        return {name: float(density) for name, density in rows}


class FallbackCostTable:
    """Asks ``primary`` first and answers from ``fallback`` when it fails or has no entry."""

    def __init__(self, primary, fallback=None):
        self.primary = primary
        self.fallback = fallback or StaticCostTable()

    def find(self, axis: CostAxis, value: Optional[str]) -> Optional[float]:
        try:
            cost = self.primary.find(axis, value)
        except Exception as e:
            logger.warning("Cost lookup for %s=%r failed, using fallback: %s", CostAxis(axis).value, value, e)
            cost = None
        return cost if cost is not None else self.fallback.find(axis, value)

    def cost_of(self, axis: CostAxis, value: Optional[str]) -> float:
        if is_none(value):
            return 0.0
        cost = self.find(axis, value)
        if cost is None:
            logger.warning("No cost found for %s in %s", value, CostAxis(axis).value)
            return 0.0
        return cost

    def find_base_price(self, family: Optional[str]) -> Optional[float]:
        try:
            price = self.primary.find_base_price(family)
        except Exception as e:
            logger.warning("Base price lookup for %r failed, using fallback: %s", family, e)
            price = None
        return price if price is not None else self.fallback.find_base_price(family)

    def base_price(self, family: Optional[str]) -> float:
        price = self.find_base_price(family)
        return 0.0 if price is None else price

    def densities(self) -> Dict[str, float]:
        try:
            found = self.primary.densities()
        except Exception as e:
            logger.warning("Density lookup failed, using fallback: %s", e)
            found = {}
        return {**self.fallback.densities(), **found}


def lookup_costs(table, configuration, include_options: bool = True) -> CostBreakdown:
    """Fan the independent cost lookups out and join them before anything is summed.

    A lookup that raises counts as 0 and is reported in ``failed_axes``.
    """
    lookups: List[Tuple[str, CostAxis, Optional[str]]] = [
        ("material_per_gram", CostAxis.MATERIAL, configuration.material),
    ]
    if include_options:
        lookups += [
            ("bore", CostAxis.BORE, configuration.bore),
            ("coating", CostAxis.COATING, configuration.coating),
            ("hardening", CostAxis.HARDENING, configuration.hardening),
            ("tolerance_width", CostAxis.TOLERANCE, configuration.tolerance_width),
            ("tolerance_height", CostAxis.TOLERANCE, configuration.tolerance_height),
        ]

    breakdown = CostBreakdown()
    with ThreadPoolExecutor(max_workers=len(lookups)) as pool:
        futures = [(attr, axis, value, pool.submit(table.cost_of, axis, value)) for attr, axis, value in lookups]
        for attr, axis, value, future in futures:
            try:
                setattr(breakdown, attr, float(future.result() or 0.0))
            except Exception as e:
                logger.exception("Cost lookup failed axis=%s value=%r: %s", axis.value, value, e)
                breakdown.failed_axes.append(attr)
    return breakdown
