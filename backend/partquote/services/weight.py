from typing import Any, Dict, Optional
import logging

from partquote.services.catalog import DEFAULT_DENSITY, MATERIAL_DENSITY, base_material
from partquote.utils.rounding import MILLIGRAMS, round_half_up

logger = logging.getLogger(__name__)


def _to_mm(value: Any) -> float:
    try:
        number = float(str(value).replace(",", ".")) if value not in (None, "") else 0.0
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def density_of(material: Optional[str], densities: Optional[Dict[str, float]] = None) -> float:
    """Density in g/cm³: exact name, then base material, then generic steel."""
    table = MATERIAL_DENSITY if densities is None else densities
    name = (material or "").strip()
    if name in table:
        return table[name]
    base = base_material(name)
    if base in table:
        return table[base]
    logger.debug("No density for material=%r; using default %s", material, DEFAULT_DENSITY)
    return DEFAULT_DENSITY


def calculate_weight(width: Any, height: Any, depth: Any, material: Optional[str],
                     densities: Optional[Dict[str, float]] = None) -> float:
    """Mass in grams of a width x height x depth block (millimeters).

    Any missing or zero dimension gives 0.0: the configuration is incomplete, not invalid.
    """
    w, h, d = _to_mm(width), _to_mm(height), _to_mm(depth)
    if not (w and h and d):
        return 0.0
    volume_cm3 = w * h * d / 1000
    return round_half_up(volume_cm3 * density_of(material, densities), MILLIGRAMS)
