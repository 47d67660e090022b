from enum import Enum
from typing import Dict, List, Optional
import logging
import re

logger = logging.getLogger(__name__)

NONE = "none"
DEFAULT_DENSITY = 7.85  # generic steel, g/cm³
DEFAULT_MATERIAL = "C45"


class ProductFamily(str, Enum):
    KEYWAY = "Passfeder (Keyway)"
    DISC_SPRING = "Scheibenfeder (Disc Spring)"
    T_SLOT_NUT = "Nutenstein (T-Slot Nut)"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["ProductFamily"]:
        """Resolve a display name or one of its aliases, case-insensitively."""
        if not name:
            return None
        key = str(name).strip().lower()
        return _FAMILY_ALIASES.get(key)


_FAMILY_ALIASES: Dict[str, ProductFamily] = {}
for _family, _aliases in {
    ProductFamily.KEYWAY: ("passfeder", "keyway", "key way"),
    ProductFamily.DISC_SPRING: ("scheibenfeder", "disc spring", "disc-spring", "woodruff key"),
    ProductFamily.T_SLOT_NUT: ("nutenstein", "t-slot nut", "t-slot-nut", "tslot nut"),
}.items():
    _FAMILY_ALIASES[_family.value.lower()] = _family
    _FAMILY_ALIASES[_family.name.lower()] = _family
    for _alias in _aliases:
        _FAMILY_ALIASES[_alias] = _family


MATERIAL_DENSITY: Dict[str, float] = {
    "C45": 7.85,
    "C60": 7.84,
    "Edelstahl": 7.95,
    "Aluminium": 2.70,
    "Messing": 8.50,
}

MATERIAL_COST_PER_GRAM: Dict[str, float] = {
    "C45": 1.5,
    "C60": 2.5,
    "Edelstahl": 3.0,
    "Aluminium": 4.5,
    "Messing": 6.0,
}

BORE_COST: Dict[str, float] = {f"M{i}": float(9 + i) for i in range(1, 22)}  # M1 = 10 ... M21 = 30

COATING_COST: Dict[str, float] = {f"Typ {i}": round(3.0 + 0.2 * i, 2) for i in range(1, 18)}  # 3.2 ... 6.4

HARDENING_COST: Dict[str, float] = {f"HRC {40 + i}": float(50 + 10 * i) for i in range(19)}  # 50 ... 230

TOLERANCE_COST: Dict[str, float] = {f"h{i}": round(1.1 + 0.1 * i, 2) for i in range(4, 18)}  # 1.5 ... 2.8

# per-order pricing starts from these; the static catalog carries none
FAMILY_BASE_PRICE: Dict[ProductFamily, float] = {family: 0.0 for family in ProductFamily}

_HARDENING = [f"HRC {40 + i}" for i in range(19)]
_BORE_COUNTS = list(range(1, 11))

FEATURE_AVAILABILITY: Dict[ProductFamily, Dict[str, List]] = {
    ProductFamily.KEYWAY: {
        "norms": ["DIN 6885", "Keine Norm"],
        "materials": ["C45", "Edelstahl", "Aluminium"],
        "dimensions": list(range(4, 19)),
        "bores": [f"M{i}" for i in range(1, 13)],
        "number_of_bores": _BORE_COUNTS,
        "coatings": [f"Typ {i}" for i in range(1, 13)],
        "hardening": _HARDENING,
        "tolerances": [f"h{i}" for i in range(4, 18)] + [NONE],
    },
    ProductFamily.DISC_SPRING: {
        "norms": ["DIN 6888", "Keine Norm"],
        "materials": ["Aluminium"],
        "dimensions": [4, 5, 6, 7, 16, 17, 18, 19, 20, 21],
        "bores": ["M1", "M2"],
        "number_of_bores": _BORE_COUNTS,
        "coatings": [f"Typ {i}" for i in range(1, 13)],
        "hardening": _HARDENING,
        "tolerances": [f"h{i}" for i in range(13, 18)] + [NONE],
    },
    ProductFamily.T_SLOT_NUT: {
        "norms": ["Keine Norm"],
        "materials": ["Aluminium", "Messing"],
        "dimensions": [3, 4, 5, 6, 7, 16, 17, 18, 22, 23, 24, 25, 26, 27, 28, 29],
        "bores": [f"M{i}" for i in range(13, 22)],
        "number_of_bores": _BORE_COUNTS,
        "coatings": [f"Typ {i}" for i in (1, 2, 3, 4, 5, 6, 13, 14, 15, 16, 17)],
        "hardening": _HARDENING,
        "tolerances": [f"h{i}" for i in range(13, 18)] + [NONE],
    },
}

# "C45K" -> "C45"; letters after the first digit run are supplier qualifiers
_QUALIFIER_RE = re.compile(r"^([A-Za-z]+\d+)[A-Za-z]+\b")


def is_none(value) -> bool:
    """True for the "not selected" sentinel, blanks and missing values."""
    if value is None:
        return True
    text = str(value).strip()
    return text == "" or text.lower() == NONE


def base_material(name: Optional[str]) -> str:
    """Reduce a supplier material name to the root material used for lookups."""
    text = (name or "").strip()
    if not text or text in MATERIAL_DENSITY:
        return text
    for known in sorted(MATERIAL_DENSITY, key=len, reverse=True):
        if known in text:
            return known
    match = _QUALIFIER_RE.match(text)
    if match:
        return match.group(1)
    return text


def seed_catalog(session) -> bool:
    """Load the canonical tables into an empty database.

    Returns False when the catalog already holds product groups.
    """
    from sqlmodel import select
    from partquote.models.catalog import (
        Bore, Coating, HardeningLevel, Material, ProductGroup, ProductGroupOption, Tolerance,
    )

    if session.exec(select(ProductGroup)).first() is not None:
        logger.debug("Catalog already seeded; skipping")
        return False

    for name, density in MATERIAL_DENSITY.items():
        session.add(Material(material_name=name, density=density, cost_per_gram=MATERIAL_COST_PER_GRAM.get(name, 0.0)))
    for name, cost in BORE_COST.items():
        session.add(Bore(bore_size=name, cost_per_bore=cost))
    for name, cost in COATING_COST.items():
        session.add(Coating(coating_type=name, cost_per_part=cost))
    for name, cost in HARDENING_COST.items():
        session.add(HardeningLevel(hardening_level=name, cost_per_lot=cost))
    for name, cost in TOLERANCE_COST.items():
        session.add(Tolerance(tolerance_grade=name, cost_per_side=cost))

    for family, options in FEATURE_AVAILABILITY.items():
        group = ProductGroup(group_name=family.value, base_price=FAMILY_BASE_PRICE[family])
        session.add(group)
        session.flush()
        for axis, values in options.items():
            for position, value in enumerate(values):
                session.add(ProductGroupOption(productgroup_id=group.id, axis=axis, value=str(value), position=position))

    session.commit()
    logger.info("Seeded catalog with %s product groups", len(FEATURE_AVAILABILITY))
    return True
