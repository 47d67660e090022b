from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

from pydantic import BaseModel, Field
from sqlmodel import select

from partquote.services.catalog import FEATURE_AVAILABILITY, NONE, ProductFamily, is_none

logger = logging.getLogger(__name__)

LOAD_OPTIONS_FAILED = "Failed to load product options"


def _number(value: Any) -> Any:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return value
    return int(number) if number.is_integer() else number


def _unique(values) -> List[Any]:
    seen = []
    for v in values or []:
        if v not in seen:
            seen.append(v)
    return seen


class OptionSet(BaseModel):
    """Legal values for one product family.

    Two naming schemes exist for the same contract; ``from_payload`` reads either and
    ``to_legacy`` / ``to_compact`` write them.
    """

    norms: List[str] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    dimensions: List[float] = Field(default_factory=list)
    bores: List[str] = Field(default_factory=list)
    number_of_bores: List[int] = Field(default_factory=list)
    coatings: List[str] = Field(default_factory=list)
    hardening: List[str] = Field(default_factory=list)
    tolerances_width: List[str] = Field(default_factory=list)
    tolerances_height: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in OptionSet.model_fields)

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> "OptionSet":
        data = data or {}
        if any(k in data for k in ("Norms", "Materials", "Dimensions", "TolerancesBreite")):
            return cls(
                norms=data.get("Norms") or [],
                materials=data.get("Materials") or [],
                dimensions=[_number(v) for v in data.get("Dimensions") or []],
                bores=data.get("Bores") or [],
                number_of_bores=[int(_number(v)) for v in data.get("NumberOfBores") or []],
                coatings=data.get("Coatings") or [],
                hardening=data.get("Hardening") or [],
                tolerances_width=data.get("TolerancesBreite") or [],
                tolerances_height=data.get("TolerancesHohe") or [],
            )
        dimensions = (data.get("widths") or []) + (data.get("heights") or []) + (data.get("depths") or [])
        tolerances = data.get("tolerances") or []
        return cls(
            norms=data.get("standards") or [],
            materials=data.get("materials") or [],
            dimensions=sorted(_unique(_number(v) for v in dimensions)),
            bores=data.get("bores") or [],
            number_of_bores=[int(_number(v)) for v in data.get("numBores") or []],
            coatings=data.get("coatings") or [],
            hardening=data.get("hardening") or [],
            tolerances_width=list(tolerances),
            tolerances_height=list(tolerances),
        )

    def to_legacy(self) -> Dict[str, list]:
        return {
            "Norms": list(self.norms),
            "Materials": list(self.materials),
            "Dimensions": [_number(v) for v in self.dimensions],
            "Bores": list(self.bores),
            "NumberOfBores": [str(n) for n in self.number_of_bores],
            "Coatings": list(self.coatings),
            "Hardening": list(self.hardening),
            "TolerancesBreite": list(self.tolerances_width),
            "TolerancesHohe": list(self.tolerances_height),
        }

    def to_compact(self) -> Dict[str, list]:
        dimensions = [_number(v) for v in self.dimensions]
        return {
            "standards": list(self.norms),
            "materials": list(self.materials),
            "widths": dimensions,
            "heights": list(dimensions),
            "depths": list(dimensions),
            "bores": list(self.bores),
            "numBores": list(self.number_of_bores),
            "coatings": list(self.coatings),
            "hardening": list(self.hardening),
            "tolerances": _unique(list(self.tolerances_width) + list(self.tolerances_height)),
        }


def _option_set(values: Dict[str, list]) -> OptionSet:
    return OptionSet(
        norms=values.get("norms", []),
        materials=values.get("materials", []),
        dimensions=[_number(v) for v in values.get("dimensions", [])],
        bores=values.get("bores", []),
        number_of_bores=[int(_number(v)) for v in values.get("number_of_bores", [])],
        coatings=values.get("coatings", []),
        hardening=values.get("hardening", []),
        tolerances_width=values.get("tolerances", []),
        tolerances_height=values.get("tolerances", []),
    )


class StaticOptionSource:
    name = "static"

    def product_groups(self) -> List[str]:
        return [family.value for family in FEATURE_AVAILABILITY]

    def options_for(self, family: Optional[str]) -> Optional[OptionSet]:
        parsed = ProductFamily.parse(family)
        if parsed is None or parsed not in FEATURE_AVAILABILITY:
            return None
        return _option_set(FEATURE_AVAILABILITY[parsed])


class DatabaseOptionSource:
    name = "database"

    def __init__(self, session_factory: Optional[Callable] = None):
        if session_factory is None:
            from partquote.db.session import get_session
            session_factory = get_session
        self.session_factory = session_factory

    def product_groups(self) -> List[str]:
        from partquote.models.catalog import ProductGroup
        session = self.session_factory()
        try:
            return list(session.exec(select(ProductGroup.group_name).order_by(ProductGroup.group_name)).all())
        finally:
            session.close()

    def options_for(self, family: Optional[str]) -> Optional[OptionSet]:
        from partquote.models.catalog import ProductGroup, ProductGroupOption
        parsed = ProductFamily.parse(family)
        group_name = parsed.value if parsed else (family or "")
        session = self.session_factory()
        try:
            group = session.exec(select(ProductGroup).where(ProductGroup.group_name == group_name)).first()
            if group is None:
                return None
            rows = session.exec(
                select(ProductGroupOption)
                .where(ProductGroupOption.productgroup_id == group.id)
                .order_by(ProductGroupOption.axis, ProductGroupOption.position)
            ).all()
        finally:
            session.close()

        values: Dict[str, list] = {}
        for row in rows:
            values.setdefault(row.axis, []).append(row.value)
        return _option_set(values)


class OptionResolver:
    """Resolves legal option sets, asking each source in turn.

    A source that fails is logged and skipped; the resolver records the notice so the
    caller can surface it without blocking.
    """

    def __init__(self, sources: Optional[Sequence] = None):
        self.sources = list(sources) if sources is not None else [StaticOptionSource()]
        self.notices: List[str] = []

    def product_groups(self) -> List[str]:
        for source in self.sources:
            try:
                groups = source.product_groups()
            except Exception as e:
                logger.exception("Failed to load product groups from %s: %s", source.name, e)
                self._notice(LOAD_OPTIONS_FAILED)
                continue
            if groups:
                return groups
        return []

    def options_for(self, family: Optional[str]) -> OptionSet:
        for source in self.sources:
            try:
                options = source.options_for(family)
            except Exception as e:
                logger.exception("Failed to load options for %r from %s: %s", family, source.name, e)
                self._notice(LOAD_OPTIONS_FAILED)
                continue
            if options is not None and not options.is_empty():
                logger.debug("Options for %r resolved from %s", family, source.name)
                return options
        logger.warning("No option set found for product group %r", family)
        return OptionSet()

    def apply_defaults(self, configuration, options: Optional[OptionSet] = None):
        """Return a copy with blank fields filled by safe defaults.

        Norm and material take the family's first legal value; optional axes become "none".
        Values that are set are kept even when illegal; the validator reports those.
        """
        options = options if options is not None else self.options_for(configuration.product_group)
        updates: Dict[str, Any] = {}
        family = ProductFamily.parse(configuration.product_group)
        if family is not None and configuration.product_group != family.value:
            updates["product_group"] = family.value
        if not configuration.din_norm and options.norms:
            updates["din_norm"] = options.norms[0]
        if not configuration.material and options.materials:
            updates["material"] = options.materials[0]
        for name in ("bore", "coating", "hardening", "tolerance_width", "tolerance_height"):
            if is_none(getattr(configuration, name)):
                updates[name] = NONE
        if configuration.number_of_bores < 0:
            updates["number_of_bores"] = 0
        if configuration.quantity < 1:
            updates["quantity"] = 1
        return configuration.model_copy(update=updates)

    def _notice(self, message: str) -> None:
        if message not in self.notices:
            self.notices.append(message)
