from typing import Any, Dict, Mapping, Optional, Tuple
import logging
import re

from partquote.models.quote import Configuration, ItemReference
from partquote.services.catalog import DEFAULT_MATERIAL, NONE, ProductFamily, base_material, is_none

logger = logging.getLogger(__name__)

# incoming keys (chat form fill, extracted items, API payloads) -> Configuration field
FIELD_ALIASES: Dict[str, str] = {
    "productGroup": "product_group",
    "product_group": "product_group",
    "productGroupName": "product_group",
    "dinNorm": "din_norm",
    "din_norm": "din_norm",
    "norm": "din_norm",
    "material": "material",
    "breite": "width",
    "width": "width",
    "hohe": "height",
    "höhe": "height",
    "height": "height",
    "tiefe": "depth",
    "depth": "depth",
    "weight": "weight",
    "bore": "bore",
    "numberOfBores": "number_of_bores",
    "number_of_bores": "number_of_bores",
    "coating": "coating",
    "hardening": "hardening",
    "toleranceBreite": "tolerance_width",
    "tolerance_width": "tolerance_width",
    "toleranceHohe": "tolerance_height",
    "tolerance_height": "tolerance_height",
    "quantity": "quantity",
    "qty": "quantity",
}

FLOAT_FIELDS = {"width", "height", "depth", "weight"}
INT_FIELDS = {"number_of_bores", "quantity"}
OPTION_FIELDS = {"bore", "coating", "hardening", "tolerance_width", "tolerance_height"}

DIMENSIONS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*[xX×]\s*(\d+(?:[.,]\d+)?)(?:\s*[xX×]\s*(\d+(?:[.,]\d+)?))?")
MATERIAL_TOKEN_RE = re.compile(r"\b([A-Z]\d+[A-Z]?)\b")


def parse_number(value: Any, default: float = 0.0) -> float:
    """Parse "12", "12.5" or "12,5"; anything else gives ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip().replace(",", "."))
    except ValueError:
        return default


def coerce_field(field: str, value: Any) -> Any:
    """Coerce one raw value for a Configuration field, substituting a safe default."""
    if field in FLOAT_FIELDS:
        number = parse_number(value)
        return number if number > 0 else 0.0
    if field == "quantity":
        number = int(parse_number(value, 1))
        return number if number >= 1 else 1
    if field == "number_of_bores":
        number = int(parse_number(value, 1))
        return number if number >= 0 else 0
    if field in OPTION_FIELDS:
        return NONE if is_none(value) else str(value).strip()
    if field == "product_group":
        family = ProductFamily.parse(value)
        return family.value if family else ("" if value is None else str(value).strip())
    return "" if value is None else str(value).strip()


def coerce_configuration(raw: Optional[Mapping[str, Any]], base: Optional[Configuration] = None) -> Configuration:
    """Build a Configuration from a loose mapping; unknown keys are ignored, bad values defaulted."""
    values: Dict[str, Any] = base.model_dump() if base is not None else {}
    for key, value in (raw or {}).items():
        field = FIELD_ALIASES.get(str(key).strip())
        if field is None:
            continue
        values[field] = coerce_field(field, value)
    return Configuration.model_validate(values)


def parse_form_fill(text: Optional[str]) -> Dict[str, str]:
    """Parse a chat form-fill string: ``"productGroup: Passfeder• material: C45• breite: 4"``."""
    result: Dict[str, str] = {}
    for entry in (text or "").split("•"):
        key, sep, value = entry.partition(":")
        if sep and key.strip():
            result[key.strip()] = value.strip()
    return result


def parse_dimensions(item: Mapping[str, Any]) -> Tuple[float, float, float]:
    """Width, height, depth from a ``dimensions`` string/object, single fields or the article name."""
    width = height = depth = 0.0
    dims = item.get("dimensions")
    if isinstance(dims, str):
        parts = re.split(r"[xX×]", dims)
        if len(parts) >= 3:
            width, height, depth = (coerce_field("width", p) for p in parts[:3])
    elif isinstance(dims, Mapping):
        width = coerce_field("width", dims.get("width"))
        height = coerce_field("height", dims.get("height"))
        depth = coerce_field("depth", dims.get("depth"))

    if item.get("width") not in (None, ""):
        width = coerce_field("width", item.get("width"))
    if item.get("height") not in (None, ""):
        height = coerce_field("height", item.get("height"))
    if item.get("depth") not in (None, ""):
        depth = coerce_field("depth", item.get("depth"))

    article = item.get("article_name")
    if not (width and height and depth) and article:
        match = DIMENSIONS_RE.search(str(article))
        if match:
            width = width or coerce_field("width", match.group(1))
            height = height or coerce_field("height", match.group(2))
            if match.group(3):
                depth = depth or coerce_field("depth", match.group(3))
    return width, height, depth


def material_from_item(item: Mapping[str, Any]) -> str:
    if item.get("material"):
        return base_material(str(item["material"]))
    match = MATERIAL_TOKEN_RE.search(str(item.get("article_name") or ""))
    if match:
        return base_material(match.group(1))
    return DEFAULT_MATERIAL


def reference_from_item(item: Mapping[str, Any], index: int = 0) -> ItemReference:
    pos = item.get("pos")
    return ItemReference(
        pos=int(parse_number(pos, index + 1)) if pos not in (None, "") else index + 1,
        article_name=str(item.get("article_name") or "Unnamed Article"),
        supplier_material_number=str(item.get("supplier_material_number") or item.get("supplierMaterialNumber") or "N/A"),
        customer_material_number=str(item.get("customer_material_number") or item.get("customerMaterialNumber") or "N/A"),
        unit=str(item.get("unit") or "pcs"),
        delivery_date=str(item.get("delivery_date") or item.get("deliveryDate") or "N/A"),
    )


def configuration_from_item(item: Mapping[str, Any]) -> Configuration:
    """Map one extracted document line onto a Configuration with the ingestion defaults."""
    width, height, depth = parse_dimensions(item)
    raw = {k: v for k, v in item.items() if k in FIELD_ALIASES and k not in ("width", "height", "depth", "material")}
    configuration = coerce_configuration(raw)
    updates = {
        "product_group": configuration.product_group or ProductFamily.KEYWAY.value,
        "material": material_from_item(item),
        "width": width,
        "height": height,
        "depth": depth,
    }
    logger.debug("Mapped item %r -> %s", item.get("article_name"), updates)
    return configuration.model_copy(update=updates)
