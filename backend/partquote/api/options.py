from fastapi import APIRouter, HTTPException
from typing import Any, Dict
import logging

from partquote.api.deps import get_option_resolver

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/product-groups")
async def product_groups() -> Dict[str, Any]:
    resolver = get_option_resolver()
    groups = resolver.product_groups()
    return {"product_groups": groups, "notices": resolver.notices}


@router.get("/{product_group}")
async def options_for(product_group: str, scheme: str = "legacy") -> Dict[str, Any]:
    """Legal option values for a product group in either naming scheme."""
    if scheme not in ("legacy", "compact"):
        raise HTTPException(status_code=400, detail="scheme must be 'legacy' or 'compact'")
    resolver = get_option_resolver()
    options = resolver.options_for(product_group)
    logger.info("Options requested product_group=%s empty=%s", product_group, options.is_empty())
    payload = options.to_legacy() if scheme == "legacy" else options.to_compact()
    return {"product_group": product_group, "options": payload, "notices": resolver.notices}
