from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from partquote.models.quote import Configuration, ItemReference, QuoteLineItem
from partquote.services.mapping import FIELD_ALIASES, coerce_field
from partquote.services.pricing import PriceEngine, PricingMode

logger = logging.getLogger(__name__)


class Cart:
    """Ordered quote lines. Insertion order is display order.

    Items are never patched: every edit re-derives weight and prices through the
    same engine and mode that created the item.
    """

    def __init__(self, engine: Optional[PriceEngine] = None, mode: PricingMode = PricingMode.PER_UNIT):
        self.engine = engine or PriceEngine()
        self.mode = PricingMode(mode)
        self._items: List[QuoteLineItem] = []

    def _derive(self, item_id: str, configuration: Configuration,
                reference: Optional[ItemReference] = None) -> QuoteLineItem:
        result = self.engine.quote(configuration, self.mode)
        values: Dict[str, Any] = configuration.model_dump()
        values.update(
            id=item_id,
            weight=result.weight,
            unit_price=result.unit_price,
            line_total=result.line_total,
            reference=reference,
            warnings=result.warnings,
        )
        return QuoteLineItem.model_validate(values)

    def add_item(self, configuration: Configuration, reference: Optional[ItemReference] = None) -> QuoteLineItem:
        item = self._derive(uuid4().hex, configuration, reference)
        self._items.append(item)
        logger.info("Added item id=%s product_group=%s unit_price=%s", item.id, item.product_group, item.unit_price)
        return item

    def get_item(self, item_id: str) -> Optional[QuoteLineItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def remove_item(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        removed = len(self._items) != before
        if removed:
            logger.info("Removed item id=%s", item_id)
        return removed

    def edit_item(self, item_id: str, field: str, value: Any) -> Optional[QuoteLineItem]:
        """Replace one field and re-derive the item; returns None for an unknown id or field."""
        name = FIELD_ALIASES.get(field, field)
        if name not in Configuration.model_fields:
            logger.warning("Ignoring edit of unknown field %r on item id=%s", field, item_id)
            return None
        for index, item in enumerate(self._items):
            if item.id != item_id:
                continue
            configuration = item.configuration().model_copy(update={name: coerce_field(name, value)})
            updated = self._derive(item.id, configuration, item.reference)
            self._items[index] = updated
            logger.info("Edited item id=%s %s=%r unit_price=%s", item_id, name, value, updated.unit_price)
            return updated
        return None

    def set_mode(self, mode: PricingMode) -> None:
        """Switch pricing strategy and re-derive every item under it."""
        self.mode = PricingMode(mode)
        self._items = [self._derive(item.id, item.configuration(), item.reference) for item in self._items]
        logger.info("Cart re-priced under mode=%s", self.mode.value)

    def items(self) -> List[QuoteLineItem]:
        return list(self._items)

    def grand_total(self) -> float:
        return sum(item.line_total for item in self._items)

    def clear(self) -> None:
        self._items = []

    def __len__(self) -> int:
        return len(self._items)
