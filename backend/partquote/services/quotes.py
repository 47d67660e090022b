from typing import List, Optional
import logging

from sqlmodel import Session, select

from partquote.models.quote import SavedQuote
from partquote.services.cart import Cart

logger = logging.getLogger(__name__)


def save_quote(session: Session, cart: Cart) -> SavedQuote:
    """Snapshot the cart's items and grand total."""
    quote = SavedQuote(
        mode=cart.mode.value,
        item_count=len(cart),
        total=cart.grand_total(),
        items=[item.model_dump(mode="json", by_alias=True) for item in cart.items()],
    )
    session.add(quote)
    session.commit()
    session.refresh(quote)
    logger.info("Saved quote id=%s items=%s total=%s", quote.id, quote.item_count, quote.total)
    return quote


def list_quotes(session: Session) -> List[SavedQuote]:
    return list(session.exec(select(SavedQuote).order_by(SavedQuote.id)).all())


def get_quote(session: Session, quote_id: int) -> Optional[SavedQuote]:
    return session.get(SavedQuote, quote_id)
