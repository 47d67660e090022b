from fastapi import APIRouter, HTTPException

from partquote.db.session import get_session
from partquote.services.quotes import get_quote, list_quotes

router = APIRouter()


@router.get("")
async def saved_quotes():
    session = get_session()
    try:
        return [
            {"id": q.id, "created_at": q.created_at.isoformat(), "mode": q.mode,
             "item_count": q.item_count, "total": q.total}
            for q in list_quotes(session)
        ]
    finally:
        session.close()


@router.get("/{quote_id}")
async def saved_quote(quote_id: int):
    session = get_session()
    try:
        quote = get_quote(session, quote_id)
        if quote is None:
            raise HTTPException(status_code=404, detail="quote not found")
        return quote.model_dump(mode="json")
    finally:
        session.close()
