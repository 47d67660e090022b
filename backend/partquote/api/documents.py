from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import logging
import threading

from partquote.api.cart import ItemEdit, cart_summary
from partquote.api.deps import get_price_engine
from partquote.models.quote import DocumentHeader
from partquote.services.cart import Cart
from partquote.services.pricing import PricingMode
from partquote.services.text_parser import PastedTextParser
from partquote.services.webhooks import DocumentIngestionClient, IngestedItem, WebhookError, items_from_payload

logger = logging.getLogger(__name__)
router = APIRouter()

_doc_lock = threading.Lock()
_document: Dict[str, Any] = {"header": None, "cart": None}


class PastedText(BaseModel):
    text: str
    material_only: bool = False


class MaterialOnly(BaseModel):
    material_only: bool


def _mode(material_only: bool) -> PricingMode:
    return PricingMode.PER_UNIT_MATERIAL_ONLY if material_only else PricingMode.PER_UNIT


def reset_document() -> None:
    with _doc_lock:
        _document["header"] = None
        _document["cart"] = None


def _load(header: Optional[DocumentHeader], items: List[IngestedItem], material_only: bool) -> Dict[str, Any]:
    cart = Cart(get_price_engine(), _mode(material_only))
    for extracted in items:
        cart.add_item(extracted.configuration, extracted.reference)
    with _doc_lock:
        _document["header"] = header
        _document["cart"] = cart
        return _summary()


def _summary() -> Dict[str, Any]:
    cart: Optional[Cart] = _document["cart"]
    if cart is None:
        raise HTTPException(status_code=404, detail="no document loaded")
    header: Optional[DocumentHeader] = _document["header"]
    summary = cart_summary(cart)
    summary["header"] = header.model_dump() if header else None
    summary["material_only"] = cart.mode == PricingMode.PER_UNIT_MATERIAL_ONLY
    return summary


@router.post("/upload")
async def upload_document(file: UploadFile = File(...), material_only: bool = Form(False)):
    """Send a document to the ingestion webhook and price the extracted lines."""
    content = await file.read()
    logger.info("Received document name=%s type=%s size=%s", file.filename, file.content_type, len(content))
    try:
        document = DocumentIngestionClient().ingest(file.filename or "upload", content, file.content_type)
    except WebhookError as e:
        logger.error("Document ingestion failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to process file: {e}")
    if not document.items:
        raise HTTPException(status_code=422, detail="No valid items could be processed from the document")
    return _load(document.header, document.items, material_only)


@router.post("/paste")
async def paste_items(pasted: PastedText):
    try:
        raw_items = PastedTextParser().parse(pasted.text)
    except ValueError as e:
        logger.warning("Pasted text rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    items = items_from_payload(raw_items)
    if not items:
        raise HTTPException(status_code=422, detail="No valid items could be processed from the input")
    return _load(None, items, pasted.material_only)


@router.get("")
async def current_document():
    with _doc_lock:
        return _summary()


@router.patch("/items/{item_id}")
async def edit_document_item(item_id: str, edit: ItemEdit):
    with _doc_lock:
        cart: Optional[Cart] = _document["cart"]
        if cart is None or cart.get_item(item_id) is None:
            raise HTTPException(status_code=404, detail="item not found")
        if cart.edit_item(item_id, edit.field, edit.value) is None:
            raise HTTPException(status_code=400, detail=f"Unknown field: {edit.field}")
        return _summary()


@router.delete("/items/{item_id}")
async def remove_document_item(item_id: str):
    with _doc_lock:
        cart: Optional[Cart] = _document["cart"]
        if cart is None or not cart.remove_item(item_id):
            raise HTTPException(status_code=404, detail="item not found")
        return _summary()


@router.put("/material-only")
async def toggle_material_only(flag: MaterialOnly):
    with _doc_lock:
        cart: Optional[Cart] = _document["cart"]
        if cart is None:
            raise HTTPException(status_code=404, detail="no document loaded")
        cart.set_mode(_mode(flag.material_only))
        return _summary()
