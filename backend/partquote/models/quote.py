from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from partquote.services.catalog import NONE


class Configuration(BaseModel):
    """Inputs of one quote line. External JSON uses the configurator's German field names."""

    model_config = ConfigDict(populate_by_name=True)

    product_group: str = PydanticField("", alias="productGroup")
    din_norm: str = PydanticField("", alias="dinNorm")
    material: str = ""
    # millimeters
    width: float = PydanticField(0.0, alias="breite")
    height: float = PydanticField(0.0, alias="hohe")
    depth: float = PydanticField(0.0, alias="tiefe")
    # grams; recomputed from geometry whenever the geometry is complete
    weight: float = 0.0
    bore: str = NONE
    number_of_bores: int = PydanticField(1, alias="numberOfBores")
    coating: str = NONE
    hardening: str = NONE
    tolerance_width: str = PydanticField(NONE, alias="toleranceBreite")
    tolerance_height: str = PydanticField(NONE, alias="toleranceHohe")
    quantity: int = 1

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, include=set(Configuration.model_fields))


class ItemReference(BaseModel):
    """Where an ingested line came from."""

    model_config = ConfigDict(populate_by_name=True)

    pos: Optional[int] = None
    article_name: str = ""
    supplier_material_number: str = ""
    customer_material_number: str = ""
    unit: str = "pcs"
    delivery_date: str = PydanticField("", alias="deliveryDate")


class QuoteLineItem(Configuration):
    id: str
    unit_price: float = PydanticField(0.0, alias="unitPrice")
    line_total: float = PydanticField(0.0, alias="lineTotal")
    reference: Optional[ItemReference] = None
    warnings: List[str] = PydanticField(default_factory=list)

    def configuration(self) -> Configuration:
        return Configuration.model_validate(self.model_dump(include=set(Configuration.model_fields)))


class DocumentHeader(BaseModel):
    supplier_name: str = "N/A"
    customer_name: str = "N/A"
    type_of_document: str = "RFQ"
    date: str = ""
    customer_number: str = "N/A"
    order_or_rfq_number: str = "N/A"


class SavedQuote(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mode: str = "per_unit"
    item_count: int = 0
    total: float = 0.0
    items: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
