from typing import Optional
from sqlmodel import SQLModel, Field

# Remote cost/option tables. Names follow the lookup columns the configurator queries by.


class ProductGroup(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    group_name: str = Field(index=True, unique=True)
    base_price: float = 0.0


class ProductGroupOption(SQLModel, table=True):
    """One legal value of one option axis for a product group."""
    id: Optional[int] = Field(default=None, primary_key=True)
    productgroup_id: int = Field(foreign_key="productgroup.id", index=True)
    # norms, materials, dimensions, bores, number_of_bores, coatings, hardening, tolerances
    axis: str = Field(index=True)
    value: str
    position: int = 0


class Material(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    material_name: str = Field(index=True, unique=True)
    density: float
    cost_per_gram: float = 0.0


class Bore(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    bore_size: str = Field(index=True, unique=True)
    cost_per_bore: float = 0.0


class Coating(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    coating_type: str = Field(index=True, unique=True)
    cost_per_part: float = 0.0


class HardeningLevel(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    hardening_level: str = Field(index=True, unique=True)
    cost_per_lot: float = 0.0


class Tolerance(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tolerance_grade: str = Field(index=True, unique=True)
    cost_per_side: float = 0.0
