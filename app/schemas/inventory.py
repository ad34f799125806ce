from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.inventory import HistoryAction


class WarehouseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    is_default: bool = False


class WarehouseOut(BaseModel):
    id: int
    name: str
    is_default: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ItemVersionCreate(BaseModel):
    unit_price: Decimal = Field(ge=0)
    service_cost: Decimal = Field(default=Decimal("0"), ge=0)
    tax_cost: Decimal = Field(default=Decimal("0"), ge=0)
    deductible_tax_cost: Decimal = Field(default=Decimal("0"), ge=0)
    volume: Decimal | None = Field(default=None, ge=0)
    weight: Decimal | None = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    supplier: str | None = Field(default=None, max_length=160)
    note: str | None = None


class ItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    version: ItemVersionCreate


class InventoryItemOut(BaseModel):
    id: int
    item_id: int
    item_version_id: int
    warehouse_id: int
    quantity: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class ItemVersionOut(BaseModel):
    id: int
    version: int
    unit_price: Decimal
    service_cost: Decimal
    tax_cost: Decimal
    deductible_tax_cost: Decimal
    unit_cost: Decimal
    volume: Decimal | None
    weight: Decimal | None
    currency: str
    supplier: str | None
    note: str | None
    created_at: datetime
    inventory_items: list[InventoryItemOut] = []


class ItemOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ItemStatsOut(BaseModel):
    id: int
    name: str
    total_units: int
    total_value: Decimal

    model_config = {"from_attributes": True}


class WarehouseShareOut(BaseModel):
    warehouse_id: int
    name: str
    value: Decimal

    model_config = {"from_attributes": True}


class InventoryHistoryOut(BaseModel):
    id: int
    inventory_item_id: int
    item_version_id: int
    version: int
    warehouse_id: int
    warehouse_name: str
    quantity: int
    action: HistoryAction
    from_warehouse_id: int | None
    to_warehouse_id: int | None
    created_at: datetime


class ItemDetailOut(BaseModel):
    item: ItemOut
    versions: list[ItemVersionOut]
    warehouses: list[WarehouseOut]
    history: list[InventoryHistoryOut]
    selected_versions: list[str]
    total_units: int
    total_value: Decimal
    warehouse_distribution: list[WarehouseShareOut]
