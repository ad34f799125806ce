from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.models.inventory import InventoryHistory, InventoryItem, Item, ItemVersion, Warehouse
from app.services.ledger import InventoryReferenceError


@dataclass(frozen=True)
class VersionAttributes:
    unit_price: Decimal
    service_cost: Decimal = Decimal("0")
    tax_cost: Decimal = Decimal("0")
    deductible_tax_cost: Decimal = Decimal("0")
    volume: Decimal | None = None
    weight: Decimal | None = None
    currency: str = "USD"
    supplier: str | None = None
    note: str | None = None


def _version_from_attributes(item_id: int, version: int, attrs: VersionAttributes) -> ItemVersion:
    return ItemVersion(
        item_id=item_id,
        version=version,
        unit_price=attrs.unit_price,
        service_cost=attrs.service_cost,
        tax_cost=attrs.tax_cost,
        deductible_tax_cost=attrs.deductible_tax_cost,
        volume=attrs.volume,
        weight=attrs.weight,
        currency=attrs.currency.strip().upper(),
        supplier=attrs.supplier.strip() if attrs.supplier else None,
        note=attrs.note.strip() if attrs.note else None,
    )


def create_warehouse(db: Session, user_id: str, name: str, is_default: bool = False) -> Warehouse:
    warehouse = Warehouse(user_id=user_id, name=name.strip(), is_default=is_default)
    db.add(warehouse)
    db.commit()
    db.refresh(warehouse)
    return warehouse


def list_warehouses(db: Session, user_id: str) -> list[Warehouse]:
    return list(db.scalars(select(Warehouse).where(Warehouse.user_id == user_id).order_by(Warehouse.name.asc())).all())


def create_item(db: Session, user_id: str, name: str, first_version: VersionAttributes) -> Item:
    item = Item(user_id=user_id, name=name.strip())
    db.add(item)
    try:
        db.flush()
        db.add(_version_from_attributes(item.id, 1, first_version))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(item)
    return item


def add_item_version(db: Session, item: Item, attrs: VersionAttributes) -> ItemVersion:
    latest = db.scalar(select(func.max(ItemVersion.version)).where(ItemVersion.item_id == item.id))
    version = _version_from_attributes(item.id, (latest or 0) + 1, attrs)
    db.add(version)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(version)
    return version


def _with_inventory():
    return selectinload(Item.versions).selectinload(ItemVersion.inventory_items).selectinload(InventoryItem.warehouse)


def search_items(db: Session, user_id: str, search: str | None = None) -> list[Item]:
    query = select(Item).where(Item.user_id == user_id).options(_with_inventory())
    if search and search.strip():
        query = query.where(func.lower(Item.name).contains(search.strip().lower()))
    return list(db.scalars(query.order_by(Item.created_at.desc(), Item.id.desc())).all())


def get_item(db: Session, user_id: str, item_id: int) -> Item:
    item = db.scalar(select(Item).where(Item.id == item_id).options(_with_inventory()))
    if not item or item.user_id != user_id:
        raise InventoryReferenceError("Item not found")
    return item


def list_item_history(db: Session, item_id: int) -> list[InventoryHistory]:
    query = (
        select(InventoryHistory)
        .join(InventoryItem, InventoryHistory.inventory_item_id == InventoryItem.id)
        .where(InventoryItem.item_id == item_id)
        .options(
            selectinload(InventoryHistory.inventory_item).selectinload(InventoryItem.version),
            selectinload(InventoryHistory.inventory_item).selectinload(InventoryItem.warehouse),
        )
        .order_by(InventoryHistory.created_at.asc(), InventoryHistory.id.asc())
    )
    return list(db.scalars(query).all())
