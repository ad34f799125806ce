"""Inventory ledger: current quantity per (item, version, warehouse) plus an
append-only history of every manual change, and the valuation folds used by
the item listing and item detail views.

Quantity mutations run inside a single session transaction. Serialising
concurrent writers on the same triple is left to the database: the lookup
takes a row lock where the backend supports it, and the unique constraint on
the triple rejects a second concurrent first insert.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.inventory import HistoryAction, InventoryHistory, InventoryItem, Item, ItemVersion, Warehouse

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class LedgerError(Exception):
    pass


class InvalidQuantityChange(LedgerError):
    pass


class InventoryReferenceError(LedgerError):
    pass


class OperationKind(str, Enum):
    ADJUST = "adjust"
    SET = "set"


FORM_OPERATIONS: dict[str, OperationKind] = {
    "add": OperationKind.ADJUST,
    "set": OperationKind.SET,
}


@dataclass(frozen=True)
class InventoryKey:
    item_id: int
    item_version_id: int
    warehouse_id: int


@dataclass(frozen=True)
class QuantityChange:
    item_id: int
    item_version_id: int
    warehouse_id: int
    kind: OperationKind
    magnitude: int

    @property
    def key(self) -> InventoryKey:
        return InventoryKey(self.item_id, self.item_version_id, self.warehouse_id)


@dataclass(frozen=True)
class WarehouseShare:
    warehouse_id: int
    name: str
    value: Decimal


@dataclass(frozen=True)
class Valuation:
    total_units: int = 0
    total_value: Decimal = ZERO
    warehouse_distribution: list[WarehouseShare] = field(default_factory=list)


@dataclass(frozen=True)
class ItemStats:
    id: int
    name: str
    total_units: int
    total_value: Decimal


def _parse_int(value: str | int | None, field_name: str) -> int:
    if value is None:
        raise InvalidQuantityChange(f"Missing required field: {field_name}")
    if isinstance(value, bool):
        raise InvalidQuantityChange(f"Invalid integer for {field_name}")
    if not isinstance(value, int):
        cleaned = value.strip()
        if not cleaned:
            raise InvalidQuantityChange(f"Missing required field: {field_name}")
        if not INTEGER_PATTERN.fullmatch(cleaned):
            raise InvalidQuantityChange(f"Invalid integer for {field_name}")
        value = int(cleaned)
    _check_range(value, field_name)
    return value


def _check_range(value: int, field_name: str) -> None:
    # Quantities and ids are stored in 32-bit INTEGER columns.
    if not INT32_MIN <= value <= INT32_MAX:
        raise InvalidQuantityChange(f"Value out of range for {field_name}")


def _parse_id(value: str | int | None, field_name: str) -> int:
    parsed = _parse_int(value, field_name)
    if parsed <= 0:
        raise InvalidQuantityChange(f"Invalid id for {field_name}")
    return parsed


def parse_quantity_change(
    item_id: int | str | None,
    operation: str | None,
    quantity: str | int | None,
    version_id: str | int | None,
    warehouse_id: str | int | None,
) -> QuantityChange:
    """Build a validated change from raw form values.

    A quantity of "0" is accepted; an absent or blank quantity is not.
    """
    op_key = (operation or "add").strip().lower()
    kind = FORM_OPERATIONS.get(op_key)
    if kind is None:
        raise InvalidQuantityChange(f"Unsupported operation: {operation}")

    return QuantityChange(
        item_id=_parse_id(item_id, "itemId"),
        item_version_id=_parse_id(version_id, "versionId"),
        warehouse_id=_parse_id(warehouse_id, "warehouseId"),
        kind=kind,
        magnitude=_parse_int(quantity, "quantity"),
    )


def compute_quantity_change(
    old_quantity: int,
    kind: OperationKind,
    magnitude: int,
) -> tuple[int, int, HistoryAction]:
    """Return (new_quantity, history_quantity, action) for one change."""
    if kind == OperationKind.SET:
        new_quantity = max(0, magnitude)
        history_quantity = abs(new_quantity - old_quantity)
        # An unchanged quantity is still logged, as a zero-sized deduction.
        action = HistoryAction.MANUAL_ADD if new_quantity > old_quantity else HistoryAction.MANUAL_DEDUCT
        return new_quantity, history_quantity, action

    new_quantity = max(0, old_quantity + magnitude)
    # History records the requested delta even when the floor at zero clips it.
    history_quantity = abs(magnitude)
    action = HistoryAction.MANUAL_ADD if magnitude > 0 else HistoryAction.MANUAL_DEDUCT
    return new_quantity, history_quantity, action


def find_inventory_item(db: Session, key: InventoryKey) -> InventoryItem | None:
    return db.scalar(
        select(InventoryItem)
        .where(
            InventoryItem.item_id == key.item_id,
            InventoryItem.item_version_id == key.item_version_id,
            InventoryItem.warehouse_id == key.warehouse_id,
        )
        .with_for_update()
    )


def upsert_inventory_item(
    db: Session,
    key: InventoryKey,
    quantity: int,
    existing: InventoryItem | None = None,
) -> InventoryItem:
    if existing is None:
        existing = InventoryItem(
            item_id=key.item_id,
            item_version_id=key.item_version_id,
            warehouse_id=key.warehouse_id,
            quantity=quantity,
        )
        db.add(existing)
    else:
        existing.quantity = quantity
    db.flush()
    return existing


def append_history(
    db: Session,
    inventory_item: InventoryItem,
    *,
    quantity: int,
    action: HistoryAction,
    created_at: datetime | None = None,
    from_warehouse_id: int | None = None,
    to_warehouse_id: int | None = None,
) -> InventoryHistory:
    if quantity < 0:
        raise LedgerError("History quantity must be a non-negative magnitude")
    entry = InventoryHistory(
        inventory_item_id=inventory_item.id,
        quantity=quantity,
        action=action,
        from_warehouse_id=from_warehouse_id,
        to_warehouse_id=to_warehouse_id,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def _resolve_references(db: Session, change: QuantityChange, owner_id: str | None) -> Item:
    item = db.get(Item, change.item_id)
    if not item or (owner_id is not None and item.user_id != owner_id):
        raise InventoryReferenceError("Item not found")

    version = db.get(ItemVersion, change.item_version_id)
    if not version or version.item_id != item.id:
        raise InventoryReferenceError("Item version not found for this item")

    warehouse = db.get(Warehouse, change.warehouse_id)
    if not warehouse or warehouse.user_id != item.user_id:
        raise InventoryReferenceError("Warehouse not found")
    return item


def apply_quantity_change(
    db: Session,
    change: QuantityChange,
    *,
    owner_id: str | None = None,
    now: datetime | None = None,
) -> InventoryItem:
    try:
        _resolve_references(db, change, owner_id)
        key = change.key
        inventory_item = find_inventory_item(db, key)
        old_quantity = inventory_item.quantity if inventory_item else 0
        new_quantity, history_quantity, action = compute_quantity_change(
            old_quantity,
            change.kind,
            change.magnitude,
        )
        _check_range(new_quantity, "quantity")
        inventory_item = upsert_inventory_item(db, key, new_quantity, existing=inventory_item)
        append_history(
            db,
            inventory_item,
            quantity=history_quantity,
            action=action,
            created_at=now,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(inventory_item)
    logger.info(
        "inventory change applied item=%s version=%s warehouse=%s kind=%s %s -> %s (%s %s)",
        key.item_id,
        key.item_version_id,
        key.warehouse_id,
        change.kind.value,
        old_quantity,
        new_quantity,
        action.value,
        history_quantity,
    )
    return inventory_item


def _as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def unit_cost(version: ItemVersion) -> Decimal:
    return (
        _as_decimal(version.unit_price)
        + _as_decimal(version.service_cost)
        + _as_decimal(version.tax_cost)
        - _as_decimal(version.deductible_tax_cost)
    )


def parse_version_filter(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def compute_valuation(item: Item, selected_versions: Iterable[str] = ()) -> Valuation:
    selected = frozenset(selected_versions)
    total_units = 0
    total_value = ZERO
    distribution: dict[int, list] = {}

    for version in item.versions:
        if selected and str(version.version) not in selected:
            continue
        cost = unit_cost(version)
        for inventory_item in version.inventory_items:
            row_value = inventory_item.quantity * cost
            total_units += inventory_item.quantity
            total_value += row_value
            warehouse = inventory_item.warehouse
            bucket = distribution.setdefault(warehouse.id, [warehouse.name, ZERO])
            bucket[1] += row_value

    return Valuation(
        total_units=total_units,
        total_value=total_value,
        warehouse_distribution=[
            WarehouseShare(warehouse_id=warehouse_id, name=name, value=value)
            for warehouse_id, (name, value) in distribution.items()
        ],
    )


def list_items_with_stats(items: Iterable[Item]) -> list[ItemStats]:
    stats: list[ItemStats] = []
    for item in items:
        total_units = 0
        total_value = ZERO
        for version in item.versions:
            cost = unit_cost(version)
            for inventory_item in version.inventory_items:
                total_units += inventory_item.quantity
                total_value += inventory_item.quantity * cost
        stats.append(ItemStats(id=item.id, name=item.name, total_units=total_units, total_value=total_value))
    return stats
