import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.database import get_db
from app.models.inventory import InventoryHistory, Item, ItemVersion
from app.models.user import User
from app.schemas.inventory import (
    InventoryHistoryOut,
    InventoryItemOut,
    ItemCreate,
    ItemDetailOut,
    ItemOut,
    ItemStatsOut,
    ItemVersionCreate,
    ItemVersionOut,
    WarehouseCreate,
    WarehouseOut,
    WarehouseShareOut,
)
from app.services.catalog import (
    VersionAttributes,
    add_item_version,
    create_item,
    create_warehouse,
    get_item,
    list_item_history,
    list_warehouses,
    search_items,
)
from app.services.ledger import (
    InvalidQuantityChange,
    InventoryReferenceError,
    apply_quantity_change,
    compute_valuation,
    list_items_with_stats,
    parse_quantity_change,
    parse_version_filter,
    unit_cost,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Inventory"])


def _load_item(db: Session, current_user: User, item_id: int) -> Item:
    try:
        return get_item(db, current_user.id, item_id)
    except InventoryReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _attributes(payload: ItemVersionCreate) -> VersionAttributes:
    return VersionAttributes(**payload.model_dump())


def _version_out(version: ItemVersion) -> ItemVersionOut:
    return ItemVersionOut(
        id=version.id,
        version=version.version,
        unit_price=version.unit_price,
        service_cost=version.service_cost,
        tax_cost=version.tax_cost,
        deductible_tax_cost=version.deductible_tax_cost,
        unit_cost=unit_cost(version),
        volume=version.volume,
        weight=version.weight,
        currency=version.currency,
        supplier=version.supplier,
        note=version.note,
        created_at=version.created_at,
        inventory_items=[InventoryItemOut.model_validate(row) for row in version.inventory_items],
    )


def _history_out(entry: InventoryHistory) -> InventoryHistoryOut:
    inventory_item = entry.inventory_item
    return InventoryHistoryOut(
        id=entry.id,
        inventory_item_id=inventory_item.id,
        item_version_id=inventory_item.item_version_id,
        version=inventory_item.version.version,
        warehouse_id=inventory_item.warehouse_id,
        warehouse_name=inventory_item.warehouse.name,
        quantity=entry.quantity,
        action=entry.action,
        from_warehouse_id=entry.from_warehouse_id,
        to_warehouse_id=entry.to_warehouse_id,
        created_at=entry.created_at,
    )


@router.get("/warehouses", response_model=list[WarehouseOut])
def get_warehouses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_warehouses(db, current_user.id)


@router.post("/warehouses", response_model=WarehouseOut, status_code=status.HTTP_201_CREATED)
def post_warehouse(
    payload: WarehouseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return create_warehouse(db, current_user.id, payload.name, is_default=payload.is_default)


@router.get("/items", response_model=list[ItemStatsOut])
def list_items(
    search: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_items_with_stats(search_items(db, current_user.id, search))


@router.post("/items", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def post_item(
    payload: ItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return create_item(db, current_user.id, payload.name, _attributes(payload.version))


@router.post("/items/{item_id}/versions", response_model=ItemVersionOut, status_code=status.HTTP_201_CREATED)
def post_item_version(
    item_id: int,
    payload: ItemVersionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = _load_item(db, current_user, item_id)
    try:
        version = add_item_version(db, item, _attributes(payload))
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Version number already taken, retry",
        ) from exc
    return _version_out(version)


@router.get("/items/{item_id}", response_model=ItemDetailOut)
def get_item_detail(
    item_id: int,
    versions: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = _load_item(db, current_user, item_id)
    selected = parse_version_filter(versions)
    valuation = compute_valuation(item, selected)
    return ItemDetailOut(
        item=ItemOut.model_validate(item),
        versions=[_version_out(version) for version in item.versions],
        warehouses=[WarehouseOut.model_validate(w) for w in list_warehouses(db, item.user_id)],
        history=[_history_out(entry) for entry in list_item_history(db, item.id)],
        selected_versions=sorted(selected),
        total_units=valuation.total_units,
        total_value=valuation.total_value,
        warehouse_distribution=[
            WarehouseShareOut.model_validate(share) for share in valuation.warehouse_distribution
        ],
    )


@router.post("/items/{item_id}/inventory", response_model=InventoryItemOut)
def change_inventory(
    item_id: int,
    operation: str | None = Form(default=None),
    quantity: str | None = Form(default=None),
    version_id: str | None = Form(default=None, alias="versionId"),
    warehouse_id: str | None = Form(default=None, alias="warehouseId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        change = parse_quantity_change(item_id, operation, quantity, version_id, warehouse_id)
    except InvalidQuantityChange as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        return apply_quantity_change(db, change, owner_id=current_user.id)
    except InvalidQuantityChange as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InventoryReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except IntegrityError as exc:
        logger.warning("concurrent inventory insert rejected for item %s: %s", item_id, exc)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Inventory row changed concurrently, retry",
        ) from exc
