import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.inventory import HistoryAction, InventoryHistory, InventoryItem, Item, ItemVersion, Warehouse
from app.models.user import User

logger = logging.getLogger(__name__)

DEMO_USER_EMAIL = "test@example.com"
DEMO_SHOP = "test-shop.myshopify.com"

MAIN = "Main Warehouse"
SECONDARY = "Secondary Warehouse"

# name -> versions (version, unit_price, service, tax, deductible, volume, weight, supplier, note)
DEMO_ITEMS: dict[str, list[tuple]] = {
    "Blue Mops": [
        (1, "5.50", "0.30", "0.50", "0.20", "0.05", "0.8", "Cleaning Supplies Co", "Standard blue color"),
        (2, "6.20", "0.35", "0.55", "0.25", "0.05", "0.8", "Cleaning Supplies Co", "Premium blue color"),
    ],
    "Red Buckets": [
        (1, "12.00", "0.80", "1.20", "0.50", "0.1", "1.5", "Bucket World Inc", "10L capacity"),
        (2, "11.50", "0.75", "1.15", "0.48", "0.1", "1.5", "Bucket World Inc", "10L capacity - improved design"),
    ],
}

# (item, version, warehouse, quantity)
DEMO_STOCK: list[tuple[str, int, str, int]] = [
    ("Blue Mops", 1, MAIN, 100),
    ("Blue Mops", 2, MAIN, 50),
    ("Red Buckets", 1, MAIN, 200),
    ("Red Buckets", 2, SECONDARY, 75),
]

# (item, version, warehouse, quantity, action, date, from, to)
DEMO_HISTORY: list[tuple] = [
    ("Blue Mops", 1, MAIN, 100, HistoryAction.ARRIVED, "2025-01-15", None, None),
    ("Blue Mops", 2, MAIN, 60, HistoryAction.ARRIVED, "2025-02-10", None, None),
    ("Blue Mops", 2, MAIN, 10, HistoryAction.MANUAL_DEDUCT, "2025-02-20", None, None),
    ("Red Buckets", 1, MAIN, 200, HistoryAction.ARRIVED, "2025-01-20", None, None),
    ("Red Buckets", 2, SECONDARY, 100, HistoryAction.ARRIVED, "2025-02-15", None, None),
    ("Red Buckets", 2, SECONDARY, 25, HistoryAction.WAREHOUSE_MOVE, "2025-03-01", SECONDARY, MAIN),
]


def seed_demo_data(db: Session, user_id: str, email: str = DEMO_USER_EMAIL, shop: str | None = DEMO_SHOP) -> list[Item]:
    existing = list(db.scalars(select(Item).where(Item.user_id == user_id).order_by(Item.id.asc())).all())
    if existing:
        logger.info("demo data already present for user %s", user_id)
        return existing

    if not db.get(User, user_id):
        db.add(User(id=user_id, email=email, shop=shop))

    warehouses = {
        MAIN: Warehouse(user_id=user_id, name=MAIN, is_default=True),
        SECONDARY: Warehouse(user_id=user_id, name=SECONDARY, is_default=False),
    }
    db.add_all(warehouses.values())

    items: dict[str, Item] = {}
    versions: dict[tuple[str, int], ItemVersion] = {}
    for name, rows in DEMO_ITEMS.items():
        item = Item(user_id=user_id, name=name)
        db.add(item)
        db.flush()
        items[name] = item
        for number, price, service, tax, deductible, volume, weight, supplier, note in rows:
            version = ItemVersion(
                item_id=item.id,
                version=number,
                unit_price=Decimal(price),
                service_cost=Decimal(service),
                tax_cost=Decimal(tax),
                deductible_tax_cost=Decimal(deductible),
                volume=Decimal(volume),
                weight=Decimal(weight),
                currency="USD",
                supplier=supplier,
                note=note,
            )
            db.add(version)
            versions[(name, number)] = version
    db.flush()

    stock: dict[tuple[str, int, str], InventoryItem] = {}
    for name, number, warehouse_name, quantity in DEMO_STOCK:
        row = InventoryItem(
            item_id=items[name].id,
            item_version_id=versions[(name, number)].id,
            warehouse_id=warehouses[warehouse_name].id,
            quantity=quantity,
        )
        db.add(row)
        stock[(name, number, warehouse_name)] = row
    db.flush()

    for name, number, warehouse_name, quantity, action, day, source, target in DEMO_HISTORY:
        db.add(
            InventoryHistory(
                inventory_item_id=stock[(name, number, warehouse_name)].id,
                quantity=quantity,
                action=action,
                from_warehouse_id=warehouses[source].id if source else None,
                to_warehouse_id=warehouses[target].id if target else None,
                created_at=datetime.fromisoformat(day),
            )
        )

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("seeded demo data for user %s", user_id)
    return [items[name] for name in DEMO_ITEMS]
