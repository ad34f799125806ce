from app.models.inventory import (
    HistoryAction,
    InventoryHistory,
    InventoryItem,
    Item,
    ItemVersion,
    Warehouse,
)
from app.models.user import User

__all__ = [
    "HistoryAction",
    "InventoryHistory",
    "InventoryItem",
    "Item",
    "ItemVersion",
    "User",
    "Warehouse",
]
