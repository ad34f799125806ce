from datetime import datetime

import pytest
from sqlalchemy import func, select

from app.models.inventory import HistoryAction, InventoryHistory, InventoryItem, Item, Warehouse
from app.services import ledger
from app.services.ledger import (
    InvalidQuantityChange,
    InventoryReferenceError,
    OperationKind,
    QuantityChange,
    apply_quantity_change,
    compute_quantity_change,
    parse_quantity_change,
)
from app.services.seed import MAIN, SECONDARY


def _warehouse(db, name: str) -> Warehouse:
    return db.scalar(select(Warehouse).where(Warehouse.name == name))


def _item(db, name: str) -> Item:
    return db.scalar(select(Item).where(Item.name == name))


def _history_for(db, inventory_item_id: int) -> list[InventoryHistory]:
    return list(
        db.scalars(
            select(InventoryHistory)
            .where(InventoryHistory.inventory_item_id == inventory_item_id)
            .order_by(InventoryHistory.id.asc())
        ).all()
    )


def _change(db, item_name: str, version: int, warehouse_name: str, kind: OperationKind, magnitude: int):
    item = _item(db, item_name)
    version_row = next(v for v in item.versions if v.version == version)
    return QuantityChange(
        item_id=item.id,
        item_version_id=version_row.id,
        warehouse_id=_warehouse(db, warehouse_name).id,
        kind=kind,
        magnitude=magnitude,
    )


def test_set_rule_holds_for_small_grid():
    for old in range(0, 6):
        for magnitude in range(-3, 9):
            new, history, action = compute_quantity_change(old, OperationKind.SET, magnitude)
            assert new == max(0, magnitude)
            assert history == abs(max(0, magnitude) - old)
            expected = HistoryAction.MANUAL_ADD if max(0, magnitude) > old else HistoryAction.MANUAL_DEDUCT
            assert action == expected


def test_adjust_rule_logs_requested_delta_even_when_floored():
    for old in range(0, 6):
        for delta in range(-8, 9):
            new, history, action = compute_quantity_change(old, OperationKind.ADJUST, delta)
            assert new == max(0, old + delta)
            assert history == abs(delta)
            assert action == (HistoryAction.MANUAL_ADD if delta > 0 else HistoryAction.MANUAL_DEDUCT)


def test_set_to_same_quantity_is_zero_sized_deduct():
    assert compute_quantity_change(40, OperationKind.SET, 40) == (40, 0, HistoryAction.MANUAL_DEDUCT)


def test_adjust_by_zero_is_deduct_of_zero():
    assert compute_quantity_change(7, OperationKind.ADJUST, 0) == (7, 0, HistoryAction.MANUAL_DEDUCT)


class TestParseQuantityChange:
    def test_parses_form_values(self):
        change = parse_quantity_change(3, "set", " 60 ", "5", "2")
        assert change == QuantityChange(
            item_id=3,
            item_version_id=5,
            warehouse_id=2,
            kind=OperationKind.SET,
            magnitude=60,
        )

    def test_add_maps_to_adjust_and_keeps_sign(self):
        change = parse_quantity_change("3", "add", "-150", "5", "2")
        assert change.kind == OperationKind.ADJUST
        assert change.magnitude == -150

    def test_missing_operation_defaults_to_adjust(self):
        assert parse_quantity_change(3, None, "4", "5", "2").kind == OperationKind.ADJUST

    def test_zero_quantity_is_accepted(self):
        assert parse_quantity_change(3, "add", "0", "5", "2").magnitude == 0

    def test_accepts_explicit_sign_and_int32_bounds(self):
        assert parse_quantity_change(3, "add", "+7", "5", "2").magnitude == 7
        assert parse_quantity_change(3, "set", "2147483647", "5", "2").magnitude == 2147483647
        assert parse_quantity_change(3, "add", "-2147483648", "5", "2").magnitude == -2147483648

    @pytest.mark.parametrize(
        "quantity, version_id, warehouse_id",
        [
            (None, "5", "2"),
            ("", "5", "2"),
            ("   ", "5", "2"),
            ("1.5", "5", "2"),
            ("ten", "5", "2"),
            ("4", None, "2"),
            ("4", "abc", "2"),
            ("4", "5", ""),
            ("4", "5", "0"),
            ("1_000", "5", "2"),
            ("\u0663", "5", "2"),
            ("3000000000", "5", "2"),
            ("100000000000000000000000", "5", "2"),
            ("-2147483649", "5", "2"),
            ("4", "99999999999", "2"),
        ],
    )
    def test_rejects_missing_or_malformed_fields(self, quantity, version_id, warehouse_id):
        with pytest.raises(InvalidQuantityChange):
            parse_quantity_change(3, "add", quantity, version_id, warehouse_id)

    def test_rejects_unknown_operation(self):
        with pytest.raises(InvalidQuantityChange):
            parse_quantity_change(3, "move", "4", "5", "2")


def test_adjust_below_zero_floors_quantity(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, -150)

    row = apply_quantity_change(db, change)

    assert row.quantity == 0
    last = _history_for(db, row.id)[-1]
    assert last.quantity == 150
    assert last.action == HistoryAction.MANUAL_DEDUCT


def test_set_on_missing_triple_creates_row(db, seeded):
    change = _change(db, "Blue Mops", 1, SECONDARY, OperationKind.SET, 60)
    assert ledger.find_inventory_item(db, change.key) is None

    row = apply_quantity_change(db, change)

    assert row.quantity == 60
    history = _history_for(db, row.id)
    assert len(history) == 1
    assert history[0].quantity == 60
    assert history[0].action == HistoryAction.MANUAL_ADD


def test_set_same_quantity_twice_logs_two_zero_deducts(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.SET, 100)
    before = len(_history_for(db, ledger.find_inventory_item(db, change.key).id))
    db.rollback()

    apply_quantity_change(db, change)
    row = apply_quantity_change(db, change)

    assert row.quantity == 100
    new_entries = _history_for(db, row.id)[before:]
    assert [(h.quantity, h.action) for h in new_entries] == [
        (0, HistoryAction.MANUAL_DEDUCT),
        (0, HistoryAction.MANUAL_DEDUCT),
    ]


def test_history_uses_supplied_timestamp(db, seeded):
    stamp = datetime(2025, 6, 1, 12, 0, 0)
    change = _change(db, "Red Buckets", 1, MAIN, OperationKind.ADJUST, 5)

    row = apply_quantity_change(db, change, now=stamp)

    assert row.quantity == 205
    assert _history_for(db, row.id)[-1].created_at == stamp


def test_failed_history_append_leaves_quantity_untouched(db, seeded, monkeypatch):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, 25)
    history_before = db.scalar(select(func.count(InventoryHistory.id)))

    def failing_append(*args, **kwargs):
        raise RuntimeError("history write failed")

    monkeypatch.setattr(ledger, "append_history", failing_append)

    with pytest.raises(RuntimeError):
        apply_quantity_change(db, change)

    quantity = db.scalar(
        select(InventoryItem.quantity).where(
            InventoryItem.item_id == change.item_id,
            InventoryItem.item_version_id == change.item_version_id,
            InventoryItem.warehouse_id == change.warehouse_id,
        )
    )
    assert quantity == 100
    assert db.scalar(select(func.count(InventoryHistory.id))) == history_before


def test_failed_history_append_does_not_leave_new_row(db, seeded, monkeypatch):
    change = _change(db, "Red Buckets", 1, SECONDARY, OperationKind.SET, 10)

    def failing_append(*args, **kwargs):
        raise RuntimeError("history write failed")

    monkeypatch.setattr(ledger, "append_history", failing_append)

    with pytest.raises(RuntimeError):
        apply_quantity_change(db, change)

    assert ledger.find_inventory_item(db, change.key) is None


def test_version_from_other_item_is_rejected(db, seeded):
    blue = _item(db, "Blue Mops")
    red = _item(db, "Red Buckets")
    change = QuantityChange(
        item_id=blue.id,
        item_version_id=red.versions[0].id,
        warehouse_id=_warehouse(db, MAIN).id,
        kind=OperationKind.ADJUST,
        magnitude=1,
    )

    with pytest.raises(InventoryReferenceError):
        apply_quantity_change(db, change)


def test_unknown_warehouse_is_rejected(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, 1)
    bogus = QuantityChange(change.item_id, change.item_version_id, 9999, change.kind, change.magnitude)

    with pytest.raises(InventoryReferenceError):
        apply_quantity_change(db, bogus)


def test_owner_scope_hides_foreign_items(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, 1)

    with pytest.raises(InventoryReferenceError):
        apply_quantity_change(db, change, owner_id="someone-else")


def test_history_rejects_negative_magnitude(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, 1)
    row = ledger.find_inventory_item(db, change.key)

    with pytest.raises(ledger.LedgerError):
        ledger.append_history(db, row, quantity=-1, action=HistoryAction.MANUAL_ADD)
    db.rollback()


def test_adjust_past_column_range_is_rejected_without_writing(db, seeded):
    change = _change(db, "Blue Mops", 1, MAIN, OperationKind.ADJUST, ledger.INT32_MAX)
    history_before = db.scalar(select(func.count(InventoryHistory.id)))

    with pytest.raises(InvalidQuantityChange):
        apply_quantity_change(db, change)

    row = ledger.find_inventory_item(db, change.key)
    assert row.quantity == 100
    assert db.scalar(select(func.count(InventoryHistory.id))) == history_before
