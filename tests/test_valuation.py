from decimal import Decimal

from sqlalchemy import select

from app.models.inventory import InventoryItem, Item, ItemVersion, Warehouse
from app.services.ledger import (
    Valuation,
    WarehouseShare,
    compute_valuation,
    list_items_with_stats,
    parse_version_filter,
    unit_cost,
)


def _version(number: int, price: str, service: str, tax: str, deductible: str, stock) -> ItemVersion:
    version = ItemVersion(
        version=number,
        unit_price=Decimal(price),
        service_cost=Decimal(service),
        tax_cost=Decimal(tax),
        deductible_tax_cost=Decimal(deductible),
    )
    version.inventory_items = [InventoryItem(quantity=qty, warehouse=warehouse) for warehouse, qty in stock]
    return version


W1 = Warehouse(id=1, name="W1", user_id="u1")
W2 = Warehouse(id=2, name="W2", user_id="u1")


def _blue_mops() -> Item:
    return Item(
        id=10,
        name="Blue Mops",
        user_id="u1",
        versions=[_version(1, "5.50", "0.30", "0.50", "0.20", [(W1, 100)])],
    )


def _multi_version_item() -> Item:
    return Item(
        id=11,
        name="Red Buckets",
        user_id="u1",
        versions=[
            _version(1, "12.00", "0.80", "1.20", "0.50", [(W1, 200), (W2, 3)]),
            _version(2, "11.50", "0.75", "1.15", "0.48", [(W2, 75)]),
            _version(3, "0.10", "0.00", "0.00", "0.40", [(W1, 10)]),
        ],
    )


def test_unit_cost_subtracts_deductible_tax():
    assert unit_cost(_blue_mops().versions[0]) == Decimal("6.10")


def test_unit_cost_may_be_negative():
    assert unit_cost(_multi_version_item().versions[2]) == Decimal("-0.30")


def test_blue_mops_valuation():
    valuation = compute_valuation(_blue_mops())

    assert valuation.total_units == 100
    assert valuation.total_value == Decimal("610.00")
    assert valuation.warehouse_distribution == [WarehouseShare(warehouse_id=1, name="W1", value=Decimal("610.00"))]


def test_filter_restricts_to_selected_versions():
    valuation = compute_valuation(_multi_version_item(), {"2"})

    assert valuation.total_units == 75
    assert valuation.total_value == Decimal("969.00")
    assert [share.warehouse_id for share in valuation.warehouse_distribution] == [2]


def test_disjoint_filters_are_additive():
    item = _multi_version_item()
    whole = compute_valuation(item, {"1", "2", "3"})
    left = compute_valuation(item, {"1"})
    right = compute_valuation(item, {"2", "3"})

    assert whole.total_units == left.total_units + right.total_units
    assert abs(whole.total_value - (left.total_value + right.total_value)) <= Decimal("1e-9")
    assert whole == compute_valuation(item)


def test_distribution_buckets_per_warehouse():
    valuation = compute_valuation(_multi_version_item())
    by_id = {share.warehouse_id: share.value for share in valuation.warehouse_distribution}

    # W1: 200 * 13.50 + 10 * -0.30, W2: 3 * 13.50 + 75 * 12.92
    assert by_id == {1: Decimal("2697.00"), 2: Decimal("1009.50")}
    assert sum(by_id.values()) == valuation.total_value


def test_version_order_does_not_change_totals():
    item = _multi_version_item()
    forward = compute_valuation(item)

    reversed_item = Item(id=12, name="copy", user_id="u1", versions=list(reversed(item.versions)))
    backward = compute_valuation(reversed_item)
    assert (forward.total_units, forward.total_value) == (backward.total_units, backward.total_value)


def test_filter_with_no_matching_version_is_empty():
    assert compute_valuation(_blue_mops(), {"9"}) == Valuation()


def test_item_without_versions_values_to_zero():
    valuation = compute_valuation(Item(id=1, name="empty", user_id="u1", versions=[]))

    assert valuation.total_units == 0
    assert valuation.total_value == 0
    assert valuation.warehouse_distribution == []


def test_parse_version_filter():
    assert parse_version_filter(None) == frozenset()
    assert parse_version_filter("") == frozenset()
    assert parse_version_filter("1, 2,,3 ") == frozenset({"1", "2", "3"})


def test_list_items_with_stats_ignores_filters():
    stats = list_items_with_stats([_blue_mops(), _multi_version_item()])

    assert [(s.name, s.total_units, s.total_value) for s in stats] == [
        ("Blue Mops", 100, Decimal("610.00")),
        ("Red Buckets", 288, Decimal("3706.50")),
    ]


def test_stats_over_seeded_items(db, seeded):
    items = list(db.scalars(select(Item).order_by(Item.id.asc())).all())

    stats = {s.name: s for s in list_items_with_stats(items)}

    assert stats["Blue Mops"].total_units == 150
    assert stats["Blue Mops"].total_value == Decimal("952.50")
    assert stats["Red Buckets"].total_units == 275
    assert stats["Red Buckets"].total_value == Decimal("3669.00")
