import pytest

from app.db.enums import ORDER_STATUS_TRANSITIONS, OrderStatus, can_transition
from app.models.inventory import InventoryLog
from app.services.purchase_order_service import format_purchase_order_number


def test_ledger_entry_derives_new_quantity():
    entry = InventoryLog.record(
        product_id=1, order_id=7, old_quantity=5, quantity_change=-3, reason="Sale - order #7 by guest"
    )

    assert entry.new_quantity == 2
    assert entry.new_quantity == entry.old_quantity + entry.quantity_change
    assert entry.timestamp is not None


def test_ledger_entry_rejects_zero_change():
    with pytest.raises(ValueError):
        InventoryLog.record(product_id=1, old_quantity=5, quantity_change=0, reason="noop")


def test_ledger_entry_rejects_negative_balance():
    with pytest.raises(ValueError):
        InventoryLog.record(product_id=1, old_quantity=1, quantity_change=-2, reason="oversell")


@pytest.mark.parametrize(
    "current, allowed",
    [
        (OrderStatus.PENDING, True),
        (OrderStatus.CONFIRMED, True),
        (OrderStatus.SHIPPING, False),
        (OrderStatus.COMPLETED, False),
        (OrderStatus.CANCELLED, False),
    ],
)
def test_cancellation_transitions(current, allowed):
    assert can_transition(current, OrderStatus.CANCELLED) is allowed


def test_every_status_has_a_transition_row():
    assert set(ORDER_STATUS_TRANSITIONS) == set(OrderStatus)
    assert ORDER_STATUS_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()


def test_purchase_order_number_is_zero_padded():
    assert format_purchase_order_number(42) == "PN-00042"
    assert format_purchase_order_number(123456) == "PN-123456"
