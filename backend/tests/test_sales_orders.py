# Overview: Pytest coverage for the sales order engine.

"""
Sales order tests.

Verifies:
- pending orders never touch stock
- confirming takes stock out with CONFIRMED_SALES_ORDER rows
- deleting a confirmed order puts everything back
- insufficient stock fails the whole order with no writes
- confirmed orders are immutable
"""

import pytest

from stockroom.exceptions import (
    InsufficientStockError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from stockroom.models import SalesOrder
from stockroom.services import sales_order_service, sales_return_service
from stockroom.services.concurrency import unit_of_work
from stockroom.services.document_engine import compute_tax_cents
from stockroom.services.ledger_service import TxType
from stockroom.services.stock_mutation import LineItem

from conftest import header, ledger_rows, stock_of


def _create(tenant, status, lines):
    with unit_of_work() as uow:
        order = sales_order_service.create(
            uow, tenant["user"].id, header(party_id=tenant["customer"].id, status=status), lines
        )
        return order.id


class TestSalesOrderLifecycle:
    def test_pending_order_is_inert(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "pending", [LineItem(product.id, 3)])

        assert stock_of(product.id) == 10
        assert ledger_rows() == []
        lines = sales_order_service.get_lines(order_id, tenant_a["user"].id)
        assert [(l.product_id, l.quantity) for l in lines] == [(product.id, 3)]

    def test_confirming_takes_stock_out(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "pending", [LineItem(product.id, 3)])

        with unit_of_work() as uow:
            sales_order_service.update(uow, order_id, tenant_a["user"].id, header(status="confirmed"))

        assert stock_of(product.id) == 7
        [row] = ledger_rows(product.id)
        assert row.transaction_type_id == TxType.CONFIRMED_SALES_ORDER
        assert (row.quantity, row.previous_stock, row.new_stock) == (-3, 10, 7)

    def test_confirmed_create_then_delete_restores_stock(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "confirmed", [LineItem(product.id, 4)])
        assert stock_of(product.id) == 6

        with unit_of_work() as uow:
            snapshot = sales_order_service.delete(uow, order_id, tenant_a["user"].id)

        assert snapshot["id"] == order_id
        assert stock_of(product.id) == 10
        rows = ledger_rows(product.id)
        assert [(r.transaction_type_id, r.quantity) for r in rows] == [
            (TxType.CONFIRMED_SALES_ORDER, -4),
            (TxType.CANCELLED_SALES_ORDER, 4),
        ]
        assert db_session.get(SalesOrder, order_id) is None

    def test_deleting_pending_order_writes_no_ledger(self, db_session, tenant_a):
        order_id = _create(tenant_a, "pending", [LineItem(tenant_a["product"].id, 2)])
        with unit_of_work() as uow:
            sales_order_service.delete(uow, order_id, tenant_a["user"].id)
        assert ledger_rows() == []
        assert stock_of(tenant_a["product"].id) == 10

    def test_pending_lines_replaced_then_confirmed(self, db_session, tenant_a):
        product, other = tenant_a["product"], tenant_a["other"]
        user_id = tenant_a["user"].id
        order_id = _create(tenant_a, "pending", [LineItem(product.id, 2)])

        with unit_of_work() as uow:
            sales_order_service.update(
                uow, order_id, user_id, header(), [LineItem(product.id, 5), LineItem(other.id, 1)]
            )
        with unit_of_work() as uow:
            sales_order_service.update(uow, order_id, user_id, header(status="confirmed"))

        assert stock_of(product.id) == 5
        assert stock_of(other.id) == 4
        assert len(ledger_rows()) == 2


class TestSalesOrderGuards:
    def test_insufficient_stock_writes_nothing(self, db_session, tenant_a):
        product = tenant_a["product"]
        with pytest.raises(InsufficientStockError) as exc:
            _create(tenant_a, "confirmed", [LineItem(product.id, 11)])

        assert exc.value.product_id == product.id
        assert stock_of(product.id) == 10
        assert ledger_rows() == []
        assert db_session.query(SalesOrder).count() == 0

    def test_one_short_line_fails_whole_order(self, db_session, tenant_a):
        product, other = tenant_a["product"], tenant_a["other"]
        with pytest.raises(InsufficientStockError):
            _create(tenant_a, "confirmed", [LineItem(product.id, 3), LineItem(other.id, 6)])

        assert stock_of(product.id) == 10
        assert stock_of(other.id) == 5
        assert ledger_rows() == []

    def test_confirmed_order_cannot_be_updated(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "confirmed", [LineItem(product.id, 2)])

        with pytest.raises(InvalidStateTransitionError):
            with unit_of_work() as uow:
                sales_order_service.update(
                    uow, order_id, tenant_a["user"].id, header(status="pending"), [LineItem(product.id, 1)]
                )

        assert stock_of(product.id) == 8
        assert len(ledger_rows()) == 1
        lines = sales_order_service.get_lines(order_id, tenant_a["user"].id)
        assert [l.quantity for l in lines] == [2]

    def test_order_with_returns_cannot_be_deleted(self, db_session, tenant_a):
        product = tenant_a["product"]
        user_id = tenant_a["user"].id
        order_id = _create(tenant_a, "confirmed", [LineItem(product.id, 2)])
        with unit_of_work() as uow:
            sales_return_service.create(uow, user_id, header(party_id=order_id, status="pending"), [LineItem(product.id, 1)])

        with pytest.raises(InvalidStateTransitionError):
            with unit_of_work() as uow:
                sales_order_service.delete(uow, order_id, user_id)
        assert stock_of(product.id) == 8

    def test_unknown_status_rejected(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            _create(tenant_a, "shipped", [LineItem(tenant_a["product"].id, 1)])

    def test_foreign_customer_rejected(self, db_session, tenant_a, tenant_b):
        with pytest.raises(NotFoundError):
            with unit_of_work() as uow:
                sales_order_service.create(
                    uow,
                    tenant_a["user"].id,
                    header(party_id=tenant_b["customer"].id, status="pending"),
                    [LineItem(tenant_a["product"].id, 1)],
                )
        assert db_session.query(SalesOrder).count() == 0


class TestSalesOrderTotals:
    def test_price_defaults_to_product_and_tax_applies(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "pending", [LineItem(product.id, 3)])
        order = sales_order_service.find_by_id(order_id, tenant_a["user"].id)

        assert order.lines[0].unit_price_cents == 300
        assert order.subtotal_cents == 900
        assert order.tax_cents == 171
        assert order.total_amount_cents == 1071

    def test_explicit_price_wins(self, db_session, tenant_a):
        product = tenant_a["product"]
        order_id = _create(tenant_a, "pending", [LineItem(product.id, 2, unit_amount_cents=250)])
        order = sales_order_service.find_by_id(order_id, tenant_a["user"].id)
        assert order.subtotal_cents == 500

    @pytest.mark.parametrize(
        "subtotal,bps,expected",
        [(0, 1900, 0), (100, 0, 0), (100, 1900, 19), (25, 1900, 5), (1, 5000, 1)],
    )
    def test_compute_tax_cents_rounds_half_up(self, subtotal, bps, expected):
        assert compute_tax_cents(subtotal, bps) == expected

    def test_list_is_newest_first_and_owner_scoped(self, db_session, tenant_a, tenant_b):
        first = _create(tenant_a, "pending", [LineItem(tenant_a["product"].id, 1)])
        second = _create(tenant_a, "pending", [LineItem(tenant_a["product"].id, 1)])
        _create(tenant_b, "pending", [LineItem(tenant_b["product"].id, 1)])

        ids = [o.id for o in sales_order_service.list_by_user(tenant_a["user"].id)]
        assert ids == [second, first]
