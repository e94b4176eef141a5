# Overview: Pytest coverage for sales and purchase returns.

"""
Return tests.

Verifies:
- confirmed purchase returns take stock out (PURCHASE_RETURN)
- confirmed sales returns put stock back (SALE_RETURN)
- completed counts as applied; confirmed -> completed is a no-op for stock
- leaving the applied state and deleting reverse with ADJUSTMENT
- a product listed twice fails with no writes
"""

import pytest

from stockroom.exceptions import DuplicateLineItemError, InsufficientStockError, NotFoundError
from stockroom.models import PurchaseReturn, SalesReturn
from stockroom.services import (
    purchase_order_service,
    purchase_return_service,
    sales_order_service,
    sales_return_service,
)
from stockroom.services.concurrency import unit_of_work
from stockroom.services.ledger_service import TxType
from stockroom.services.status_service import ReturnStatus, StatusKind, get_status_row
from stockroom.services.stock_mutation import LineItem

from conftest import header, ledger_rows, stock_of


@pytest.fixture
def purchase_order_id(tenant_a):
    with unit_of_work() as uow:
        order = purchase_order_service.create(
            uow,
            tenant_a["user"].id,
            header(party_id=tenant_a["supplier"].id, status="pending"),
            [LineItem(tenant_a["product"].id, 5)],
        )
        return order.id


@pytest.fixture
def sales_order_id(tenant_a):
    with unit_of_work() as uow:
        order = sales_order_service.create(
            uow,
            tenant_a["user"].id,
            header(party_id=tenant_a["customer"].id, status="pending"),
            [LineItem(tenant_a["product"].id, 5)],
        )
        return order.id


class TestPurchaseReturns:
    def test_confirmed_return_takes_stock_out(self, db_session, tenant_a, purchase_order_id):
        product = tenant_a["product"]
        with unit_of_work() as uow:
            purchase_return_service.create(
                uow, tenant_a["user"].id, header(party_id=purchase_order_id, status="confirmed"),
                [LineItem(product.id, 2)],
            )

        assert stock_of(product.id) == 8
        [row] = ledger_rows(product.id)
        assert row.transaction_type_id == TxType.PURCHASE_RETURN
        assert (row.quantity, row.previous_stock, row.new_stock) == (-2, 10, 8)

    def test_duplicate_line_writes_nothing(self, db_session, tenant_a, purchase_order_id):
        product = tenant_a["product"]
        with pytest.raises(DuplicateLineItemError) as exc:
            with unit_of_work() as uow:
                purchase_return_service.create(
                    uow, tenant_a["user"].id, header(party_id=purchase_order_id, status="confirmed"),
                    [LineItem(product.id, 1), LineItem(product.id, 1)],
                )

        assert exc.value.product_id == product.id
        assert stock_of(product.id) == 10
        assert ledger_rows() == []
        assert db_session.query(PurchaseReturn).count() == 0

    def test_return_is_guarded(self, db_session, tenant_a, purchase_order_id):
        with pytest.raises(InsufficientStockError):
            with unit_of_work() as uow:
                purchase_return_service.create(
                    uow, tenant_a["user"].id, header(party_id=purchase_order_id, status="confirmed"),
                    [LineItem(tenant_a["product"].id, 11)],
                )
        assert stock_of(tenant_a["product"].id) == 10
        assert db_session.query(PurchaseReturn).count() == 0

    def test_delete_confirmed_return_puts_stock_back(self, db_session, tenant_a, purchase_order_id):
        product = tenant_a["product"]
        user_id = tenant_a["user"].id
        with unit_of_work() as uow:
            return_id = purchase_return_service.create(
                uow, user_id, header(party_id=purchase_order_id, status="completed"),
                [LineItem(product.id, 3)],
            ).id
        with unit_of_work() as uow:
            purchase_return_service.delete(uow, return_id, user_id)

        assert stock_of(product.id) == 10
        assert [(r.transaction_type_id, r.quantity) for r in ledger_rows()] == [
            (TxType.PURCHASE_RETURN, -3),
            (TxType.ADJUSTMENT, 3),
        ]

    def test_raising_confirmed_quantity_is_guarded(self, db_session, tenant_a, purchase_order_id):
        product = tenant_a["product"]
        user_id = tenant_a["user"].id
        with unit_of_work() as uow:
            return_id = purchase_return_service.create(
                uow, user_id, header(party_id=purchase_order_id, status="confirmed"),
                [LineItem(product.id, 2)],
            ).id
        assert stock_of(product.id) == 8

        # 9 more out of 8 on hand
        with pytest.raises(InsufficientStockError) as exc:
            with unit_of_work() as uow:
                purchase_return_service.update(uow, return_id, user_id, header(), [LineItem(product.id, 11)])

        assert (exc.value.requested, exc.value.available) == (9, 8)
        assert stock_of(product.id) == 8
        assert len(ledger_rows()) == 1
        [line] = purchase_return_service.get_lines(return_id, user_id)
        assert line.quantity == 2

    def test_unconfirm_puts_stock_back(self, db_session, tenant_a, purchase_order_id):
        product = tenant_a["product"]
        user_id = tenant_a["user"].id
        with unit_of_work() as uow:
            return_id = purchase_return_service.create(
                uow, user_id, header(party_id=purchase_order_id, status="confirmed"),
                [LineItem(product.id, 2)],
            ).id
        with unit_of_work() as uow:
            purchase_return_service.update(uow, return_id, user_id, header(status="pending"))

        assert stock_of(product.id) == 10
        assert [(r.transaction_type_id, r.quantity) for r in ledger_rows()] == [
            (TxType.PURCHASE_RETURN, -2),
            (TxType.ADJUSTMENT, 2),
        ]

    def test_dropped_product_is_reversed(self, db_session, tenant_a, purchase_order_id):
        widget, gadget = tenant_a["product"], tenant_a["other"]
        user_id = tenant_a["user"].id
        with unit_of_work() as uow:
            return_id = purchase_return_service.create(
                uow, user_id, header(party_id=purchase_order_id, status="confirmed"),
                [LineItem(widget.id, 2), LineItem(gadget.id, 1)],
            ).id
        assert (stock_of(widget.id), stock_of(gadget.id)) == (8, 4)

        with unit_of_work() as uow:
            purchase_return_service.update(uow, return_id, user_id, header(), [LineItem(widget.id, 2)])

        assert (stock_of(widget.id), stock_of(gadget.id)) == (8, 5)
        assert len(ledger_rows(widget.id)) == 1
        assert [(r.transaction_type_id, r.quantity) for r in ledger_rows(gadget.id)] == [
            (TxType.PURCHASE_RETURN, -1),
            (TxType.ADJUSTMENT, 1),
        ]
        assert [line.product_id for line in purchase_return_service.get_lines(return_id, user_id)] == [widget.id]

    def test_parent_must_belong_to_user(self, db_session, tenant_a, tenant_b, purchase_order_id):
        with pytest.raises(NotFoundError):
            with unit_of_work() as uow:
                purchase_return_service.create(
                    uow, tenant_b["user"].id, header(party_id=purchase_order_id, status="pending"),
                    [LineItem(tenant_b["product"].id, 1)],
                )


class TestSalesReturns:
    def _create(self, tenant, sales_order_id, status, quantity=2):
        with unit_of_work() as uow:
            return sales_return_service.create(
                uow, tenant["user"].id, header(party_id=sales_order_id, status=status),
                [LineItem(tenant["product"].id, quantity)],
            ).id

    def test_confirmed_return_adds_stock(self, db_session, tenant_a, sales_order_id):
        product = tenant_a["product"]
        self._create(tenant_a, sales_order_id, "confirmed")

        assert stock_of(product.id) == 12
        [row] = ledger_rows(product.id)
        assert row.transaction_type_id == TxType.SALE_RETURN
        assert row.quantity == 2

    def test_quantity_change_and_unconfirm(self, db_session, tenant_a, sales_order_id):
        product = tenant_a["product"]
        user_id = tenant_a["user"].id
        return_id = self._create(tenant_a, sales_order_id, "confirmed")

        with unit_of_work() as uow:
            sales_return_service.update(uow, return_id, user_id, header(), [LineItem(product.id, 3)])
        assert stock_of(product.id) == 13

        with unit_of_work() as uow:
            sales_return_service.update(uow, return_id, user_id, header(status="pending"))
        assert stock_of(product.id) == 10

        assert [(r.transaction_type_id, r.quantity) for r in ledger_rows()] == [
            (TxType.SALE_RETURN, 2),
            (TxType.SALE_RETURN, 1),
            (TxType.ADJUSTMENT, -3),
        ]

    def test_confirmed_to_completed_moves_nothing(self, db_session, tenant_a, sales_order_id):
        return_id = self._create(tenant_a, sales_order_id, "confirmed")
        with unit_of_work() as uow:
            sales_return_service.update(uow, return_id, tenant_a["user"].id, header(status="completed"))

        assert stock_of(tenant_a["product"].id) == 12
        assert len(ledger_rows()) == 1

    def test_line_status_follows_header(self, db_session, tenant_a, sales_order_id):
        user_id = tenant_a["user"].id
        return_id = self._create(tenant_a, sales_order_id, "pending")
        pending = get_status_row(db_session, StatusKind.SALES_RETURN, ReturnStatus.PENDING)
        confirmed = get_status_row(db_session, StatusKind.SALES_RETURN, ReturnStatus.CONFIRMED)

        [line] = sales_return_service.get_lines(return_id, user_id)
        assert line.status_id == pending.id

        with unit_of_work() as uow:
            sales_return_service.update(uow, return_id, user_id, header(status="confirmed"))

        [line] = sales_return_service.get_lines(return_id, user_id)
        assert line.status_id == confirmed.id

    def test_delete_confirmed_return_takes_stock_out(self, db_session, tenant_a, sales_order_id):
        user_id = tenant_a["user"].id
        return_id = self._create(tenant_a, sales_order_id, "confirmed", quantity=4)
        with unit_of_work() as uow:
            sales_return_service.delete(uow, return_id, user_id)

        assert stock_of(tenant_a["product"].id) == 10
        assert ledger_rows()[-1].transaction_type_id == TxType.ADJUSTMENT
        assert db_session.query(SalesReturn).count() == 0
