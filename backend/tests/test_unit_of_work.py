# Overview: Pytest coverage for the unit of work (atomicity, deadlines, error translation, retries).

"""
Unit of work tests.

A failure at any point inside a unit of work must leave headers, lines,
stock and ledger exactly as they were.
"""

import time

import pytest
from sqlalchemy.exc import OperationalError

from stockroom.exceptions import DuplicateLineItemError, PersistenceError, UnitOfWorkTimeoutError
from stockroom.models import Product, SalesOrder, SalesOrderLine, User
from stockroom.services import sales_order_service
from stockroom.services import stock_mutation
from stockroom.services.concurrency import run_in_unit_of_work, unit_of_work
from stockroom.services.stock_mutation import LineItem

from conftest import header, ledger_rows, stock_of


class TestAtomicity:
    def test_ledger_failure_rolls_back_everything(self, db_session, tenant_a, monkeypatch):
        product, other = tenant_a["product"], tenant_a["other"]
        real_record = stock_mutation.record_transaction
        calls = {"n": 0}

        def flaky_record(uow, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise RuntimeError("ledger unavailable")
            return real_record(uow, **kwargs)

        monkeypatch.setattr(stock_mutation, "record_transaction", flaky_record)

        with pytest.raises(RuntimeError):
            with unit_of_work() as uow:
                sales_order_service.create(
                    uow,
                    tenant_a["user"].id,
                    header(party_id=tenant_a["customer"].id, status="confirmed"),
                    [LineItem(product.id, 2), LineItem(other.id, 1)],
                )

        assert calls["n"] == 2
        assert stock_of(product.id) == 10
        assert stock_of(other.id) == 5
        assert ledger_rows() == []
        assert db_session.query(SalesOrder).count() == 0
        assert db_session.query(SalesOrderLine).count() == 0

    def test_deadline_abandons_unit_of_work(self, db_session, tenant_a):
        with pytest.raises(UnitOfWorkTimeoutError):
            with unit_of_work(timeout=0.01) as uow:
                uow.session.add(Product(user_id=tenant_a["user"].id, name="Late", quantity=0))
                uow.flush()
                time.sleep(0.05)

        assert db_session.query(Product).filter_by(name="Late").count() == 0


class TestErrorTranslation:
    def test_duplicate_line_constraint(self, db_session, tenant_a):
        product = tenant_a["product"]
        with unit_of_work() as uow:
            order_id = sales_order_service.create(
                uow,
                tenant_a["user"].id,
                header(party_id=tenant_a["customer"].id, status="pending"),
                [LineItem(product.id, 1)],
            ).id

        with pytest.raises(DuplicateLineItemError):
            with unit_of_work() as uow:
                uow.session.add(
                    SalesOrderLine(
                        sales_order_id=order_id,
                        product_id=product.id,
                        quantity=1,
                        unit_price_cents=300,
                        line_total_cents=300,
                    )
                )
                uow.flush()

        assert db_session.query(SalesOrderLine).count() == 1

    def test_other_constraints_become_persistence_error(self, db_session, tenant_a):
        with pytest.raises(PersistenceError):
            with unit_of_work() as uow:
                uow.session.add(User(email=tenant_a["user"].email, is_active=True))
                uow.flush()

        assert db_session.query(User).count() == 1


class TestRetry:
    def test_operational_error_is_retried(self, db_session):
        attempts = []

        def work(uow):
            attempts.append(1)
            if len(attempts) == 1:
                raise OperationalError("UPDATE products", {}, Exception("database is locked"))
            return "done"

        assert run_in_unit_of_work(work, attempts=3, backoff_base=0) == "done"
        assert len(attempts) == 2

    def test_gives_up_after_attempts(self, db_session):
        def work(uow):
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))

        with pytest.raises(PersistenceError):
            run_in_unit_of_work(work, attempts=2, backoff_base=0)
