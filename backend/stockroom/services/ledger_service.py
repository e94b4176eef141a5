# Overview: Service-layer operations for ledger; append-only inventory transaction log and its read API.

from __future__ import annotations

from datetime import timedelta
from enum import IntEnum

from sqlalchemy import func, select

from ..exceptions import NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryTransaction, Product, TransactionType
from ..time_utils import utcnow
from .concurrency import UnitOfWork

"""
Inventory Ledger Invariants (authoritative)

- Append-only: rows are inserted, never updated or deleted.
- new_stock = previous_stock + quantity holds for every row (also a DB CHECK).
- Rows are written in the same unit of work as the stock change they
  describe; a failed ledger write rolls back the stock write with it.
- Callers that just adjusted stock pass previous_stock/new_stock
  explicitly. Without them the ledger re-reads current stock and treats
  it as the post-change value.
"""


class TxType(IntEnum):
    CONFIRMED_PURCHASE_ORDER = 1
    CANCELLED_PURCHASE_ORDER = 2
    CONFIRMED_SALES_ORDER = 3
    CANCELLED_SALES_ORDER = 4
    SALE_RETURN = 5
    CANCELLED_SALE_RETURN = 6
    PURCHASE_RETURN = 7
    CANCELLED_PURCHASE_RETURN = 8
    ADJUSTMENT = 9
    LOSS = 10


TX_TYPE_DESCRIPTIONS = {
    TxType.CONFIRMED_PURCHASE_ORDER: "Stock received on a confirmed purchase order",
    TxType.CANCELLED_PURCHASE_ORDER: "Purchase order stock reversed",
    TxType.CONFIRMED_SALES_ORDER: "Stock sold on a confirmed sales order",
    TxType.CANCELLED_SALES_ORDER: "Sales order stock reversed",
    TxType.SALE_RETURN: "Goods returned by a customer",
    TxType.CANCELLED_SALE_RETURN: "Sales return reversed",
    TxType.PURCHASE_RETURN: "Goods returned to a supplier",
    TxType.CANCELLED_PURCHASE_RETURN: "Purchase return reversed",
    TxType.ADJUSTMENT: "Manual or corrective adjustment",
    TxType.LOSS: "Shrinkage, damage or theft",
}


def record_transaction(
    uow: UnitOfWork,
    *,
    user_id: int,
    product_id: int,
    quantity: int,
    transaction_type: TxType,
    previous_stock: int | None = None,
    new_stock: int | None = None,
) -> InventoryTransaction:
    """
    Append one ledger row.

    - No stock mutation here; pair with stock_service.adjust_stock.
    - Supplying only one of previous_stock/new_stock derives the other.
    """
    if previous_stock is None and new_stock is None:
        current = uow.session.execute(
            select(Product.quantity).where(Product.id == product_id, Product.user_id == user_id)
        ).scalar_one_or_none()
        if current is None:
            raise NotFoundError(f"Product {product_id} not found")
        new_stock = int(current)
        previous_stock = new_stock - quantity
    elif new_stock is None:
        new_stock = previous_stock + quantity
    elif previous_stock is None:
        previous_stock = new_stock - quantity

    if new_stock != previous_stock + quantity:
        raise ValidationError("Ledger entry does not balance (new_stock != previous_stock + quantity)")

    entry = InventoryTransaction(
        user_id=user_id,
        product_id=product_id,
        transaction_type_id=int(transaction_type),
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
    )
    uow.session.add(entry)
    uow.session.flush()  # ensures entry.id is assigned without committing
    return entry


def get_product_history(user_id: int, product_id: int) -> list[InventoryTransaction]:
    product = db.session.query(Product).filter_by(id=product_id, user_id=user_id).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return (
        db.session.query(InventoryTransaction)
        .filter_by(user_id=user_id, product_id=product_id)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .all()
    )


def list_user_transactions(user_id: int, *, limit: int = 100, offset: int = 0) -> list[InventoryTransaction]:
    if limit <= 0 or offset < 0:
        raise ValidationError("limit must be positive and offset non-negative")
    return (
        db.session.query(InventoryTransaction)
        .filter_by(user_id=user_id)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def list_transaction_types() -> list[TransactionType]:
    return db.session.query(TransactionType).order_by(TransactionType.id).all()


def confirmed_sales_by_product(days: int = 90) -> list[dict]:
    """
    Daily sold quantities per product, plus current stock.

    Feed for the forecasting service; spans all users. Quantities are
    reported positive (ledger deltas for sales are negative).
    """
    since = utcnow() - timedelta(days=days)
    day = func.date(InventoryTransaction.created_at)
    rows = (
        db.session.query(
            InventoryTransaction.product_id,
            Product.user_id,
            Product.name,
            Product.quantity,
            day.label("day"),
            func.sum(-InventoryTransaction.quantity).label("sold"),
        )
        .join(Product, Product.id == InventoryTransaction.product_id)
        .filter(
            InventoryTransaction.transaction_type_id == int(TxType.CONFIRMED_SALES_ORDER),
            InventoryTransaction.created_at >= since,
        )
        .group_by(InventoryTransaction.product_id, Product.user_id, Product.name, Product.quantity, day)
        .order_by(InventoryTransaction.product_id, day)
        .all()
    )

    by_product: dict[int, dict] = {}
    for product_id, user_id, name, quantity, sold_day, sold in rows:
        item = by_product.setdefault(
            product_id,
            {
                "product_id": product_id,
                "user_id": user_id,
                "product_name": name,
                "current_stock": quantity,
                "sales": [],
            },
        )
        item["sales"].append({"date": str(sold_day), "quantity": int(sold or 0)})
    return list(by_product.values())


def seed_transaction_types(session) -> int:
    """Insert missing TransactionType rows. Safe to call repeatedly."""
    existing = {row.id for row in session.query(TransactionType).all()}
    created = 0
    for tx_type in TxType:
        if tx_type.value not in existing:
            session.add(
                TransactionType(
                    id=tx_type.value,
                    name=tx_type.name,
                    description=TX_TYPE_DESCRIPTIONS[tx_type],
                )
            )
            created += 1
    session.flush()
    return created
