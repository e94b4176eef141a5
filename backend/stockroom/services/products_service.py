# Overview: Service-layer operations for products; owner-scoped catalogue and manual stock adjustments.

"""
Products Service

MULTI-TENANT: every product belongs to one user; all reads and writes
filter by that user.

STOCK:
- The opening quantity on create is recorded as an ADJUSTMENT ledger row.
- quantity is never patched directly; manual changes go through
  adjust_product_stock (ADJUSTMENT or LOSS), guarded against going negative.
"""

from __future__ import annotations

import logging

from ..exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    InventoryTransaction,
    Product,
    PurchaseOrderLine,
    PurchaseReturnLine,
    SalesOrderLine,
    SalesReturnLine,
)
from .concurrency import UnitOfWork
from .ledger_service import TxType, record_transaction
from .stock_service import adjust_stock, get_product_for_user

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "description", "barcode", "unit_cost_cents", "unit_price_cents"}

MANUAL_ADJUSTMENT_TYPES = {TxType.ADJUSTMENT, TxType.LOSS}

_LINE_MODELS = (SalesOrderLine, PurchaseOrderLine, SalesReturnLine, PurchaseReturnLine)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_unique(session, user_id: int, *, name: str | None, barcode: str | None, exclude_id: int | None = None):
    checks = (("name", name), ("barcode", barcode))
    for field, value in checks:
        if value is None:
            continue
        query = session.query(Product.id).filter(Product.user_id == user_id, getattr(Product, field) == value)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first() is not None:
            raise ValidationError(f"A product with this {field} already exists")


def list_products(user_id: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter_by(user_id=user_id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def get_product(user_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, user_id=user_id).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def create_product(uow: UnitOfWork, user_id: int, patch: dict) -> Product:
    """Create a product; a non-zero opening quantity goes through the ledger."""
    session = uow.session
    _ensure_unique(session, user_id, name=patch.get("name"), barcode=patch.get("barcode"))

    opening = int(patch.get("quantity") or 0)
    product = Product(user_id=user_id, quantity=0)
    apply_product_patch(product, patch)
    session.add(product)
    uow.flush()

    if opening:
        previous, new = adjust_stock(uow, user_id=user_id, product_id=product.id, delta=opening)
        record_transaction(
            uow,
            user_id=user_id,
            product_id=product.id,
            quantity=opening,
            transaction_type=TxType.ADJUSTMENT,
            previous_stock=previous,
            new_stock=new,
        )

    logger.info("Product %s created for user %s (opening stock %d)", product.id, user_id, opening)
    return product


def update_product(uow: UnitOfWork, user_id: int, product_id: int, patch: dict) -> Product:
    session = uow.session
    product = get_product_for_user(uow, user_id, product_id, lock=True)
    _ensure_unique(
        session,
        user_id,
        name=patch.get("name"),
        barcode=patch.get("barcode"),
        exclude_id=product.id,
    )
    apply_product_patch(product, patch)
    uow.flush()
    return product


def delete_product(uow: UnitOfWork, user_id: int, product_id: int) -> dict:
    """
    Delete a product that no document or ledger row references.

    Products with history are kept so the ledger stays complete.
    """
    session = uow.session
    product = get_product_for_user(uow, user_id, product_id, lock=True)

    for model in _LINE_MODELS:
        if session.query(model.id).filter(model.product_id == product.id).first() is not None:
            raise InvalidStateTransitionError("Product is used by orders or returns and cannot be deleted")
    if session.query(InventoryTransaction.id).filter_by(product_id=product.id).first() is not None:
        raise InvalidStateTransitionError("Product has stock history and cannot be deleted")

    snapshot = product.to_dict()
    session.delete(product)
    uow.flush()
    logger.info("Product %s deleted for user %s", product_id, user_id)
    return snapshot


def adjust_product_stock(
    uow: UnitOfWork,
    user_id: int,
    product_id: int,
    quantity: int,
    transaction_type: TxType = TxType.ADJUSTMENT,
) -> InventoryTransaction:
    """
    Manual stock correction.

    - quantity is a signed, non-zero delta
    - LOSS must be negative
    - never drives stock negative (InsufficientStockError)
    """
    if transaction_type not in MANUAL_ADJUSTMENT_TYPES:
        raise ValidationError("transaction_type must be ADJUSTMENT or LOSS")
    if quantity == 0:
        raise ValidationError("quantity must be non-zero")
    if transaction_type == TxType.LOSS and quantity > 0:
        raise ValidationError("LOSS adjustments must be negative")

    previous, new = adjust_stock(uow, user_id=user_id, product_id=product_id, delta=quantity, guard=True)
    entry = record_transaction(
        uow,
        user_id=user_id,
        product_id=product_id,
        quantity=quantity,
        transaction_type=transaction_type,
        previous_stock=previous,
        new_stock=new,
    )
    logger.info(
        "Manual %s of %d for product %s (user %s): %d -> %d",
        transaction_type.name, quantity, product_id, user_id, previous, new,
    )
    return entry
