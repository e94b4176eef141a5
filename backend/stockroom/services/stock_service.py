# Overview: Service-layer operations for stock; the only writer of Product.quantity and unit cost.

from __future__ import annotations

import logging

from sqlalchemy import select, update

from ..exceptions import InsufficientStockError, NotFoundError
from ..models import Product
from .concurrency import UnitOfWork, lock_for_update

"""
Stock Store Invariants (authoritative)

- Product.quantity is a stored counter changed only through adjust_stock.
- Each adjustment is ONE statement:
    UPDATE products SET quantity = quantity + :delta
    WHERE id = :id AND user_id = :user_id [AND quantity + :delta >= 0]
    RETURNING quantity
  so concurrent adjustments to the same product never lose updates.
- previous stock is derived as new - delta from the returned value, never
  from an earlier read.
- Guarded outflows (guard=True) fail with InsufficientStockError instead of
  driving the counter negative; nothing is written in that case.
- unit_cost_cents only moves upward (ratchet_unit_cost).
- Every call is scoped to the owning user; a product owned by someone else
  is indistinguishable from a missing one.
"""

logger = logging.getLogger(__name__)


def get_product_for_user(uow: UnitOfWork, user_id: int, product_id: int, *, lock: bool = False) -> Product:
    query = uow.session.query(Product).filter(Product.id == product_id, Product.user_id == user_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_quantity(uow: UnitOfWork, user_id: int, product_id: int) -> int:
    qty = uow.session.execute(
        select(Product.quantity).where(Product.id == product_id, Product.user_id == user_id)
    ).scalar_one_or_none()
    if qty is None:
        raise NotFoundError(f"Product {product_id} not found")
    return int(qty)


def has_sufficient_stock(uow: UnitOfWork, user_id: int, product_id: int, required: int) -> bool:
    """Advisory read; the authoritative check is the guarded UPDATE in adjust_stock."""
    return get_quantity(uow, user_id, product_id) >= required


def adjust_stock(
    uow: UnitOfWork,
    *,
    user_id: int,
    product_id: int,
    delta: int,
    guard: bool = False,
) -> tuple[int, int]:
    """
    Atomically add delta (signed) to a product's quantity.

    Returns:
        (previous_stock, new_stock)

    Raises:
        NotFoundError: product absent or owned by another user
        InsufficientStockError: guard=True and the result would be negative
    """
    uow.checkpoint()

    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.user_id == user_id)
        .values(quantity=Product.quantity + delta)
        .returning(Product.quantity)
        .execution_options(synchronize_session=False)
    )
    if guard and delta < 0:
        stmt = stmt.where(Product.quantity + delta >= 0)

    new_stock = uow.session.execute(stmt).scalar_one_or_none()

    if new_stock is None:
        # Either the product is not ours or the guard refused the outflow
        available = uow.session.execute(
            select(Product.quantity).where(Product.id == product_id, Product.user_id == user_id)
        ).scalar_one_or_none()
        if available is None:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info(
            "Refused outflow of %d for product %s (available %s)", -delta, product_id, available
        )
        raise InsufficientStockError(product_id, requested=-delta, available=int(available))

    _expire_cached_quantity(uow, product_id)

    new_stock = int(new_stock)
    return new_stock - delta, new_stock


def ratchet_unit_cost(uow: UnitOfWork, *, user_id: int, product_id: int, unit_cost_cents: int) -> bool:
    """
    Raise unit_cost_cents to unit_cost_cents if it is currently lower.

    Returns True when the stored cost changed.
    """
    result = uow.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.user_id == user_id,
            Product.unit_cost_cents < unit_cost_cents,
        )
        .values(unit_cost_cents=unit_cost_cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        _expire_cached_quantity(uow, product_id, attrs=("unit_cost_cents",))
        return True
    return False


def _expire_cached_quantity(uow: UnitOfWork, product_id: int, attrs=("quantity",)) -> None:
    # Keep any Product already loaded in the session in step with the store
    for obj in uow.session.identity_map.values():
        if isinstance(obj, Product) and obj.id == product_id:
            uow.session.expire(obj, list(attrs))
