# Overview: Service-layer operations for reference lookups; owner-scoped existence checks consumed by the engines.

"""
Reference lookups.

Customers, suppliers, products and parent orders are read-only here.
A row owned by another user is reported exactly like a missing one
(NotFoundError), so tenants cannot discover each other's ids.
"""

from __future__ import annotations

from typing import Iterable

from ..exceptions import NotFoundError
from ..models import Customer, Product, PurchaseOrder, SalesOrder, Supplier


def _owned(session, model, row_id: int, user_id: int):
    return session.query(model).filter(model.id == row_id, model.user_id == user_id).first()


def require_customer(session, user_id: int, customer_id: int) -> Customer:
    customer = _owned(session, Customer, customer_id, user_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def require_supplier(session, user_id: int, supplier_id: int) -> Supplier:
    supplier = _owned(session, Supplier, supplier_id, user_id)
    if supplier is None:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def require_sales_order(session, user_id: int, sales_order_id: int) -> SalesOrder:
    order = _owned(session, SalesOrder, sales_order_id, user_id)
    if order is None:
        raise NotFoundError(f"Sales order {sales_order_id} not found")
    return order


def require_purchase_order(session, user_id: int, purchase_order_id: int) -> PurchaseOrder:
    order = _owned(session, PurchaseOrder, purchase_order_id, user_id)
    if order is None:
        raise NotFoundError(f"Purchase order {purchase_order_id} not found")
    return order


def require_products(session, user_id: int, product_ids: Iterable[int]) -> dict[int, Product]:
    """Load every product id for the owner in one query; any miss is a NotFoundError."""
    wanted = list(dict.fromkeys(product_ids))
    if not wanted:
        return {}
    rows = session.query(Product).filter(Product.user_id == user_id, Product.id.in_(wanted)).all()
    found = {p.id: p for p in rows}
    for product_id in wanted:
        if product_id not in found:
            raise NotFoundError(f"Product {product_id} not found")
    return found
