# Overview: Service-layer operations for sales orders; stock leaves on confirmation and comes back on delete.

"""
Sales Order Engine

LIFECYCLE:
1. pending: inert; header and lines may be edited freely
2. confirmed: every line taken out of stock (CONFIRMED_SALES_ORDER)

RULES:
- Outflows are guarded: confirming more than is on hand fails with
  InsufficientStockError and writes nothing.
- A confirmed sales order is immutable; any update is refused with
  InvalidStateTransitionError. It can only be deleted, which puts every
  line back (CANCELLED_SALES_ORDER).
- total = subtotal + flat tax (SALES_TAX_RATE_BPS).
"""

from __future__ import annotations

from ..models import SalesOrder, SalesOrderLine
from .document_engine import OrderEngine
from .lookup_service import require_customer
from .status_service import StatusKind
from .stock_mutation import SALES_ORDER_POLICY


class SalesOrderEngine(OrderEngine):
    label = "Sales order"
    kind = StatusKind.SALES_ORDER
    policy = SALES_ORDER_POLICY
    header_model = SalesOrder
    line_model = SalesOrderLine
    party_attr = "customer_id"
    date_attr = "order_date"
    amount_attr = "unit_price_cents"
    tax_config_key = "SALES_TAX_RATE_BPS"

    def validate_party(self, session, user_id, party_id):
        require_customer(session, user_id, party_id)


engine = SalesOrderEngine()

create = engine.create
update = engine.update
delete = engine.delete
find_by_id = engine.find_by_id
list_by_user = engine.list_by_user
get_lines = engine.get_lines
