# Overview: Service-layer operations for purchase orders; stock arrives on confirmation and unit cost ratchets up.

"""
Purchase Order Engine

LIFECYCLE:
1. pending: inert
2. confirmed: every line added to stock (CONFIRMED_PURCHASE_ORDER)

RULES:
- confirmed -> pending is refused ("cannot un-confirm a purchase order").
- Editing a confirmed order:
    product added       -> full quantity, CONFIRMED_PURCHASE_ORDER
    quantity changed    -> the delta only, ADJUSTMENT
    product removed     -> old quantity taken back out, CANCELLED_PURCHASE_ORDER
- Confirmed lines ratchet Product.unit_cost_cents upward, never down.
- Delete of a confirmed order takes every line back out of stock
  (CANCELLED_PURCHASE_ORDER). That outflow is not guarded: goods already
  sold are not un-sold by deleting their purchase.
"""

from __future__ import annotations

from ..models import PurchaseOrder, PurchaseOrderLine
from .document_engine import OrderEngine
from .lookup_service import require_supplier
from .status_service import StatusKind
from .stock_mutation import PURCHASE_ORDER_POLICY


class PurchaseOrderEngine(OrderEngine):
    label = "Purchase order"
    kind = StatusKind.PURCHASE_ORDER
    policy = PURCHASE_ORDER_POLICY
    header_model = PurchaseOrder
    line_model = PurchaseOrderLine
    party_attr = "supplier_id"
    date_attr = "order_date"
    amount_attr = "unit_cost_cents"
    tax_config_key = "PURCHASE_TAX_RATE_BPS"

    def validate_party(self, session, user_id, party_id):
        require_supplier(session, user_id, party_id)


engine = PurchaseOrderEngine()

create = engine.create
update = engine.update
delete = engine.delete
find_by_id = engine.find_by_id
list_by_user = engine.list_by_user
get_lines = engine.get_lines
