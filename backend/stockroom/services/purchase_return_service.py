# Overview: Service-layer operations for purchase returns; confirmed returns send goods back to the supplier.

"""
Purchase Return Engine

A purchase return references one of the caller's purchase orders.
Confirming (or completing) it removes each line from stock
(PURCHASE_RETURN). That outflow is guarded: stock is checked before any
write and the atomic adjustment refuses to go negative.

Leaving the confirmed state, dropping a product, or deleting the return
puts the quantity back (ADJUSTMENT).
"""

from __future__ import annotations

from ..models import PurchaseReturn, PurchaseReturnLine
from .document_engine import ReturnEngine
from .lookup_service import require_purchase_order
from .status_service import StatusKind
from .stock_mutation import PURCHASE_RETURN_POLICY


class PurchaseReturnEngine(ReturnEngine):
    label = "Purchase return"
    kind = StatusKind.PURCHASE_RETURN
    policy = PURCHASE_RETURN_POLICY
    header_model = PurchaseReturn
    line_model = PurchaseReturnLine
    party_attr = "purchase_order_id"
    date_attr = "return_date"

    def validate_party(self, session, user_id, party_id):
        require_purchase_order(session, user_id, party_id)


engine = PurchaseReturnEngine()

create = engine.create
update = engine.update
delete = engine.delete
find_by_id = engine.find_by_id
list_by_user = engine.list_by_user
get_lines = engine.get_lines
