# Overview: Service-layer operations for sales returns; confirmed returns put goods back into stock.

"""
Sales Return Engine

A sales return references one of the caller's sales orders. Confirming
(or completing) it adds each line back to stock (SALE_RETURN); leaving
that state, dropping a product, or deleting the return takes the
quantity back out (ADJUSTMENT).

Per-line status defaults to the return's status. Each product may be
listed once per return (DuplicateLineItemError).
"""

from __future__ import annotations

from ..models import SalesReturn, SalesReturnLine
from .document_engine import ReturnEngine
from .lookup_service import require_sales_order
from .status_service import StatusKind
from .stock_mutation import SALES_RETURN_POLICY


class SalesReturnEngine(ReturnEngine):
    label = "Sales return"
    kind = StatusKind.SALES_RETURN
    policy = SALES_RETURN_POLICY
    header_model = SalesReturn
    line_model = SalesReturnLine
    party_attr = "sales_order_id"
    date_attr = "return_date"

    def validate_party(self, session, user_id, party_id):
        require_sales_order(session, user_id, party_id)


engine = SalesReturnEngine()

create = engine.create
update = engine.update
delete = engine.delete
find_by_id = engine.find_by_id
list_by_user = engine.list_by_user
get_lines = engine.get_lines
