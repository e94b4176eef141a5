# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

"""
Purchase order routes.

MULTI-TENANT: every call is scoped to g.current_user.id.
Mutations run inside one unit of work each; any failure rolls back
header, lines, stock and ledger together.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..responses import error_response, internal_error, success
from ..services import purchase_order_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import parse_order_payload

purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

PARTY_FIELD = "supplier_id"
AMOUNT_FIELD = "unit_cost_cents"


@purchase_orders_bp.post("/")
@require_auth
def create_purchase_order():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_order_payload(payload, party_field=PARTY_FIELD, amount_field=AMOUNT_FIELD)
        order = run_in_unit_of_work(lambda uow: purchase_order_service.create(uow, user_id, header, lines))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return internal_error()
    return success(order.to_dict(include_lines=True), "Purchase order created", 201)


@purchase_orders_bp.get("/")
@require_auth
def list_purchase_orders():
    orders = purchase_order_service.list_by_user(g.current_user.id)
    return success([o.to_dict() for o in orders], "Purchase orders retrieved")


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
def get_purchase_order(order_id: int):
    try:
        order = purchase_order_service.find_by_id(order_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(order.to_dict(include_lines=True), "Purchase order retrieved")


@purchase_orders_bp.get("/<int:order_id>/lines")
@require_auth
def get_purchase_order_lines(order_id: int):
    try:
        lines = purchase_order_service.get_lines(order_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success([line.to_dict() for line in lines], "Purchase order lines retrieved")


@purchase_orders_bp.put("/<int:order_id>")
@require_auth
def update_purchase_order(order_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_order_payload(
            payload, party_field=PARTY_FIELD, amount_field=AMOUNT_FIELD, partial=True
        )
        order = run_in_unit_of_work(
            lambda uow: purchase_order_service.update(uow, order_id, user_id, header, lines)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update purchase order %s", order_id)
        return internal_error()
    return success(order.to_dict(include_lines=True), "Purchase order updated")


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
def delete_purchase_order(order_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(lambda uow: purchase_order_service.delete(uow, order_id, user_id))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete purchase order %s", order_id)
        return internal_error()
    return success(deleted, "Purchase order deleted")
