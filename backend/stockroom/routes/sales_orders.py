# Overview: Flask API routes for sales orders; parses input and returns JSON responses.

"""
Sales order routes.

MULTI-TENANT: every call is scoped to g.current_user.id.
Mutations run inside one unit of work each; any failure rolls back
header, lines, stock and ledger together.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..responses import error_response, internal_error, success
from ..services import sales_order_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import parse_order_payload

sales_orders_bp = Blueprint("sales_orders", __name__, url_prefix="/api/sales-orders")

PARTY_FIELD = "customer_id"
AMOUNT_FIELD = "unit_price_cents"


@sales_orders_bp.post("/")
@require_auth
def create_sales_order():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_order_payload(payload, party_field=PARTY_FIELD, amount_field=AMOUNT_FIELD)
        order = run_in_unit_of_work(lambda uow: sales_order_service.create(uow, user_id, header, lines))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sales order")
        return internal_error()
    return success(order.to_dict(include_lines=True), "Sales order created", 201)


@sales_orders_bp.get("/")
@require_auth
def list_sales_orders():
    orders = sales_order_service.list_by_user(g.current_user.id)
    return success([o.to_dict() for o in orders], "Sales orders retrieved")


@sales_orders_bp.get("/<int:order_id>")
@require_auth
def get_sales_order(order_id: int):
    try:
        order = sales_order_service.find_by_id(order_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(order.to_dict(include_lines=True), "Sales order retrieved")


@sales_orders_bp.get("/<int:order_id>/lines")
@require_auth
def get_sales_order_lines(order_id: int):
    try:
        lines = sales_order_service.get_lines(order_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success([line.to_dict() for line in lines], "Sales order lines retrieved")


@sales_orders_bp.put("/<int:order_id>")
@require_auth
def update_sales_order(order_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_order_payload(
            payload, party_field=PARTY_FIELD, amount_field=AMOUNT_FIELD, partial=True
        )
        order = run_in_unit_of_work(
            lambda uow: sales_order_service.update(uow, order_id, user_id, header, lines)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sales order %s", order_id)
        return internal_error()
    return success(order.to_dict(include_lines=True), "Sales order updated")


@sales_orders_bp.delete("/<int:order_id>")
@require_auth
def delete_sales_order(order_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(lambda uow: sales_order_service.delete(uow, order_id, user_id))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete sales order %s", order_id)
        return internal_error()
    return success(deleted, "Sales order deleted")
