# Overview: Flask API routes for sales returns; parses input and returns JSON responses.

"""
Sales return routes.

MULTI-TENANT: every call is scoped to g.current_user.id; the parent
sales order must belong to the caller.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..responses import error_response, internal_error, success
from ..services import sales_return_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import parse_return_payload

sales_returns_bp = Blueprint("sales_returns", __name__, url_prefix="/api/sales-returns")

PARENT_FIELD = "sales_order_id"


@sales_returns_bp.post("/")
@require_auth
def create_sales_return():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_return_payload(payload, parent_field=PARENT_FIELD)
        sales_return = run_in_unit_of_work(lambda uow: sales_return_service.create(uow, user_id, header, lines))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sales return")
        return internal_error()
    return success(sales_return.to_dict(include_lines=True), "Sales return created", 201)


@sales_returns_bp.get("/")
@require_auth
def list_sales_returns():
    returns = sales_return_service.list_by_user(g.current_user.id)
    return success([r.to_dict() for r in returns], "Sales returns retrieved")


@sales_returns_bp.get("/<int:return_id>")
@require_auth
def get_sales_return(return_id: int):
    try:
        sales_return = sales_return_service.find_by_id(return_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(sales_return.to_dict(include_lines=True), "Sales return retrieved")


@sales_returns_bp.get("/<int:return_id>/lines")
@require_auth
def get_sales_return_lines(return_id: int):
    try:
        lines = sales_return_service.get_lines(return_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success([line.to_dict() for line in lines], "Sales return lines retrieved")


@sales_returns_bp.put("/<int:return_id>")
@require_auth
def update_sales_return(return_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_return_payload(payload, parent_field=PARENT_FIELD, partial=True)
        sales_return = run_in_unit_of_work(
            lambda uow: sales_return_service.update(uow, return_id, user_id, header, lines)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sales return %s", return_id)
        return internal_error()
    return success(sales_return.to_dict(include_lines=True), "Sales return updated")


@sales_returns_bp.delete("/<int:return_id>")
@require_auth
def delete_sales_return(return_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(lambda uow: sales_return_service.delete(uow, return_id, user_id))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete sales return %s", return_id)
        return internal_error()
    return success(deleted, "Sales return deleted")
