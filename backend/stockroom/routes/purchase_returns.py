# Overview: Flask API routes for purchase returns; parses input and returns JSON responses.

"""
Purchase return routes.

MULTI-TENANT: every call is scoped to g.current_user.id; the parent
purchase order must belong to the caller.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..responses import error_response, internal_error, success
from ..services import purchase_return_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import parse_return_payload

purchase_returns_bp = Blueprint("purchase_returns", __name__, url_prefix="/api/purchase-returns")

PARENT_FIELD = "purchase_order_id"


@purchase_returns_bp.post("/")
@require_auth
def create_purchase_return():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_return_payload(payload, parent_field=PARENT_FIELD)
        purchase_return = run_in_unit_of_work(lambda uow: purchase_return_service.create(uow, user_id, header, lines))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create purchase return")
        return internal_error()
    return success(purchase_return.to_dict(include_lines=True), "Purchase return created", 201)


@purchase_returns_bp.get("/")
@require_auth
def list_purchase_returns():
    returns = purchase_return_service.list_by_user(g.current_user.id)
    return success([r.to_dict() for r in returns], "Purchase returns retrieved")


@purchase_returns_bp.get("/<int:return_id>")
@require_auth
def get_purchase_return(return_id: int):
    try:
        purchase_return = purchase_return_service.find_by_id(return_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success(purchase_return.to_dict(include_lines=True), "Purchase return retrieved")


@purchase_returns_bp.get("/<int:return_id>/lines")
@require_auth
def get_purchase_return_lines(return_id: int):
    try:
        lines = purchase_return_service.get_lines(return_id, g.current_user.id)
    except InventoryError as e:
        return error_response(e)
    return success([line.to_dict() for line in lines], "Purchase return lines retrieved")


@purchase_returns_bp.put("/<int:return_id>")
@require_auth
def update_purchase_return(return_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        header, lines = parse_return_payload(payload, parent_field=PARENT_FIELD, partial=True)
        purchase_return = run_in_unit_of_work(
            lambda uow: purchase_return_service.update(uow, return_id, user_id, header, lines)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update purchase return %s", return_id)
        return internal_error()
    return success(purchase_return.to_dict(include_lines=True), "Purchase return updated")


@purchase_returns_bp.delete("/<int:return_id>")
@require_auth
def delete_purchase_return(return_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(lambda uow: purchase_return_service.delete(uow, return_id, user_id))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete purchase return %s", return_id)
        return internal_error()
    return success(deleted, "Purchase return deleted")
