# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

"""
Supplier routes.

MULTI-TENANT: every call is scoped to g.current_user.id; another user's
supplier answers 404.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..models import Supplier
from ..responses import error_response, internal_error, success
from ..services import parties_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import SUPPLIER_WRITABLE_FIELDS, parse_party_payload

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers():
    suppliers = parties_service.list_parties(Supplier, g.current_user.id)
    return success([c.to_dict() for c in suppliers], "Suppliers retrieved")


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier(supplier_id: int):
    try:
        supplier = parties_service.get_party(Supplier, g.current_user.id, supplier_id)
    except InventoryError as e:
        return error_response(e)
    return success(supplier.to_dict(), "Supplier retrieved")


@suppliers_bp.post("")
@require_auth
def create_supplier():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_party_payload(payload, fields=SUPPLIER_WRITABLE_FIELDS)
        supplier = run_in_unit_of_work(
            lambda uow: parties_service.create_party(uow, Supplier, user_id, patch)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return internal_error()
    return success(supplier.to_dict(), "Supplier created", 201)


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier(supplier_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_party_payload(payload, fields=SUPPLIER_WRITABLE_FIELDS, partial=True)
        supplier = run_in_unit_of_work(
            lambda uow: parties_service.update_party(uow, Supplier, user_id, supplier_id, patch)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update supplier %s", supplier_id)
        return internal_error()
    return success(supplier.to_dict(), "Supplier updated")


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
def delete_supplier(supplier_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(
            lambda uow: parties_service.delete_party(uow, Supplier, user_id, supplier_id)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete supplier %s", supplier_id)
        return internal_error()
    return success(deleted, "Supplier deleted")
