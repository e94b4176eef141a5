# Overview: Flask API routes for customers; parses input and returns JSON responses.

"""
Customer routes.

MULTI-TENANT: every call is scoped to g.current_user.id; another user's
customer answers 404.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError
from ..models import Customer
from ..responses import error_response, internal_error, success
from ..services import parties_service
from ..services.concurrency import run_in_unit_of_work
from ..validation import CUSTOMER_WRITABLE_FIELDS, parse_party_payload

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers():
    customers = parties_service.list_parties(Customer, g.current_user.id)
    return success([c.to_dict() for c in customers], "Customers retrieved")


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer(customer_id: int):
    try:
        customer = parties_service.get_party(Customer, g.current_user.id, customer_id)
    except InventoryError as e:
        return error_response(e)
    return success(customer.to_dict(), "Customer retrieved")


@customers_bp.post("")
@require_auth
def create_customer():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_party_payload(payload, fields=CUSTOMER_WRITABLE_FIELDS)
        customer = run_in_unit_of_work(
            lambda uow: parties_service.create_party(uow, Customer, user_id, patch)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return internal_error()
    return success(customer.to_dict(), "Customer created", 201)


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer(customer_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_party_payload(payload, fields=CUSTOMER_WRITABLE_FIELDS, partial=True)
        customer = run_in_unit_of_work(
            lambda uow: parties_service.update_party(uow, Customer, user_id, customer_id, patch)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update customer %s", customer_id)
        return internal_error()
    return success(customer.to_dict(), "Customer updated")


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer(customer_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(
            lambda uow: parties_service.delete_party(uow, Customer, user_id, customer_id)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete customer %s", customer_id)
        return internal_error()
    return success(deleted, "Customer deleted")
