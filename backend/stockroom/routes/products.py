# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalogue routes.

MULTI-TENANT: all product operations are scoped to g.current_user.id.
Stock never changes through PUT; use POST /<id>/adjust, which writes a
paired ledger row.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..exceptions import InventoryError, ValidationError
from ..responses import error_response, internal_error, success
from ..services import products_service
from ..services.concurrency import run_in_unit_of_work
from ..services.ledger_service import TxType
from ..validation import coerce_int, parse_product_payload

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    products = products_service.list_products(g.current_user.id)
    return success([p.to_dict() for p in products], "Products retrieved")


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        product = products_service.get_product(g.current_user.id, product_id)
    except InventoryError as e:
        return error_response(e)
    return success(product.to_dict(), "Product retrieved")


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_product_payload(payload)
        product = run_in_unit_of_work(lambda uow: products_service.create_product(uow, user_id, patch))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error()
    return success(product.to_dict(), "Product created", 201)


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        patch = parse_product_payload(payload, partial=True)
        product = run_in_unit_of_work(
            lambda uow: products_service.update_product(uow, user_id, product_id, patch)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return internal_error()
    return success(product.to_dict(), "Product updated")


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    user_id = g.current_user.id
    try:
        deleted = run_in_unit_of_work(lambda uow: products_service.delete_product(uow, user_id, product_id))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return internal_error()
    return success(deleted, "Product deleted")


@products_bp.post("/<int:product_id>/adjust")
@require_auth
def adjust_product_route(product_id: int):
    """
    Manual stock correction.

    Body: {"quantity": signed int, "transaction_type": "ADJUSTMENT" | "LOSS"}
    """
    payload = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        if payload.get("quantity") is None:
            raise ValidationError("quantity is required")
        quantity = coerce_int(payload["quantity"], "quantity")
        type_name = str(payload.get("transaction_type") or "ADJUSTMENT").strip().upper()
        if type_name not in TxType.__members__:
            raise ValidationError("transaction_type must be ADJUSTMENT or LOSS")
        tx_type = TxType[type_name]
        entry = run_in_unit_of_work(
            lambda uow: products_service.adjust_product_stock(uow, user_id, product_id, quantity, tx_type)
        )
    except InventoryError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock for product %s", product_id)
        return internal_error()
    return success(entry.to_dict(), "Stock adjusted", 201)
