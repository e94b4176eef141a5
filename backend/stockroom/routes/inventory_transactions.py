# Overview: Flask API routes for the inventory ledger; read-only queries.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_service_key
from ..exceptions import InventoryError
from ..responses import error_response, success
from ..services import ledger_service
from ..validation import coerce_int, parse_pagination

inventory_transactions_bp = Blueprint(
    "inventory_transactions", __name__, url_prefix="/api/inventory-transactions"
)


@inventory_transactions_bp.get("/")
@require_auth
def list_transactions():
    """
    Ledger rows for the caller, newest first.

    Query params:
    - limit: int (default 100)
    - offset: int (default 0)
    """
    try:
        limit, offset = parse_pagination(request.args)
        rows = ledger_service.list_user_transactions(g.current_user.id, limit=limit, offset=offset)
    except InventoryError as e:
        return error_response(e)
    return success(
        {"items": [r.to_dict() for r in rows], "limit": limit, "offset": offset},
        "Inventory transactions retrieved",
    )


@inventory_transactions_bp.get("/product/<int:product_id>")
@require_auth
def product_history(product_id: int):
    try:
        rows = ledger_service.get_product_history(g.current_user.id, product_id)
    except InventoryError as e:
        return error_response(e)
    return success([r.to_dict() for r in rows], "Product history retrieved")


@inventory_transactions_bp.get("/types")
@require_auth
def transaction_types():
    return success([t.to_dict() for t in ledger_service.list_transaction_types()], "Transaction types retrieved")


@inventory_transactions_bp.get("/confirmed-sales")
@require_service_key
def confirmed_sales():
    """Daily confirmed sales per product for the forecasting service."""
    try:
        days = coerce_int(request.args.get("days", 90), "days", minimum=1, maximum=3650)
    except InventoryError as e:
        return error_response(e)
    return success(ledger_service.confirmed_sales_by_product(days=days), "Confirmed sales retrieved")
