from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .exceptions import ValidationError
from .services.stock_mutation import LineItem, ensure_unique_products
from .time_utils import normalize_datetime


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000


@dataclass(frozen=True)
class DocumentHeader:
    """
    Validated header of an order or return.

    party_id is the customer, supplier or parent order id depending on the
    document kind. On update, None means "keep the stored value".
    """
    party_id: int | None = None
    status_id: int | None = None
    status: str | None = None
    document_date: datetime | None = None
    notes: str | None = None

    @property
    def has_status(self) -> bool:
        return self.status_id is not None or bool(self.status)


def coerce_int(value: Any, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and
    scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    return result


def _optional_int(data: dict, field: str, *, minimum: int | None = None) -> int | None:
    value = data.get(field)
    if value is None:
        return None
    return coerce_int(value, field, minimum=minimum)


def _optional_text(data: dict, field: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    return value or None


def _optional_datetime(data: dict, field: str) -> datetime | None:
    try:
        return normalize_datetime(data.get(field))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")


def parse_header(data: dict, *, party_field: str, date_field: str, partial: bool = False) -> DocumentHeader:
    """
    Validate the header part of an order/return payload.

    partial=True (updates) makes every field optional.
    """
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")

    header = DocumentHeader(
        party_id=_optional_int(data, party_field, minimum=1),
        status_id=_optional_int(data, "status_id", minimum=1),
        status=_optional_text(data, "status"),
        document_date=_optional_datetime(data, date_field),
        notes=_optional_text(data, "notes"),
    )
    if not partial:
        if header.party_id is None:
            raise ValidationError(f"{party_field} is required")
        if not header.has_status:
            raise ValidationError("status_id is required")
    return header


def parse_line_items(
    items: Any,
    *,
    amount_field: str | None = None,
    allow_status: bool = False,
    required: bool = True,
) -> list[LineItem] | None:
    """
    Validate the items list of an order/return payload.

    - quantity must be a positive integer
    - amount_field (unit_price_cents / unit_cost_cents), when given, must be positive
    - a product may appear only once (DuplicateLineItemError)
    """
    if items is None:
        if required:
            raise ValidationError("items must be a non-empty list")
        return None
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines: list[LineItem] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if raw.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")

        product_id = coerce_int(raw["product_id"], f"items[{index}].product_id", minimum=1)
        quantity = coerce_int(raw["quantity"], f"items[{index}].quantity", minimum=1, maximum=MAX_QUANTITY)

        amount = None
        if amount_field is not None and raw.get(amount_field) is not None:
            amount = coerce_int(
                raw[amount_field], f"items[{index}].{amount_field}", minimum=1, maximum=MAX_PRICE_CENTS
            )

        status_id = None
        if allow_status and raw.get("status_id") is not None:
            status_id = coerce_int(raw["status_id"], f"items[{index}].status_id", minimum=1)

        lines.append(LineItem(product_id, quantity, unit_amount_cents=amount, status_id=status_id))

    ensure_unique_products(lines)
    return lines


def parse_order_payload(data: dict, *, party_field: str, amount_field: str, partial: bool = False):
    header = parse_header(data, party_field=party_field, date_field="order_date", partial=partial)
    lines = parse_line_items(data.get("items"), amount_field=amount_field, required=not partial)
    return header, lines


def parse_return_payload(data: dict, *, parent_field: str, partial: bool = False):
    header = parse_header(data, party_field=parent_field, date_field="return_date", partial=partial)
    lines = parse_line_items(data.get("items"), allow_status=True, required=not partial)
    return header, lines


def parse_pagination(args, *, default_limit: int = 100, max_limit: int = 1000) -> tuple[int, int]:
    limit = coerce_int(args.get("limit", default_limit), "limit", minimum=1, maximum=max_limit)
    offset = coerce_int(args.get("offset", 0), "offset", minimum=0)
    return limit, offset


# Product catalogue fields clients may set
PRODUCT_WRITABLE_FIELDS = {"name", "description", "barcode", "unit_cost_cents", "unit_price_cents"}


def parse_product_payload(data: dict, *, partial: bool = False) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")

    unknown = set(data) - PRODUCT_WRITABLE_FIELDS - {"quantity"}
    if unknown:
        raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")
    if partial and "quantity" in data:
        raise ValidationError("quantity can only change through stock adjustments")

    clean: dict = {}
    if "name" in data or not partial:
        name = _optional_text(data, "name")
        if not name:
            raise ValidationError("name is required")
        clean["name"] = name
    for field in ("description", "barcode"):
        if field in data:
            clean[field] = _optional_text(data, field)
    for field in ("unit_cost_cents", "unit_price_cents"):
        if field in data and data[field] is not None:
            clean[field] = coerce_int(data[field], field, minimum=0, maximum=MAX_PRICE_CENTS)
    if not partial:
        clean["quantity"] = coerce_int(data.get("quantity", 0), "quantity", minimum=0, maximum=MAX_QUANTITY)
    return clean


# Contact fields clients may set on a customer / supplier
CUSTOMER_WRITABLE_FIELDS = ("name", "email", "phone")
SUPPLIER_WRITABLE_FIELDS = ("name", "contact_email", "contact_phone")


def parse_party_payload(data: dict, *, fields: tuple[str, ...], partial: bool = False) -> dict:
    """
    Validate a customer or supplier payload.

    name is required on create; every other field is optional text.
    """
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")

    unknown = set(data) - set(fields)
    if unknown:
        raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")

    clean: dict = {}
    if "name" in data or not partial:
        name = _optional_text(data, "name")
        if not name:
            raise ValidationError("name is required")
        clean["name"] = name
    for field in fields:
        if field != "name" and field in data:
            value = _optional_text(data, field)
            if value is not None and field.endswith("email") and "@" not in value:
                raise ValidationError(f"{field} must be an email address")
            clean[field] = value
    return clean
