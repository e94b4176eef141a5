# Overview: Service-layer operations for the status taxonomy; resolves external status rows to closed enums.

"""
Status resolution.

The status taxonomy (status_categories / status_types) is reference data
owned outside the core. It is resolved exactly once per request at the
service boundary into a closed enum; engine logic only ever switches on
enum members, never on raw names or ids.

Which statuses move stock is configuration (STOCK_EFFECT_STATUSES), not
hard-coded ids.
"""

from __future__ import annotations

from enum import Enum

from flask import current_app, has_app_context
from sqlalchemy.orm import Session

from ..exceptions import ValidationError
from ..extensions import db
from ..models import StatusCategory, StatusType


class StatusKind(Enum):
    SALES_ORDER = "sales_order"
    PURCHASE_ORDER = "purchase_order"
    SALES_RETURN = "sales_return"
    PURCHASE_RETURN = "purchase_return"
    AI_NOTIFICATION = "ai_notification"

    @property
    def category_name(self) -> str:
        return self.value


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class ReturnStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class NotificationStatus(Enum):
    NEW = "new"
    READ = "read"
    DISMISSED = "dismissed"


STATUS_ENUMS = {
    StatusKind.SALES_ORDER: OrderStatus,
    StatusKind.PURCHASE_ORDER: OrderStatus,
    StatusKind.SALES_RETURN: ReturnStatus,
    StatusKind.PURCHASE_RETURN: ReturnStatus,
    StatusKind.AI_NOTIFICATION: NotificationStatus,
}

# Seed data for `flask system init`
DEFAULT_TAXONOMY = {
    StatusKind.SALES_ORDER: [("pending", "Awaiting confirmation"), ("confirmed", "Stock taken out")],
    StatusKind.PURCHASE_ORDER: [("pending", "Awaiting confirmation"), ("confirmed", "Stock received")],
    StatusKind.SALES_RETURN: [
        ("pending", "Awaiting confirmation"),
        ("confirmed", "Goods back in stock"),
        ("completed", "Return closed"),
    ],
    StatusKind.PURCHASE_RETURN: [
        ("pending", "Awaiting confirmation"),
        ("confirmed", "Goods sent back to supplier"),
        ("completed", "Return closed"),
    ],
    StatusKind.AI_NOTIFICATION: [("new", "Unread"), ("read", "Read"), ("dismissed", "Dismissed")],
}

_DEFAULT_STOCK_EFFECT = {
    "sales_order": ("confirmed",),
    "purchase_order": ("confirmed",),
    "sales_return": ("confirmed", "completed"),
    "purchase_return": ("confirmed", "completed"),
}


def _stock_effect_names(kind: StatusKind) -> tuple[str, ...]:
    mapping = _DEFAULT_STOCK_EFFECT
    if has_app_context():
        mapping = current_app.config.get("STOCK_EFFECT_STATUSES", _DEFAULT_STOCK_EFFECT)
    return tuple(mapping.get(kind.category_name, ()))


def applies_stock(kind: StatusKind, status: Enum) -> bool:
    """True when documents of this kind in this status have moved stock."""
    return status.value in _stock_effect_names(kind)


def resolve_status(
    session: Session,
    kind: StatusKind,
    *,
    status_id: int | None = None,
    status: str | None = None,
) -> tuple[StatusType, Enum]:
    """
    Resolve a status id or name inside the category for `kind`.

    Returns (StatusType row, enum member).

    Raises:
        ValidationError: missing input, unknown id/name, id from another
            category, or a name the closed enum does not know.
    """
    if status_id is None and not status:
        raise ValidationError("status_id is required")

    query = (
        session.query(StatusType)
        .join(StatusCategory, StatusType.category_id == StatusCategory.id)
        .filter(StatusCategory.name == kind.category_name)
    )
    if status_id is not None:
        row = query.filter(StatusType.id == status_id).first()
    else:
        row = query.filter(StatusType.name == str(status).strip().lower()).first()

    if row is None:
        ref = status_id if status_id is not None else status
        raise ValidationError(f"Invalid status {ref!r} for {kind.category_name}")

    try:
        member = STATUS_ENUMS[kind](row.name)
    except ValueError:
        raise ValidationError(f"Unsupported status {row.name!r} for {kind.category_name}")

    return row, member


def status_from_row(kind: StatusKind, row: StatusType) -> Enum:
    """Enum member for a status row already attached to a stored document."""
    return STATUS_ENUMS[kind](row.name)


def get_status_row(session: Session, kind: StatusKind, member: Enum) -> StatusType:
    row, _ = resolve_status(session, kind, status=member.value)
    return row


def list_status_categories() -> list[StatusCategory]:
    return db.session.query(StatusCategory).order_by(StatusCategory.id).all()


def seed_status_taxonomy(session: Session) -> int:
    """
    Insert any missing categories and status types.

    Safe to call repeatedly (idempotent). Returns number of rows created.
    """
    created = 0
    for kind, types in DEFAULT_TAXONOMY.items():
        category = session.query(StatusCategory).filter_by(name=kind.category_name).first()
        if category is None:
            category = StatusCategory(name=kind.category_name, description=f"{kind.category_name} statuses")
            session.add(category)
            session.flush()
            created += 1
        existing = {t.name for t in category.status_types}
        for name, description in types:
            if name not in existing:
                session.add(StatusType(category_id=category.id, name=name, description=description))
                created += 1
    session.flush()
    return created
