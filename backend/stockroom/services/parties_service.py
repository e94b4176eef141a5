# Overview: Service-layer operations for customers and suppliers; owner-scoped order counterparties.

"""
Parties Service

Customers are the counterparties of sales orders, suppliers those of
purchase orders. Both are owned by one user and looked up through
lookup_service, so another user's row is reported as missing.

RULES:
- name is unique per owner within each kind
- a party referenced by any order cannot be deleted
"""

from __future__ import annotations

import logging

from ..exceptions import InvalidStateTransitionError, ValidationError
from ..extensions import db
from ..models import Customer, PurchaseOrder, SalesOrder, Supplier
from .concurrency import UnitOfWork
from .lookup_service import require_customer, require_supplier

logger = logging.getLogger(__name__)

# model -> (owner-scoped lookup, order model, order column pointing at the party)
_PARTY_KINDS = {
    Customer: (require_customer, SalesOrder, "customer_id"),
    Supplier: (require_supplier, PurchaseOrder, "supplier_id"),
}


def _ensure_unique_name(session, model, user_id: int, name: str | None, exclude_id: int | None = None) -> None:
    if name is None:
        return
    query = session.query(model.id).filter(model.user_id == user_id, model.name == name)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f"A {model.__name__.lower()} with this name already exists")


def list_parties(model, user_id: int) -> list:
    return (
        db.session.query(model)
        .filter_by(user_id=user_id)
        .order_by(model.name.asc(), model.id.asc())
        .all()
    )


def get_party(model, user_id: int, party_id: int):
    require, _, _ = _PARTY_KINDS[model]
    return require(db.session, user_id, party_id)


def create_party(uow: UnitOfWork, model, user_id: int, patch: dict):
    session = uow.session
    _ensure_unique_name(session, model, user_id, patch.get("name"))

    party = model(user_id=user_id, **patch)
    session.add(party)
    uow.flush()
    logger.info("%s %s created for user %s", model.__name__, party.id, user_id)
    return party


def update_party(uow: UnitOfWork, model, user_id: int, party_id: int, patch: dict):
    session = uow.session
    require, _, _ = _PARTY_KINDS[model]
    party = require(session, user_id, party_id)
    _ensure_unique_name(session, model, user_id, patch.get("name"), exclude_id=party.id)

    for field, value in patch.items():
        setattr(party, field, value)
    uow.flush()
    return party


def delete_party(uow: UnitOfWork, model, user_id: int, party_id: int) -> dict:
    session = uow.session
    require, order_model, column = _PARTY_KINDS[model]
    party = require(session, user_id, party_id)

    in_use = session.query(order_model.id).filter(getattr(order_model, column) == party.id).first()
    if in_use is not None:
        raise InvalidStateTransitionError(
            f"{model.__name__} {party_id} is referenced by orders and cannot be deleted"
        )

    snapshot = party.to_dict()
    session.delete(party)
    uow.flush()
    logger.info("%s %s deleted for user %s", model.__name__, party_id, user_id)
    return snapshot
