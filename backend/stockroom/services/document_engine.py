# Overview: Service-layer operations for stock documents; create/update/delete shared by orders and returns.

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from flask import current_app

from ..exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..validation import DocumentHeader
from .concurrency import UnitOfWork, lock_for_update
from .lookup_service import require_products
from .status_service import StatusKind, applies_stock, resolve_status, status_from_row
from .stock_mutation import (
    LineItem,
    StockPolicy,
    ensure_unique_products,
    reverse_document_stock,
    sync_document_stock,
)

"""
Stock document lifecycle (orders and returns)

CREATE:
1. Validate counterparty/parent, products and status (no writes yet)
2. Write header, then lines
3. If the status applies stock: one adjustment + one ledger row per line

UPDATE:
1. Lock header, resolve old and new status
2. Refuse forbidden transitions before writing anything
3. Replace lines (old rows removed and flushed before new ones are inserted)
4. Apply the planned movements (reversals first, then new effects)

DELETE:
1. If the document had applied stock, reverse every line
2. Delete header (lines cascade)

All three run inside the caller's UnitOfWork; any error rolls back the
header, lines, stock and ledger together.
"""

logger = logging.getLogger(__name__)


class DocumentEngine:
    """Status-conditional stock document; subclasses supply models and hooks."""

    label = "Document"
    kind: StatusKind
    policy: StockPolicy
    header_model = None
    line_model = None
    party_attr = ""     # header column holding the counterparty / parent id
    date_attr = ""      # header column holding the business date

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def validate_party(self, session, user_id: int, party_id: int) -> None:
        raise NotImplementedError

    def build_line(self, item: LineItem, *, product, status_row) -> object:
        raise NotImplementedError

    def resolve_line_items(self, session, lines: Sequence[LineItem], products: dict) -> list[LineItem]:
        return list(lines)

    def after_lines(self, document) -> None:
        """Called once the document's lines are final (totals, etc.)."""

    def before_delete(self, document) -> None:
        """Last chance to refuse a delete before any stock is reversed."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _query(self, session, user_id: int):
        model = self.header_model
        return session.query(model).filter(model.user_id == user_id)

    def _load(self, session, doc_id: int, user_id: int, *, lock: bool = False):
        query = self._query(session, user_id).filter(self.header_model.id == doc_id)
        if lock:
            query = lock_for_update(query)
        document = query.first()
        if document is None:
            raise NotFoundError(f"{self.label} {doc_id} not found")
        return document

    def find_by_id(self, doc_id: int, user_id: int):
        return self._load(db.session, doc_id, user_id)

    def list_by_user(self, user_id: int) -> list:
        model = self.header_model
        return (
            self._query(db.session, user_id)
            .order_by(getattr(model, self.date_attr).desc(), model.id.desc())
            .all()
        )

    def get_lines(self, doc_id: int, user_id: int) -> list:
        return list(self.find_by_id(doc_id, user_id).lines)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _resolve_status(self, session, header: DocumentHeader):
        return resolve_status(session, self.kind, status_id=header.status_id, status=header.status)

    def _prepare_lines(self, session, user_id: int, lines: Sequence[LineItem]):
        ensure_unique_products(lines)
        products = require_products(session, user_id, [line.product_id for line in lines])
        return self.resolve_line_items(session, lines, products), products

    def _write_lines(self, uow: UnitOfWork, document, items: Sequence[LineItem], products: dict, status_row) -> None:
        if document.lines:
            document.lines.clear()
            # Old rows must be gone before the (document, product) unique key is reused
            uow.flush()
        for item in items:
            document.lines.append(self.build_line(item, product=products[item.product_id], status_row=status_row))
        uow.flush()

    def create(self, uow: UnitOfWork, user_id: int, header: DocumentHeader, lines: Sequence[LineItem]):
        session = uow.session
        self.validate_party(session, user_id, header.party_id)
        status_row, status = self._resolve_status(session, header)
        items, products = self._prepare_lines(session, user_id, lines)
        will_apply = applies_stock(self.kind, status)

        document = self.header_model(user_id=user_id, status_id=status_row.id, notes=header.notes)
        setattr(document, self.party_attr, header.party_id)
        if header.document_date is not None:
            setattr(document, self.date_attr, header.document_date)
        session.add(document)
        uow.flush()

        self._write_lines(uow, document, items, products, status_row)
        self.after_lines(document)

        movements = sync_document_stock(
            uow,
            user_id=user_id,
            policy=self.policy,
            old_lines={},
            new_lines=items,
            was_applied=False,
            will_apply=will_apply,
        )
        uow.flush()

        logger.info(
            "%s %s created for user %s (status=%s, %d stock movements)",
            self.label, document.id, user_id, status.value, len(movements),
        )
        return document

    def update(
        self,
        uow: UnitOfWork,
        doc_id: int,
        user_id: int,
        header: DocumentHeader,
        lines: Sequence[LineItem] | None = None,
    ):
        """
        Update header and (optionally) replace lines.

        lines=None keeps the stored lines; header fields left as None keep
        their stored values.
        """
        session = uow.session
        document = self._load(session, doc_id, user_id, lock=True)

        old_status = status_from_row(self.kind, document.status)
        old_status_id = document.status_id
        was_applied = applies_stock(self.kind, old_status)

        if header.has_status:
            status_row, new_status = self._resolve_status(session, header)
        else:
            status_row, new_status = document.status, old_status
        will_apply = applies_stock(self.kind, new_status)

        self.policy.check_transition(was_applied, will_apply)

        if header.party_id is not None:
            self.validate_party(session, user_id, header.party_id)

        old_lines = {line.product_id: line.quantity for line in document.lines}

        if lines is None:
            lines = [self.line_to_item(line, inherited_status_id=old_status_id) for line in document.lines]
        items, products = self._prepare_lines(session, user_id, lines)

        if header.party_id is not None:
            setattr(document, self.party_attr, header.party_id)
        if header.document_date is not None:
            setattr(document, self.date_attr, header.document_date)
        if header.notes is not None:
            document.notes = header.notes
        document.status_id = status_row.id
        document.status = status_row

        self._write_lines(uow, document, items, products, status_row)
        self.after_lines(document)

        movements = sync_document_stock(
            uow,
            user_id=user_id,
            policy=self.policy,
            old_lines=old_lines,
            new_lines=items,
            was_applied=was_applied,
            will_apply=will_apply,
        )
        uow.flush()

        logger.info(
            "%s %s updated for user %s (%s -> %s, %d stock movements)",
            self.label, document.id, user_id, old_status.value, new_status.value, len(movements),
        )
        return document

    def delete(self, uow: UnitOfWork, doc_id: int, user_id: int):
        session = uow.session
        document = self._load(session, doc_id, user_id, lock=True)
        self.before_delete(document)

        status = status_from_row(self.kind, document.status)
        was_applied = applies_stock(self.kind, status)
        old_lines = {line.product_id: line.quantity for line in document.lines}
        snapshot = document.to_dict(include_lines=True)

        movements = reverse_document_stock(
            uow,
            user_id=user_id,
            policy=self.policy,
            old_lines=old_lines,
            was_applied=was_applied,
        )

        session.delete(document)
        uow.flush()

        logger.info(
            "%s %s deleted for user %s (%d stock movements)",
            self.label, doc_id, user_id, len(movements),
        )
        return snapshot

    def line_to_item(self, line, *, inherited_status_id: int | None = None) -> LineItem:
        return LineItem(line.product_id, line.quantity)


class OrderEngine(DocumentEngine):
    """Orders carry a unit amount per line and header totals."""

    amount_attr = ""        # unit_price_cents / unit_cost_cents on lines and Product
    tax_config_key = ""

    def resolve_line_items(self, session, lines, products):
        resolved = []
        for item in lines:
            amount = item.unit_amount_cents
            if amount is None:
                amount = getattr(products[item.product_id], self.amount_attr) or None
            if amount is None or amount <= 0:
                raise ValidationError(f"{self.amount_attr} must be positive for product {item.product_id}")
            resolved.append(replace(item, unit_amount_cents=amount))
        return resolved

    def build_line(self, item: LineItem, *, product, status_row):
        line = self.line_model(product_id=item.product_id, quantity=item.quantity)
        setattr(line, self.amount_attr, item.unit_amount_cents)
        line.line_total_cents = item.quantity * item.unit_amount_cents
        line.product = product
        return line

    def line_to_item(self, line, *, inherited_status_id: int | None = None) -> LineItem:
        return LineItem(line.product_id, line.quantity, unit_amount_cents=getattr(line, self.amount_attr))

    def after_lines(self, document) -> None:
        subtotal = sum(line.line_total_cents for line in document.lines)
        bps = int(current_app.config.get(self.tax_config_key, 0))
        document.subtotal_cents = subtotal
        document.tax_cents = compute_tax_cents(subtotal, bps)
        document.total_amount_cents = subtotal + document.tax_cents

    def before_delete(self, document) -> None:
        if document.returns:
            raise InvalidStateTransitionError(
                f"{self.label} {document.id} has returns; delete them first"
            )


class ReturnEngine(DocumentEngine):
    """Returns reference a parent order; lines carry an optional status."""

    def resolve_line_items(self, session, lines, products):
        for item in lines:
            if item.status_id is not None:
                resolve_status(session, self.kind, status_id=item.status_id)
        return list(lines)

    def build_line(self, item: LineItem, *, product, status_row):
        line = self.line_model(
            product_id=item.product_id,
            quantity=item.quantity,
            status_id=item.status_id or status_row.id,
        )
        line.product = product
        return line

    def line_to_item(self, line, *, inherited_status_id: int | None = None) -> LineItem:
        # Lines that only inherited the old header status follow the new one
        status_id = None if line.status_id == inherited_status_id else line.status_id
        return LineItem(line.product_id, line.quantity, status_id=status_id)


def compute_tax_cents(subtotal_cents: int, rate_bps: int) -> int:
    """Flat tax on a subtotal, nearest-cent rounding (half-up)."""
    if rate_bps <= 0 or subtotal_cents <= 0:
        return 0
    return (subtotal_cents * rate_bps + 5_000) // 10_000
