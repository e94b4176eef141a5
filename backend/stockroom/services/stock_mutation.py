# Overview: Service-layer operations for stock mutation; one status-conditional algorithm shared by all document kinds.

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from ..exceptions import DuplicateLineItemError, InsufficientStockError, InvalidStateTransitionError
from .concurrency import UnitOfWork
from .ledger_service import TxType, record_transaction
from .stock_service import adjust_stock, get_quantity, has_sufficient_stock, ratchet_unit_cost

"""
Status-conditional stock mutation.

Every order and return follows the same shape:
    validate -> diff lines -> compute signed deltas -> adjust stock -> ledger

A document kind only differs in its StockPolicy:
- direction: +1 when applying the document adds stock, -1 when it removes it
- which transaction type each kind of movement is logged with
- whether outflows are guarded against negative stock
- whether confirmed lines ratchet the product unit cost
- which status transitions are refused

Movement order (plan_movements):
1. was applied, will not be: reverse every old line
2. was applied, stays applied: reverse products dropped from the document
3. will be applied: full quantity for lines not previously applied,
   otherwise the quantity delta
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItem:
    """A validated, not yet persisted document line."""

    product_id: int
    quantity: int
    unit_amount_cents: int | None = None
    status_id: int | None = None


@dataclass(frozen=True)
class StockMovement:
    product_id: int
    delta: int
    transaction_type: TxType


TransitionCheck = Callable[[bool, bool], None]


def allow_any(was_applied: bool, will_apply: bool) -> None:
    return None


def reject_update_once_confirmed(was_applied: bool, will_apply: bool) -> None:
    if was_applied:
        raise InvalidStateTransitionError("Confirmed sales orders cannot be modified")


def reject_unconfirm(was_applied: bool, will_apply: bool) -> None:
    if was_applied and not will_apply:
        raise InvalidStateTransitionError("Cannot un-confirm a purchase order")


@dataclass(frozen=True)
class StockPolicy:
    name: str
    direction: int
    apply_type: TxType
    delta_type: TxType
    removed_type: TxType
    unconfirm_type: TxType
    delete_type: TxType
    guard_outflow: bool = False
    ratchet_unit_cost: bool = False
    check_transition: TransitionCheck = allow_any


SALES_ORDER_POLICY = StockPolicy(
    name="sales_order",
    direction=-1,
    apply_type=TxType.CONFIRMED_SALES_ORDER,
    delta_type=TxType.ADJUSTMENT,
    removed_type=TxType.CANCELLED_SALES_ORDER,
    unconfirm_type=TxType.CANCELLED_SALES_ORDER,
    delete_type=TxType.CANCELLED_SALES_ORDER,
    guard_outflow=True,
    check_transition=reject_update_once_confirmed,
)

PURCHASE_ORDER_POLICY = StockPolicy(
    name="purchase_order",
    direction=1,
    apply_type=TxType.CONFIRMED_PURCHASE_ORDER,
    delta_type=TxType.ADJUSTMENT,
    removed_type=TxType.CANCELLED_PURCHASE_ORDER,
    unconfirm_type=TxType.CANCELLED_PURCHASE_ORDER,
    delete_type=TxType.CANCELLED_PURCHASE_ORDER,
    ratchet_unit_cost=True,
    check_transition=reject_unconfirm,
)

SALES_RETURN_POLICY = StockPolicy(
    name="sales_return",
    direction=1,
    apply_type=TxType.SALE_RETURN,
    delta_type=TxType.SALE_RETURN,
    removed_type=TxType.ADJUSTMENT,
    unconfirm_type=TxType.ADJUSTMENT,
    delete_type=TxType.ADJUSTMENT,
)

PURCHASE_RETURN_POLICY = StockPolicy(
    name="purchase_return",
    direction=-1,
    apply_type=TxType.PURCHASE_RETURN,
    delta_type=TxType.PURCHASE_RETURN,
    removed_type=TxType.ADJUSTMENT,
    unconfirm_type=TxType.ADJUSTMENT,
    delete_type=TxType.ADJUSTMENT,
    guard_outflow=True,
)


def ensure_unique_products(lines: Iterable[LineItem]) -> None:
    """Raise DuplicateLineItemError on the first product listed twice."""
    seen: set[int] = set()
    for line in lines:
        if line.product_id in seen:
            raise DuplicateLineItemError(line.product_id)
        seen.add(line.product_id)


def plan_movements(
    policy: StockPolicy,
    old_lines: Mapping[int, int],
    new_lines: Sequence[LineItem],
    *,
    was_applied: bool,
    will_apply: bool,
) -> list[StockMovement]:
    """
    Pure: ordered stock movements for moving a document from
    (old_lines, was_applied) to (new_lines, will_apply).

    old_lines maps product_id -> quantity of the stored lines.
    """
    d = policy.direction
    movements: list[StockMovement] = []

    if was_applied and not will_apply:
        for product_id, qty in old_lines.items():
            movements.append(StockMovement(product_id, -d * qty, policy.unconfirm_type))

    if was_applied and will_apply:
        kept = {line.product_id for line in new_lines}
        for product_id, qty in old_lines.items():
            if product_id not in kept:
                movements.append(StockMovement(product_id, -d * qty, policy.removed_type))

    if will_apply:
        for line in new_lines:
            if not was_applied or line.product_id not in old_lines:
                movements.append(StockMovement(line.product_id, d * line.quantity, policy.apply_type))
                continue
            change = line.quantity - old_lines[line.product_id]
            if change:
                movements.append(StockMovement(line.product_id, d * change, policy.delta_type))

    return movements


def plan_reversal(policy: StockPolicy, old_lines: Mapping[int, int], *, was_applied: bool) -> list[StockMovement]:
    """Movements that undo a document's stock effect when it is deleted."""
    if not was_applied:
        return []
    return [
        StockMovement(product_id, -policy.direction * qty, policy.delete_type)
        for product_id, qty in old_lines.items()
    ]


def precheck_stock(uow: UnitOfWork, user_id: int, movements: Sequence[StockMovement]) -> None:
    """
    Advisory sufficient-stock check over the net outflow per product.

    The guarded UPDATE in adjust_stock stays authoritative.
    """
    outflow: "OrderedDict[int, int]" = OrderedDict()
    for m in movements:
        outflow[m.product_id] = outflow.get(m.product_id, 0) + m.delta
    for product_id, net in outflow.items():
        if net >= 0:
            continue
        if not has_sufficient_stock(uow, user_id, product_id, -net):
            available = get_quantity(uow, user_id, product_id)
            raise InsufficientStockError(product_id, requested=-net, available=available)


def apply_movements(
    uow: UnitOfWork,
    user_id: int,
    movements: Sequence[StockMovement],
    policy: StockPolicy,
) -> None:
    """One atomic stock adjustment plus one ledger row per movement."""
    for m in movements:
        uow.checkpoint()
        previous, new = adjust_stock(
            uow,
            user_id=user_id,
            product_id=m.product_id,
            delta=m.delta,
            guard=policy.guard_outflow,
        )
        record_transaction(
            uow,
            user_id=user_id,
            product_id=m.product_id,
            quantity=m.delta,
            transaction_type=m.transaction_type,
            previous_stock=previous,
            new_stock=new,
        )


def sync_document_stock(
    uow: UnitOfWork,
    *,
    user_id: int,
    policy: StockPolicy,
    old_lines: Mapping[int, int],
    new_lines: Sequence[LineItem],
    was_applied: bool,
    will_apply: bool,
) -> list[StockMovement]:
    """
    Bring stock in line with a document's new state.

    Transition rules are checked before anything is written.
    """
    policy.check_transition(was_applied, will_apply)
    ensure_unique_products(new_lines)

    movements = plan_movements(
        policy, old_lines, new_lines, was_applied=was_applied, will_apply=will_apply
    )
    if policy.guard_outflow:
        precheck_stock(uow, user_id, movements)

    apply_movements(uow, user_id, movements, policy)

    if policy.ratchet_unit_cost and will_apply:
        for line in new_lines:
            if line.unit_amount_cents is not None:
                ratchet_unit_cost(
                    uow,
                    user_id=user_id,
                    product_id=line.product_id,
                    unit_cost_cents=line.unit_amount_cents,
                )

    if movements:
        logger.debug("%s: applied %d stock movements for user %s", policy.name, len(movements), user_id)
    return movements


def reverse_document_stock(
    uow: UnitOfWork,
    *,
    user_id: int,
    policy: StockPolicy,
    old_lines: Mapping[int, int],
    was_applied: bool,
) -> list[StockMovement]:
    movements = plan_reversal(policy, old_lines, was_applied=was_applied)
    if policy.guard_outflow:
        precheck_stock(uow, user_id, movements)
    apply_movements(uow, user_id, movements, policy)
    return movements
