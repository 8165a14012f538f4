# backend/stockroom/services/request_service.py
"""
Stock request lifecycle engine.

WHY: Stores ask the warehouse for stock; the warehouse decides what to send
and the ledger must reflect what has been committed to each store.

LIFECYCLE:
1. pending: created by a store (or an admin for a store); editable by that store
2. accepted: warehouse accepted, optionally with changed quantities; the
   ledger is decremented by every accepted line (floored at zero)
3. shipped: fulfillment confirmed (or manually marked) and sent
4. rejected: warehouse declined with a reason
5. cancelled: withdrawn by the owning store before processing

Only the edges in ALLOWED_TRANSITIONS exist. Everything else raises
IllegalTransitionError and changes nothing. Each transition is one database
transaction with the request row locked, so acceptance decrements inventory
exactly once even when two warehouse managers race on the same request.

Deletion is an administrative override, allowed in any state, and never
touches inventory.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import String, cast, or_

from ..extensions import db
from ..models import StockRequest, StockRequestItem, User
from ..permissions import assert_store_scope
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, parse_request_lines
from .catalog_service import get_stock_item
from .concurrency import lock_for_update, run_atomic
from .inventory_service import apply_decrement
from .sequence_service import next_request_number


# Request status constants
STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_SHIPPED = "shipped"
STATUS_REJECTED = "rejected"
STATUS_CANCELLED = "cancelled"

ALL_STATUSES = (
    STATUS_PENDING,
    STATUS_ACCEPTED,
    STATUS_SHIPPED,
    STATUS_REJECTED,
    STATUS_CANCELLED,
)

TERMINAL_STATUSES = frozenset({STATUS_SHIPPED, STATUS_REJECTED, STATUS_CANCELLED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING: frozenset({STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED}),
    STATUS_ACCEPTED: frozenset({STATUS_SHIPPED}),
    STATUS_SHIPPED: frozenset(),
    STATUS_REJECTED: frozenset(),
    STATUS_CANCELLED: frozenset(),
}


class IllegalTransitionError(ConflictError):
    """Raised when a request is asked to move along an edge that does not exist."""
    pass


def can_transition(current: str, new_status: str) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def _actor_id(actor: User | None) -> int | None:
    return actor.id if actor is not None else None


def _require_text(value, field: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def _optional_text(value, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip() or None


# =============================================================================
# Reads
# =============================================================================

def get_request(request_id: int) -> StockRequest:
    stock_request = db.session.get(StockRequest, request_id)
    if stock_request is None:
        raise NotFoundError(f"Stock request {request_id} not found")
    return stock_request


def list_requests(
    *,
    store_location: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> list[StockRequest]:
    """
    Requests newest first, optionally filtered.

    search matches the request number, the store location or the comments
    (case-insensitive substring).
    """
    query = db.session.query(StockRequest)

    if store_location:
        query = query.filter(StockRequest.store_location == store_location)

    if status:
        if status not in ALL_STATUSES:
            raise ValidationError(f"Unknown status {status!r}")
        query = query.filter(StockRequest.status == status)

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                cast(StockRequest.request_number, String).ilike(pattern),
                StockRequest.store_location.ilike(pattern),
                StockRequest.comments.ilike(pattern),
            )
        )

    return query.order_by(StockRequest.submitted_at.desc(), StockRequest.id.desc()).all()


# =============================================================================
# Internal helpers (run inside the caller's transaction)
# =============================================================================

def _load_for_update(request_id: int) -> StockRequest:
    stock_request = lock_for_update(db.session.query(StockRequest).filter_by(id=request_id)).first()
    if stock_request is None:
        raise NotFoundError(f"Stock request {request_id} not found")
    return stock_request


def _normalize_lines(raw_items) -> list[tuple[int, int]]:
    lines = parse_request_lines(raw_items, drop_zero=True)
    if not lines:
        raise ValidationError("A request must contain at least one item with quantity > 0")
    for item_id, _ in lines:
        get_stock_item(item_id)
    return lines


def _replace_items(stock_request: StockRequest, lines: list[tuple[int, int]]) -> None:
    """Delete every existing line, then insert the new set."""
    stock_request.items.clear()
    # Deletes must reach the database before the inserts (unique request/item pair)
    db.session.flush()
    for item_id, qty in lines:
        stock_request.items.append(StockRequestItem(item_id=item_id, requested_quantity=qty))
    db.session.flush()


def _check_transition(stock_request: StockRequest, new_status: str) -> None:
    if not can_transition(stock_request.status, new_status):
        raise IllegalTransitionError(
            f"Cannot move request #{stock_request.request_number} "
            f"from {stock_request.status} to {new_status}"
        )


def _accept(
    stock_request: StockRequest,
    *,
    actor: User | None,
    warehouse_notes: str | None,
    items,
) -> None:
    if items is not None:
        _replace_items(stock_request, _normalize_lines(items))

    if not stock_request.items:
        raise ValidationError(f"Request #{stock_request.request_number} has no items to accept")

    for line in stock_request.items:
        apply_decrement(line.item_id, line.requested_quantity)

    stock_request.status = STATUS_ACCEPTED
    stock_request.processed_at = utcnow()
    stock_request.processed_by = _actor_id(actor)
    notes = _optional_text(warehouse_notes, "warehouseNotes")
    if notes:
        stock_request.warehouse_notes = notes


def _reject(stock_request: StockRequest, *, actor: User | None, rejection_reason) -> None:
    stock_request.rejection_reason = _require_text(rejection_reason, "rejectionReason")
    stock_request.status = STATUS_REJECTED
    stock_request.rejected_at = utcnow()
    stock_request.processed_by = _actor_id(actor)


def _cancel(stock_request: StockRequest, *, actor: User | None) -> None:
    if actor is not None:
        assert_store_scope(actor, stock_request.store_location)
    stock_request.status = STATUS_CANCELLED
    stock_request.cancelled_at = utcnow()


def _ship(stock_request: StockRequest) -> None:
    stock_request.status = STATUS_SHIPPED
    stock_request.shipped_at = utcnow()


# =============================================================================
# Operations
# =============================================================================

def create_request(
    *,
    store_location: str,
    items,
    comments: str | None = "",
    actor: User | None = None,
) -> StockRequest:
    """
    Create a pending request with the next request number.

    Args:
        store_location: Store the stock is for
        items: [{"itemId": int, "requestedQuantity": int}, ...]; zero-quantity
            lines are dropped, duplicates merged
        comments: Free text from the store
        actor: Submitting user; must be allowed to act for store_location

    Raises:
        ValidationError: Missing store or no items left after filtering
        NotFoundError: An itemId is not in the catalog
        PermissionDeniedError: actor cannot act for store_location
    """
    store_location = _require_text(store_location, "storeLocation")
    comments = _optional_text(comments, "comments") or ""
    if actor is not None:
        assert_store_scope(actor, store_location)

    def _op():
        lines = _normalize_lines(items)
        # Allocate first: the sequence helper may roll back on a first-row race
        number = next_request_number()

        stock_request = StockRequest(
            request_number=number,
            store_location=store_location,
            comments=comments,
            status=STATUS_PENDING,
            submitted_at=utcnow(),
            user_id=_actor_id(actor),
        )
        db.session.add(stock_request)
        for item_id, qty in lines:
            stock_request.items.append(StockRequestItem(item_id=item_id, requested_quantity=qty))
        db.session.flush()
        return stock_request

    stock_request = run_atomic(_op)
    current_app.logger.info(
        "Request #%s created for %s by user %s",
        stock_request.request_number, store_location, _actor_id(actor),
    )
    return stock_request


def update_request(
    request_id: int,
    *,
    items=None,
    comments: str | None = None,
    store_location: str | None = None,
    actor: User | None = None,
) -> StockRequest:
    """
    Edit a pending request. items, when given, fully replace the current lines.

    Raises:
        IllegalTransitionError: The request is no longer pending
        ValidationError: items would leave the request empty
        PermissionDeniedError: actor cannot act for the request's store
    """
    def _op():
        stock_request = _load_for_update(request_id)
        if stock_request.status != STATUS_PENDING:
            raise IllegalTransitionError(
                f"Request #{stock_request.request_number} is {stock_request.status} and can no longer be edited"
            )

        if actor is not None:
            assert_store_scope(actor, stock_request.store_location)

        if store_location is not None:
            new_location = _require_text(store_location, "storeLocation")
            if actor is not None:
                assert_store_scope(actor, new_location)
            stock_request.store_location = new_location

        if comments is not None:
            stock_request.comments = _optional_text(comments, "comments") or ""

        if items is not None:
            _replace_items(stock_request, _normalize_lines(items))

        db.session.flush()
        return stock_request

    stock_request = run_atomic(_op)
    current_app.logger.info("Request #%s edited by user %s", stock_request.request_number, _actor_id(actor))
    return stock_request


def transition_status(
    request_id: int,
    new_status: str,
    *,
    actor: User | None = None,
    rejection_reason: str | None = None,
    warehouse_notes: str | None = None,
    items=None,
) -> StockRequest:
    """
    Move a request to new_status, applying that edge's side effects.

    accepted: optional items replace the lines first, then each line is
        decremented from the ledger; sets processed_at/processed_by and notes.
    rejected: rejection_reason required; sets rejected_at/processed_by.
    cancelled: actor must own the store (or be admin); sets cancelled_at.
    shipped: sets shipped_at.

    Raises:
        ValidationError: Unknown status, missing reason, empty item list
        IllegalTransitionError: Edge not allowed from the current status
        NotFoundError: Unknown request
    """
    if new_status not in ALL_STATUSES:
        raise ValidationError(f"Unknown status {new_status!r}")
    if items is not None and new_status != STATUS_ACCEPTED:
        raise ValidationError("items can only be changed when accepting a request")

    def _op():
        stock_request = _load_for_update(request_id)
        _check_transition(stock_request, new_status)

        if new_status == STATUS_ACCEPTED:
            _accept(stock_request, actor=actor, warehouse_notes=warehouse_notes, items=items)
        elif new_status == STATUS_REJECTED:
            _reject(stock_request, actor=actor, rejection_reason=rejection_reason)
        elif new_status == STATUS_CANCELLED:
            _cancel(stock_request, actor=actor)
        elif new_status == STATUS_SHIPPED:
            _ship(stock_request)

        db.session.flush()
        return stock_request

    stock_request = run_atomic(_op)
    current_app.logger.info(
        "Request #%s moved to %s by user %s",
        stock_request.request_number, new_status, _actor_id(actor),
    )
    return stock_request


def accept_request(request_id: int, *, actor: User | None = None, warehouse_notes: str | None = None) -> StockRequest:
    return transition_status(request_id, STATUS_ACCEPTED, actor=actor, warehouse_notes=warehouse_notes)


def accept_with_modifications(
    request_id: int,
    modified_items,
    *,
    notes: str | None = None,
    actor: User | None = None,
) -> StockRequest:
    """
    Replace the lines with the warehouse's quantities and accept, as one unit.

    Lines with quantity 0 are dropped; nothing left is a ValidationError.
    If any step fails nothing is written.
    """
    if modified_items is None:
        raise ValidationError("modified items are required")
    return transition_status(
        request_id,
        STATUS_ACCEPTED,
        actor=actor,
        warehouse_notes=notes,
        items=modified_items,
    )


def reject_request(request_id: int, reason: str | None, *, actor: User | None = None) -> StockRequest:
    return transition_status(request_id, STATUS_REJECTED, actor=actor, rejection_reason=reason)


def cancel_request(request_id: int, *, actor: User | None = None) -> StockRequest:
    return transition_status(request_id, STATUS_CANCELLED, actor=actor)


def mark_shipped(request_id: int, *, actor: User | None = None) -> StockRequest:
    """Manual shipment; bypasses the fulfillment tracker."""
    return transition_status(request_id, STATUS_SHIPPED, actor=actor)


def delete_request(request_id: int, *, actor: User | None = None) -> None:
    """Delete a request and its lines in any state. Inventory is not touched."""
    def _op():
        stock_request = _load_for_update(request_id)
        number = stock_request.request_number
        db.session.delete(stock_request)
        db.session.flush()
        return number

    number = run_atomic(_op)

    from .fulfillment_service import discard_tracker
    discard_tracker(request_id)

    current_app.logger.info("Request #%s deleted by user %s", number, _actor_id(actor))
