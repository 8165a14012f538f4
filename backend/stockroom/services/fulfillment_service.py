# backend/stockroom/services/fulfillment_service.py
"""
Fulfillment tracker

WHY: Accepting a request already took the stock out of the ledger. Before
the request is marked shipped, the warehouse scans what is physically
packed and confirms quantities line by line.

Trackers are ephemeral: they live in process memory (one per accepted
request, held in app.extensions) and are never persisted. They never touch
the inventory ledger.

Per-line status:
- pending: nothing confirmed yet
- partial: 0 < fulfilled < requested
- complete: fulfilled >= requested

Shipping through a tracker is only allowed once every line is complete.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field

from flask import current_app

from ..models import StockRequest, User
from ..validation import NotFoundError, ValidationError, coerce_int, coerce_quantity
from . import request_service
from .catalog_service import get_stock_item_by_barcode
from .request_service import IllegalTransitionError, STATUS_ACCEPTED


LINE_PENDING = "pending"
LINE_PARTIAL = "partial"
LINE_COMPLETE = "complete"

REGISTRY_KEY = "stockroom.fulfillment_trackers"


@dataclass
class FulfillmentLine:
    item_id: int
    name: str
    sku: str
    barcode: str | None
    requested_qty: int
    fulfilled_qty: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.requested_qty - self.fulfilled_qty)

    @property
    def status(self) -> str:
        if self.fulfilled_qty >= self.requested_qty:
            return LINE_COMPLETE
        if self.fulfilled_qty > 0:
            return LINE_PARTIAL
        return LINE_PENDING

    def to_dict(self) -> dict:
        return {
            "itemId": self.item_id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "requestedQty": self.requested_qty,
            "fulfilledQty": self.fulfilled_qty,
            "remaining": self.remaining,
            "status": self.status,
        }


@dataclass(frozen=True)
class ScanPrompt:
    """What the operator is asked to confirm after a successful scan."""
    line: FulfillmentLine
    suggested_quantity: int

    def to_dict(self) -> dict:
        return {
            "item": {
                "id": self.line.item_id,
                "name": self.line.name,
                "sku": self.line.sku,
                "barcode": self.line.barcode,
            },
            "requestedQty": self.line.requested_qty,
            "fulfilledQty": self.line.fulfilled_qty,
            "remaining": self.line.remaining,
            "suggestedQuantity": self.suggested_quantity,
        }


@dataclass
class FulfillmentTracker:
    request_id: int
    request_number: int
    store_location: str
    lines: dict[int, FulfillmentLine] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    @classmethod
    def from_request(cls, stock_request: StockRequest) -> "FulfillmentTracker":
        if stock_request.status != STATUS_ACCEPTED:
            raise IllegalTransitionError(
                f"Request #{stock_request.request_number} is {stock_request.status}; "
                f"only accepted requests can be fulfilled"
            )
        tracker = cls(
            request_id=stock_request.id,
            request_number=stock_request.request_number,
            store_location=stock_request.store_location,
        )
        for line in stock_request.items:
            tracker.lines[line.item_id] = FulfillmentLine(
                item_id=line.item_id,
                name=line.item.name,
                sku=line.item.sku,
                barcode=line.item.barcode,
                requested_qty=line.requested_quantity,
            )
        return tracker

    @property
    def total_requested(self) -> int:
        return sum(line.requested_qty for line in self.lines.values())

    @property
    def total_fulfilled(self) -> int:
        return sum(line.fulfilled_qty for line in self.lines.values())

    @property
    def is_complete(self) -> bool:
        return all(line.fulfilled_qty >= line.requested_qty for line in self.lines.values())

    def lookup(self, barcode: str | None) -> ScanPrompt:
        """
        Resolve a scanned or typed barcode to one of this request's lines.

        Raises NotFoundError for an unknown barcode and ValidationError for an
        item that is not on this request. Neither changes any progress.
        """
        if not barcode or not str(barcode).strip():
            raise ValidationError("barcode is required")

        item = get_stock_item_by_barcode(str(barcode))
        if item is None:
            raise NotFoundError(f"No product found for barcode {str(barcode).strip()}")

        line = self.lines.get(item.id)
        if line is None:
            raise ValidationError(f"{item.name} is not part of request #{self.request_number}")

        suggested = line.remaining if line.remaining > 0 else line.requested_qty
        return ScanPrompt(line=line, suggested_quantity=suggested)

    def confirm(self, item_id: int, quantity) -> FulfillmentLine:
        """
        Add an operator-confirmed quantity to a line.

        The quantity is trusted: it may exceed what is still outstanding.
        """
        line = self.lines.get(item_id)
        if line is None:
            raise ValidationError(f"Item {item_id} is not part of request #{self.request_number}")
        qty = coerce_quantity(quantity, "quantity", allow_zero=True)
        with self._lock:
            line.fulfilled_qty += qty
        return line

    def sync_lines(self, stock_request: StockRequest) -> list[int]:
        """
        Drop lines whose item is no longer on the request (the product was
        deleted). Progress on the remaining lines is kept.
        """
        current = {line.item_id for line in stock_request.items}
        with self._lock:
            stale = [item_id for item_id in self.lines if item_id not in current]
            for item_id in stale:
                del self.lines[item_id]
        return stale

    def to_dict(self) -> dict:
        return {
            "requestId": self.request_id,
            "requestNumber": self.request_number,
            "storeLocation": self.store_location,
            "items": [line.to_dict() for line in self.lines.values()],
            "totalRequested": self.total_requested,
            "totalFulfilled": self.total_fulfilled,
            "complete": self.is_complete,
        }


class TrackerRegistry:
    """Process-local map of request id -> tracker, safe across request threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._trackers: dict[int, FulfillmentTracker] = {}

    def get(self, request_id: int) -> FulfillmentTracker | None:
        with self._lock:
            return self._trackers.get(request_id)

    def get_or_start(self, stock_request: StockRequest) -> FulfillmentTracker:
        with self._lock:
            tracker = self._trackers.get(stock_request.id)
            if tracker is None:
                tracker = FulfillmentTracker.from_request(stock_request)
                self._trackers[stock_request.id] = tracker
            return tracker

    def discard(self, request_id: int) -> bool:
        with self._lock:
            return self._trackers.pop(request_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)


def get_registry() -> TrackerRegistry:
    return current_app.extensions.setdefault(REGISTRY_KEY, TrackerRegistry())


def get_tracker(request_id: int) -> FulfillmentTracker:
    """Current tracker for an accepted request, starting one if needed."""
    stock_request = request_service.get_request(request_id)
    registry = get_registry()
    tracker = registry.get(request_id)
    if tracker is not None and stock_request.status != STATUS_ACCEPTED:
        registry.discard(request_id)
        tracker = None
    if tracker is not None:
        stale = tracker.sync_lines(stock_request)
        if stale:
            current_app.logger.info(
                "Request #%s tracker dropped lines for removed items %s", tracker.request_number, stale,
            )
    if tracker is None:
        tracker = registry.get_or_start(stock_request)
    return tracker


def scan(request_id: int, barcode: str | None) -> ScanPrompt:
    return get_tracker(request_id).lookup(barcode)


def confirm(request_id: int, item_id, quantity) -> FulfillmentTracker:
    tracker = get_tracker(request_id)
    if item_id is None:
        raise ValidationError("itemId is required")
    line = tracker.confirm(coerce_int(item_id, "itemId"), quantity)
    current_app.logger.info(
        "Request #%s item %s fulfilled %s/%s",
        tracker.request_number, line.item_id, line.fulfilled_qty, line.requested_qty,
    )
    return tracker


def ship(request_id: int, *, actor: User | None = None) -> StockRequest:
    """Mark the request shipped once every tracked line is complete."""
    tracker = get_tracker(request_id)
    if not tracker.is_complete:
        outstanding = [line.name for line in tracker.lines.values() if line.status != LINE_COMPLETE]
        raise IllegalTransitionError(
            f"Request #{tracker.request_number} cannot ship; still outstanding: {', '.join(outstanding)}"
        )
    stock_request = request_service.mark_shipped(request_id, actor=actor)
    discard_tracker(request_id)
    return stock_request


def discard_tracker(request_id: int) -> bool:
    return get_registry().discard(request_id)
