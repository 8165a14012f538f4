# Overview: Service-layer operations for the warehouse inventory ledger.

# backend/stockroom/services/inventory_service.py
"""
Warehouse ledger invariants (authoritative)

- One InventoryEntry per stock item, created lazily on the first increment.
- available_quantity is a non-negative integer at all times.
- increment is unconditionally additive.
- decrement floors at zero: asking for more than is available empties the
  entry instead of failing. The shortfall is logged at WARNING so
  over-allocation stays visible. A missing entry counts as zero available.
- Multi-step operations (create_product, delete_product, receive_stock) run in
  a single transaction via run_atomic.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import InventoryEntry, StockItem, StockRequestItem
from ..validation import ValidationError, coerce_quantity
from .catalog_service import add_stock_item, get_stock_item
from .concurrency import lock_for_update, run_atomic


def get_all() -> list[InventoryEntry]:
    return db.session.query(InventoryEntry).order_by(InventoryEntry.item_id.asc()).all()


def get_available_quantity(item_id: int) -> int:
    qty = (
        db.session.query(InventoryEntry.available_quantity)
        .filter_by(item_id=item_id)
        .scalar()
    )
    return qty or 0


def _locked_entry(item_id: int) -> InventoryEntry | None:
    return lock_for_update(db.session.query(InventoryEntry).filter_by(item_id=item_id)).first()


def apply_increment(item_id: int, quantity: int) -> InventoryEntry:
    """Add stock inside the caller's transaction; creates the entry if absent."""
    quantity = coerce_quantity(quantity, "quantity")
    get_stock_item(item_id)

    entry = _locked_entry(item_id)
    if entry is None:
        entry = InventoryEntry(item_id=item_id, available_quantity=quantity)
        db.session.add(entry)
    else:
        entry.available_quantity = entry.available_quantity + quantity
    db.session.flush()
    return entry


def apply_decrement(item_id: int, quantity: int) -> int:
    """
    Remove stock inside the caller's transaction, flooring at zero.

    Returns the number of units actually removed (<= quantity).
    """
    quantity = coerce_quantity(quantity, "quantity", allow_zero=True)

    entry = _locked_entry(item_id)
    if entry is None:
        if quantity:
            current_app.logger.warning(
                "Decrement of %s units for item %s with no inventory entry; treated as 0 available",
                quantity, item_id,
            )
        return 0

    current = entry.available_quantity
    removed = min(current, quantity)
    if removed < quantity:
        current_app.logger.warning(
            "Inventory for item %s floored at 0 (had %s, requested %s)",
            item_id, current, quantity,
        )
    entry.available_quantity = current - removed
    db.session.flush()
    return removed


def increment(item_id: int, quantity: int) -> InventoryEntry:
    entry = run_atomic(lambda: apply_increment(item_id, quantity))
    current_app.logger.info("Added %s units to item %s (now %s)", quantity, item_id, entry.available_quantity)
    return entry


def decrement(item_id: int, quantity: int) -> int:
    return run_atomic(lambda: apply_decrement(item_id, quantity))


def receive_stock(lines: list[tuple[int, int]]) -> list[InventoryEntry]:
    """Receive several items at once; either every line lands or none does."""
    if not lines:
        raise ValidationError("At least one item is required to receive stock")

    def _op():
        return [apply_increment(item_id, qty) for item_id, qty in lines]

    entries = run_atomic(_op)
    current_app.logger.info("Received stock for %s items", len(entries))
    return entries


def create_product(
    *,
    name: str,
    sku: str,
    barcode: str | None = None,
    initial_quantity: int = 0,
) -> StockItem:
    """Create the catalog entry and its ledger entry together."""
    initial_quantity = coerce_quantity(initial_quantity, "initialQuantity", allow_zero=True)

    def _op():
        item = add_stock_item(name=name, sku=sku, barcode=barcode)
        db.session.add(InventoryEntry(item_id=item.id, available_quantity=initial_quantity))
        db.session.flush()
        return item

    item = run_atomic(_op)
    current_app.logger.info("Created product %s (%s) with %s units", item.id, item.sku, initial_quantity)
    return item


def delete_product(item_id: int) -> None:
    """
    Remove a product: ledger entry, request lines referencing it, then the
    catalog row, in one transaction.

    Requests that lose lines this way are left as they are, even if that
    leaves them with no items.
    """
    def _op():
        item = get_stock_item(item_id)
        db.session.query(InventoryEntry).filter_by(item_id=item_id).delete(synchronize_session="fetch")
        removed_lines = (
            db.session.query(StockRequestItem)
            .filter_by(item_id=item_id)
            .delete(synchronize_session="fetch")
        )
        db.session.delete(item)
        db.session.flush()
        return removed_lines

    removed_lines = run_atomic(_op)
    current_app.logger.info("Deleted product %s (%s request lines removed)", item_id, removed_lines)
