# Overview: Service-layer operations for the stock item catalog.

from __future__ import annotations

from ..extensions import db
from ..models import StockItem
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import run_atomic


def list_stock_items() -> list[StockItem]:
    return db.session.query(StockItem).order_by(StockItem.name.asc(), StockItem.id.asc()).all()


def get_stock_item(item_id: int) -> StockItem:
    item = db.session.get(StockItem, item_id)
    if item is None:
        raise NotFoundError(f"Stock item {item_id} not found")
    return item


def get_stock_item_by_barcode(barcode: str | None) -> StockItem | None:
    """
    Exact barcode lookup. Returns None when nothing matches.

    A miss is an expected outcome (unlabelled or foreign barcode), so it is
    not raised as an error here; callers decide how to report it.
    """
    if barcode is None:
        return None
    value = barcode.strip()
    if not value:
        return None
    return db.session.query(StockItem).filter_by(barcode=value).first()


def add_stock_item(*, name: str, sku: str, barcode: str | None = None) -> StockItem:
    """
    Insert a catalog row inside the caller's transaction (flush only).

    Raises ConflictError for a duplicate SKU or barcode.
    """
    name = (name or "").strip()
    sku = (sku or "").strip()
    barcode = barcode.strip() if barcode else None

    if not name:
        raise ValidationError("name is required")
    if not sku:
        raise ValidationError("sku is required")

    if db.session.query(StockItem.id).filter_by(sku=sku).first():
        raise ConflictError(f"SKU {sku} already exists")
    if barcode and db.session.query(StockItem.id).filter_by(barcode=barcode).first():
        raise ConflictError(f"Barcode {barcode} already assigned to another item")

    item = StockItem(name=name, sku=sku, barcode=barcode)
    db.session.add(item)
    db.session.flush()
    return item


def create_stock_item(*, name: str, sku: str, barcode: str | None = None) -> StockItem:
    """Create a catalog entry with no ledger row; stock is added later by receiving."""
    return run_atomic(lambda: add_stock_item(name=name, sku=sku, barcode=barcode))
