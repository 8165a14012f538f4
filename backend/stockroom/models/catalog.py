from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class StockItem(db.Model):
    """
    Catalog record for a product the warehouse can hold and stores can request.

    SKU is required and globally unique. Barcode is optional, but when present
    it is unique too so a scan resolves to exactly one item.

    Items are immutable once created; the only supported change is deletion,
    which cascades to the ledger entry and to request lines (see
    inventory_service.delete_product).
    """
    __tablename__ = "stock_items"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_stock_items_sku"),
        db.UniqueConstraint("barcode", name="uq_stock_items_barcode"),
        db.Index("ix_stock_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<StockItem id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "createdAt": to_utc_z(self.created_at),
        }
