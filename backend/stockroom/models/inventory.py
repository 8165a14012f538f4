from __future__ import annotations

from ..extensions import db


class InventoryEntry(db.Model):
    """
    Warehouse ledger row: how many units of one stock item are available.

    One row per item, created lazily the first time stock is added.
    available_quantity never goes below zero; decrements are floored at 0
    by inventory_service and the CHECK constraint backs that up.
    """
    __tablename__ = "warehouse_inventory"
    __table_args__ = (
        db.UniqueConstraint("item_id", name="uq_warehouse_inventory_item"),
        db.CheckConstraint("available_quantity >= 0", name="ck_warehouse_inventory_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(
        db.Integer,
        db.ForeignKey("stock_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    available_quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    item = db.relationship("StockItem")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<InventoryEntry item_id={self.item_id} available={self.available_quantity}>"

    def to_dict(self) -> dict:
        return {
            "itemId": self.item_id,
            "availableQuantity": self.available_quantity,
        }
