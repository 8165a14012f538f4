from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class StockRequest(db.Model):
    """
    Stock request raised by a store against the warehouse.

    LIFECYCLE:
    1. pending: submitted by the store, editable by that store
    2. accepted: warehouse accepted it and inventory was decremented
    3. shipped: picked, packed and sent (terminal)
    4. rejected: warehouse declined it with a reason (terminal)
    5. cancelled: withdrawn by the store before processing (terminal)

    request_number is a human-facing sequence allocated by
    sequence_service.next_request_number; it is never reused, even after the
    request that held it is deleted.
    """
    __tablename__ = "stock_requests"
    __table_args__ = (
        db.UniqueConstraint("request_number", name="uq_stock_requests_number"),
        db.Index("ix_stock_requests_store_status", "store_location", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_number = db.Column(db.Integer, nullable=False)

    store_location = db.Column(db.String(128), nullable=False, index=True)
    comments = db.Column(db.Text, nullable=False, default="")

    # pending, accepted, shipped, rejected, cancelled
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    processed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    rejection_reason = db.Column(db.Text, nullable=True)
    warehouse_notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "StockRequestItem",
        backref="request",
        cascade="all, delete-orphan",
        order_by="StockRequestItem.id",
        lazy=True,
    )
    submitted_by = db.relationship("User", foreign_keys=[user_id])
    processor = db.relationship("User", foreign_keys=[processed_by])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<StockRequest id={self.id} number={self.request_number} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requestNumber": self.request_number,
            "storeLocation": self.store_location,
            "items": [item.to_dict() for item in self.items],
            "comments": self.comments or "",
            "status": self.status,
            "submittedAt": to_utc_z(self.submitted_at),
            "processedAt": to_utc_z(self.processed_at),
            "shippedAt": to_utc_z(self.shipped_at),
            "rejectedAt": to_utc_z(self.rejected_at),
            "cancelledAt": to_utc_z(self.cancelled_at),
            "userId": self.user_id,
            "processedBy": self.processed_by,
            "rejectionReason": self.rejection_reason,
            "warehouseNotes": self.warehouse_notes,
        }


class StockRequestItem(db.Model):
    """One requested line; owned by its StockRequest and replaced wholesale on edit."""
    __tablename__ = "stock_request_items"
    __table_args__ = (
        db.UniqueConstraint("request_id", "item_id", name="uq_stock_request_items_request_item"),
        db.CheckConstraint("requested_quantity > 0", name="ck_stock_request_items_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(
        db.Integer,
        db.ForeignKey("stock_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id = db.Column(
        db.Integer,
        db.ForeignKey("stock_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requested_quantity = db.Column(db.Integer, nullable=False)

    item = db.relationship("StockItem")

    def to_dict(self) -> dict:
        return {
            "itemId": self.item_id,
            "requestedQuantity": self.requested_quantity,
        }


class RequestSequence(db.Model):
    """
    Single-row counter backing request numbers.

    next_number only ever increases, so numbers freed by deleting a request
    are not handed out again.
    """
    __tablename__ = "request_sequences"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_request_sequences_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nextNumber": self.next_number,
        }
