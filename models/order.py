from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from models import db, BIGINT


class OrderStatus:
    PENDING = "PENDING"
    IN_PREPARATION = "IN_PREPARATION"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, IN_PREPARATION, READY, DELIVERED, CANCELLED)


class Order(db.Model):
    __tablename__ = "order"
    __table_args__ = (
        db.Index("ix_order_user_created", "user_id", "created_at"),
        db.Index("ix_order_status_created", "status", "created_at"),
    )
    id = Column(BIGINT, primary_key=True)
    order_number = Column(Integer, unique=True, nullable=False)
    user_id = Column(BIGINT, ForeignKey("user.id"), nullable=False)
    status = Column(String(30), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Stamped once when the matching status is reached
    prepared_at = Column(DateTime, nullable=True)
    ready_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    user = db.relationship("User", lazy=True)
    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )
    status_history = db.relationship(
        "OrderStatusHistory",
        backref="order",
        order_by=lambda: [OrderStatusHistory.changed_at.desc(), OrderStatusHistory.id.desc()],
        lazy=True,
    )

    def to_dict(self, include_history=False, include_customer=False):
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "notes": self.notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "prepared_at": _iso(self.prepared_at),
            "ready_at": _iso(self.ready_at),
            "delivered_at": _iso(self.delivered_at),
            "cancelled_at": _iso(self.cancelled_at),
            "items": [oi.to_dict() for oi in self.items],
        }
        if include_history:
            data["status_history"] = [h.to_dict() for h in self.status_history]
        if include_customer and self.user is not None:
            data["customer"] = self.user.contact_dict()
        return data


class OrderItem(db.Model):
    """Snapshot of a cart line at purchase time, detached from the live product."""

    __tablename__ = "order_item"
    id = db.Column(BIGINT, primary_key=True)
    order_id = db.Column(BIGINT, db.ForeignKey("order.id"), nullable=False)
    product_id = db.Column(BIGINT, nullable=False)

    product_name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    notes = db.Column(db.String(500), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
            "total_price": float(self.total_price),
            "notes": self.notes,
        }


class OrderStatusHistory(db.Model):
    __tablename__ = "order_status_history"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("order.id"), nullable=False, index=True)
    status = Column(String(30), nullable=False)
    changed_by = Column(BIGINT, nullable=True)  # NULL for system and customer entries
    notes = Column(Text, nullable=True)
    changed_at = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "status": self.status,
            "changed_by": self.changed_by,
            "notes": self.notes,
            "changed_at": _iso(self.changed_at),
        }


def _iso(value):
    return value.isoformat() if value else None
