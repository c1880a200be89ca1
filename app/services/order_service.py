import logging
import math
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from models import db
from models.order import Order, OrderItem, OrderStatusHistory, OrderStatus
from app import metrics
from app.services.cart_service import CartService
from app.services.errors import NotFound, InvalidState
from app.services.money import to_money
from app.services.order_status import can_transition, STATUS_TIMESTAMP_FIELDS
from app.services.sequencer import OrderSequencer
from app.telemetry import order_span
from app.utils.db import transactional

logger = logging.getLogger(__name__)

CREATED_NOTE = "Order created"
CANCELLED_BY_CUSTOMER_NOTE = "Cancelled by customer"


class OrderService:
    """Order lifecycle: cart conversion, customer cancellation, admin status updates.

    Every mutating operation runs in its own transaction and commits on
    success. Domain errors are raised before anything is written.
    """

    def __init__(self, session=None, cart_service=None, sequencer=None):
        self.session = session or db.session
        self.carts = cart_service or CartService(self.session)
        self.sequencer = sequencer or OrderSequencer(self.session)

    # ------------------------------------------------------------------ create

    def create_from_cart(self, user_id, notes: Optional[str] = None) -> Order:
        """Convert the user's cart into a PENDING order.

        Counter increment, order/item/history inserts and the cart purge
        commit together or not at all.
        """
        cart = self.carts.snapshot(user_id)

        total_amount = Decimal("0.00")
        lines: List[OrderItem] = []
        for ci in cart.items:
            unit_price = to_money(ci.product.price)
            subtotal = unit_price * ci.quantity
            total_amount += subtotal
            lines.append(
                OrderItem(
                    product_id=ci.product_id,
                    product_name=ci.product.name,
                    unit_price=unit_price,
                    quantity=ci.quantity,
                    total_price=subtotal,
                    notes=ci.notes,
                )
            )

        with order_span("order.create", user_id=user_id, lines=len(lines)) as span, \
                transactional("Order creation failed", session=self.session):
            order = Order(
                order_number=self.sequencer.next_value(),
                user_id=user_id,
                status=OrderStatus.PENDING,
                total_amount=total_amount,
                notes=notes,
                items=lines,
            )
            self.session.add(order)
            self.session.flush()
            self.session.add(
                OrderStatusHistory(order_id=order.id, status=OrderStatus.PENDING, notes=CREATED_NOTE)
            )
            self.carts.purge(cart, expected=len(lines))
            span.set_attribute("order.number", order.order_number)

        logger.info({
            "event": "order_created",
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": user_id,
            "total_amount": str(total_amount),
        })
        metrics.record_order_created()
        return order

    # ------------------------------------------------------------------- reads

    def _base_query(self):
        return self.session.query(Order).options(selectinload(Order.items))

    def get_by_id(self, order_id, user_id, is_admin: bool = False) -> Order:
        """Owner or admin only; anyone else gets NotFound so existence is not leaked."""
        query = self._base_query().options(selectinload(Order.status_history)).filter(Order.id == order_id)
        if not is_admin:
            query = query.filter(Order.user_id == user_id)
        order = query.first()
        if not order:
            raise NotFound("Order not found", order_id=order_id)
        return order

    def list_for_user(self, user_id, status=None, page: int = 1, limit: int = 20) -> dict:
        query = self._base_query().filter(Order.user_id == user_id)
        if status:
            query = query.filter(Order.status == status)
        return _paginate(query, page, limit)

    def list_all(self, status=None, date=None, page: int = 1, limit: int = 20) -> dict:
        query = self._base_query().options(selectinload(Order.user))
        if status:
            query = query.filter(Order.status == status)
        if date:
            start = datetime.combine(date, time.min)
            query = query.filter(Order.created_at >= start, Order.created_at < start + timedelta(days=1))
        return _paginate(query, page, limit)

    # ----------------------------------------------------------- transitions

    def cancel(self, order_id, user_id) -> Order:
        order = self.session.query(Order).filter_by(id=order_id, user_id=user_id).first()
        if not order:
            raise NotFound("Order not found", order_id=order_id)
        if order.status != OrderStatus.PENDING:
            raise InvalidState(
                "Only pending orders can be cancelled",
                current=order.status,
                requested=OrderStatus.CANCELLED,
            )

        with order_span("order.cancel", id=order.id, user_id=user_id), \
                transactional("Failed to cancel order", session=self.session):
            self._apply_status(order, OrderStatus.CANCELLED, actor_id=None, notes=CANCELLED_BY_CUSTOMER_NOTE)

        logger.info({"event": "order_cancelled", "order_id": order.id, "user_id": user_id})
        return order

    def update_status(self, order_id, new_status: str, actor_id, notes: Optional[str] = None) -> Order:
        order = self.session.get(Order, order_id)
        if not order:
            raise NotFound("Order not found", order_id=order_id)
        if not can_transition(order.status, new_status):
            raise InvalidState(
                f"Cannot change status from {order.status} to {new_status}",
                current=order.status,
                requested=new_status,
            )

        previous = order.status
        with order_span("order.update_status", id=order.id, status=new_status), \
                transactional("Failed to update order status", session=self.session):
            self._apply_status(order, new_status, actor_id=actor_id, notes=notes)

        logger.info({
            "event": "order_status_changed",
            "order_id": order.id,
            "from": previous,
            "to": new_status,
            "actor_id": actor_id,
        })
        return order

    def _apply_status(self, order: Order, new_status: str, actor_id, notes):
        order.status = new_status
        stamp = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if stamp:
            setattr(order, stamp, func.now())
        self.session.add(
            OrderStatusHistory(order_id=order.id, status=new_status, changed_by=actor_id, notes=notes)
        )
        metrics.record_status_transition(new_status)


def _paginate(query, page: int, limit: int) -> dict:
    total = query.order_by(None).count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "orders": orders,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
        },
    }
