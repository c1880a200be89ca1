from decimal import Decimal
import pytest
from sqlalchemy import event
from sqlalchemy.orm import Session
from models import db
from models.cart import CartItem
from models.order import Order, OrderItem, OrderStatusHistory, OrderStatus
from app.services.cart_service import CartService
from app.services.errors import ConcurrencyConflict, InvalidState, NotFound, PreconditionFailed
from app.services.order_service import OrderService, CREATED_NOTE, CANCELLED_BY_CUSTOMER_NOTE
from app.services.sequencer import OrderSequencer


def _history(order_id):
    return (
        OrderStatusHistory.query.filter_by(order_id=order_id)
        .order_by(OrderStatusHistory.id.asc())
        .all()
    )


def test_create_from_cart(app, users, menu, filled_cart):
    order = OrderService().create_from_cart(users['customer'].id, notes='table 4')

    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal('13.00')
    assert order.notes == 'table 4'
    assert order.order_number == 1
    assert len(order.items) == 2
    by_name = {i.product_name: i for i in order.items}
    assert by_name['Coxinha'].unit_price == Decimal('5.00')
    assert by_name['Coxinha'].quantity == 2
    assert by_name['Coxinha'].total_price == Decimal('10.00')
    assert by_name['Coxinha'].notes == 'no salt'
    assert by_name['Suco'].total_price == Decimal('3.00')

    history = _history(order.id)
    assert len(history) == 1
    assert history[0].status == OrderStatus.PENDING
    assert history[0].changed_by is None
    assert history[0].notes == CREATED_NOTE

    assert CartItem.query.count() == 0


def test_order_numbers_are_contiguous(app, users, menu):
    service = OrderService()
    carts = CartService()
    numbers = []
    for _ in range(3):
        carts.add_item(users['customer'].id, menu['A'].id)
        db.session.commit()
        numbers.append(service.create_from_cart(users['customer'].id).order_number)
    assert numbers == [1, 2, 3]
    assert OrderSequencer().current_value() == 3


def test_empty_cart_creates_nothing(app, users):
    with pytest.raises(PreconditionFailed):
        OrderService().create_from_cart(users['customer'].id)
    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert OrderSequencer().current_value() == 0


def test_unavailable_product_leaves_cart_and_counter(app, users, menu, filled_cart):
    menu['A'].is_available = False
    db.session.commit()
    with pytest.raises(PreconditionFailed) as exc:
        OrderService().create_from_cart(users['customer'].id)
    assert exc.value.context['product'] == 'Coxinha'
    assert Order.query.count() == 0
    assert CartItem.query.count() == 2
    assert OrderSequencer().current_value() == 0


def test_failure_mid_creation_rolls_everything_back(app, users, menu, filled_cart, monkeypatch):
    def broken_purge(self, cart, expected=None):
        raise RuntimeError('disk full')

    monkeypatch.setattr(CartService, 'purge', broken_purge)
    with pytest.raises(RuntimeError):
        OrderService().create_from_cart(users['customer'].id)

    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert OrderStatusHistory.query.count() == 0
    assert CartItem.query.count() == 2
    assert OrderSequencer().current_value() == 0


def test_items_are_a_snapshot(app, users, menu, filled_cart):
    order = OrderService().create_from_cart(users['customer'].id)
    menu['A'].price = Decimal('9.90')
    menu['A'].name = 'Coxinha grande'
    db.session.commit()

    db.session.expire_all()
    order = db.session.get(Order, order.id)
    names = sorted(i.product_name for i in order.items)
    assert names == ['Coxinha', 'Suco']
    assert order.total_amount == Decimal('13.00')
    assert sorted(i.unit_price for i in order.items) == [Decimal('3.00'), Decimal('5.00')]


def test_cancel_pending_order(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    order = service.cancel(order.id, users['customer'].id)

    assert order.status == OrderStatus.CANCELLED
    assert order.cancelled_at is not None
    history = _history(order.id)
    assert [h.status for h in history] == [OrderStatus.PENDING, OrderStatus.CANCELLED]
    assert history[-1].notes == CANCELLED_BY_CUSTOMER_NOTE
    assert history[-1].changed_by is None


def test_cancel_requires_pending(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    service.update_status(order.id, OrderStatus.IN_PREPARATION, actor_id=users['admin'].id)

    with pytest.raises(InvalidState) as exc:
        service.cancel(order.id, users['customer'].id)
    assert exc.value.context == {'current': OrderStatus.IN_PREPARATION, 'requested': OrderStatus.CANCELLED}
    assert db.session.get(Order, order.id).status == OrderStatus.IN_PREPARATION
    assert len(_history(order.id)) == 2


def test_cancel_by_another_user_is_not_found(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    with pytest.raises(NotFound):
        service.cancel(order.id, users['other'].id)
    assert db.session.get(Order, order.id).status == OrderStatus.PENDING


def test_update_status_appends_one_history_entry(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    order = service.update_status(order.id, OrderStatus.IN_PREPARATION, actor_id=users['admin'].id, notes='on the grill')

    assert order.status == OrderStatus.IN_PREPARATION
    assert order.prepared_at is not None
    history = _history(order.id)
    assert len(history) == 2
    assert history[-1].status == OrderStatus.IN_PREPARATION
    assert history[-1].changed_by == users['admin'].id
    assert history[-1].notes == 'on the grill'


def test_full_kitchen_flow_stamps_timestamps(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    for status in (OrderStatus.IN_PREPARATION, OrderStatus.READY, OrderStatus.DELIVERED):
        order = service.update_status(order.id, status, actor_id=users['admin'].id)
    assert order.status == OrderStatus.DELIVERED
    assert order.prepared_at and order.ready_at and order.delivered_at
    assert order.cancelled_at is None
    assert len(_history(order.id)) == 4


@pytest.mark.parametrize("target", [OrderStatus.READY, OrderStatus.DELIVERED, OrderStatus.PENDING])
def test_invalid_transition_from_pending(app, users, menu, filled_cart, target):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    with pytest.raises(InvalidState) as exc:
        service.update_status(order.id, target, actor_id=users['admin'].id)
    assert exc.value.message == f'Cannot change status from PENDING to {target}'
    assert db.session.get(Order, order.id).status == OrderStatus.PENDING
    assert len(_history(order.id)) == 1


def test_terminal_orders_cannot_move(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    service.update_status(order.id, OrderStatus.CANCELLED, actor_id=users['admin'].id)
    with pytest.raises(InvalidState):
        service.update_status(order.id, OrderStatus.IN_PREPARATION, actor_id=users['admin'].id)


def test_update_status_of_missing_order(app, users):
    with pytest.raises(NotFound):
        OrderService().update_status(404, OrderStatus.READY, actor_id=users['admin'].id)


def test_get_by_id_visibility(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    assert service.get_by_id(order.id, users['customer'].id).id == order.id
    assert service.get_by_id(order.id, users['admin'].id, is_admin=True).id == order.id
    with pytest.raises(NotFound):
        service.get_by_id(order.id, users['other'].id)


def test_history_is_read_newest_first(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    service.update_status(order.id, OrderStatus.IN_PREPARATION, actor_id=users['admin'].id)
    service.update_status(order.id, OrderStatus.READY, actor_id=users['admin'].id)
    db.session.expire_all()
    order = service.get_by_id(order.id, users['customer'].id)
    assert [h.status for h in order.status_history] == [
        OrderStatus.READY,
        OrderStatus.IN_PREPARATION,
        OrderStatus.PENDING,
    ]


def test_listing_filters_and_pagination(app, users, menu):
    service = OrderService()
    carts = CartService()
    for uid in (users['customer'].id, users['customer'].id, users['other'].id):
        carts.add_item(uid, menu['B'].id)
        db.session.commit()
        service.create_from_cart(uid)
    first = Order.query.order_by(Order.id.asc()).first()
    service.cancel(first.id, users['customer'].id)

    mine = service.list_for_user(users['customer'].id, page=1, limit=1)
    assert mine['pagination'] == {'page': 1, 'limit': 1, 'total': 2, 'total_pages': 2}
    assert len(mine['orders']) == 1

    pending = service.list_all(status=OrderStatus.PENDING)
    assert pending['pagination']['total'] == 2
    assert all(o.status == OrderStatus.PENDING for o in pending['orders'])
    assert service.list_all()['pagination']['total'] == 3


class _InterleavingCartService(CartService):
    """Runs ``between`` in its own session right after the cart is read."""

    def __init__(self, between):
        super().__init__()
        self.between = between

    def snapshot(self, user_id):
        cart = super().snapshot(user_id)
        other = Session(db.engine)
        try:
            self.between(other)
        finally:
            other.close()
        return cart


def test_double_checkout_places_one_order(app, users, menu, filled_cart):
    uid = users['customer'].id

    def checkout_elsewhere(session):
        OrderService(session=session).create_from_cart(uid)

    service = OrderService(cart_service=_InterleavingCartService(checkout_elsewhere))
    with pytest.raises(ConcurrencyConflict) as exc:
        service.create_from_cart(uid)
    assert exc.value.context['expected'] == 2
    assert exc.value.context['deleted'] == 0

    orders = Order.query.all()
    assert [(o.order_number, o.total_amount) for o in orders] == [(1, Decimal('13.00'))]
    assert OrderStatusHistory.query.count() == 1
    assert OrderSequencer().current_value() == 1


def test_item_added_during_checkout_is_not_lost(app, users, menu):
    uid = users['customer'].id
    CartService().add_item(uid, menu['A'].id, 1)
    db.session.commit()

    def add_elsewhere(session):
        CartService(session).add_item(uid, menu['B'].id, 1)
        session.commit()

    service = OrderService(cart_service=_InterleavingCartService(add_elsewhere))
    with pytest.raises(ConcurrencyConflict):
        service.create_from_cart(uid)

    assert Order.query.count() == 0
    assert CartItem.query.count() == 2
    assert OrderSequencer().current_value() == 0


def test_status_timestamps_use_database_clock(app, users, menu, filled_cart):
    service = OrderService()
    order = service.create_from_cart(users['customer'].id)
    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith('UPDATE "order"'):
            statements.append(statement)

    event.listen(db.engine, 'before_cursor_execute', capture)
    try:
        order = service.update_status(order.id, OrderStatus.IN_PREPARATION, actor_id=users['admin'].id)
    finally:
        event.remove(db.engine, 'before_cursor_execute', capture)

    assert len(statements) == 1
    assert 'prepared_at=CURRENT_TIMESTAMP' in statements[0]
    assert order.prepared_at >= order.created_at
