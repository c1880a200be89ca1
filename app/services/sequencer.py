import logging
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from models import db
from models.counter import Counter, ORDER_COUNTER
from app.services.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)


class OrderSequencer:
    """Mints order numbers from the single ``order_counter`` row.

    The increment is a single ``UPDATE ... SET value = value + 1`` so the
    database serializes concurrent callers on the row lock, which is held
    until the caller's transaction ends. Never commits: the new value only
    becomes durable together with the order that uses it.
    """

    def __init__(self, session=None, counter_id: str = ORDER_COUNTER):
        self.session = session or db.session
        self.counter_id = counter_id

    def next_value(self) -> int:
        if not self._increment():
            self._create_first()
        value = self.session.execute(
            select(Counter.value).where(Counter.id == self.counter_id)
        ).scalar_one_or_none()
        if value is None:
            raise ConcurrencyConflict("Could not allocate an order number", counter=self.counter_id)
        return value

    def current_value(self) -> int:
        value = self.session.execute(
            select(Counter.value).where(Counter.id == self.counter_id)
        ).scalar_one_or_none()
        return value or 0

    def _increment(self) -> bool:
        result = self.session.execute(
            update(Counter)
            .where(Counter.id == self.counter_id)
            .values(value=Counter.value + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _create_first(self):
        try:
            with self.session.begin_nested():
                self.session.add(Counter(id=self.counter_id, value=1))
        except IntegrityError:
            # Another transaction created the row first; take the next value from it.
            logger.info("counter %s created concurrently, retrying increment", self.counter_id)
            if not self._increment():
                raise ConcurrencyConflict("Could not allocate an order number", counter=self.counter_id)
