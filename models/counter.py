from models import db

ORDER_COUNTER = "order_counter"


class Counter(db.Model):
    """Named durable integer, incremented in place by the order sequencer."""

    __tablename__ = "counter"

    id = db.Column(db.String(50), primary_key=True)
    value = db.Column(db.Integer, nullable=False, default=0)
