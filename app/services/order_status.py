"""
Order status state machine.

PENDING -> IN_PREPARATION -> READY -> DELIVERED, with CANCELLED reachable
from every non-terminal status. DELIVERED and CANCELLED are terminal, and
no status may transition to itself.
"""
from models.order import OrderStatus

VALID_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PREPARATION, OrderStatus.CANCELLED},
    OrderStatus.IN_PREPARATION: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Order column stamped when a status is entered
STATUS_TIMESTAMP_FIELDS = {
    OrderStatus.IN_PREPARATION: "prepared_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def allowed_transitions(current: str) -> set:
    return VALID_STATUS_TRANSITIONS.get(current, set())


def can_transition(current: str, new: str) -> bool:
    return new in allowed_transitions(current)
