"""Domain errors raised by the service layer.

Each error carries a ``kind`` and a ``context`` dict of structured detail
(offending product, current/requested status). The HTTP layer maps the kind
to a status code in ``app.errors``; services never choose status codes.
"""


class ServiceError(Exception):
    kind = "service_error"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        return {"kind": self.kind, **self.context}


class NotFound(ServiceError):
    kind = "not_found"


class InvalidState(ServiceError):
    kind = "invalid_state"

    def __init__(self, message, *, current, requested):
        super().__init__(message, current=current, requested=requested)


class PreconditionFailed(ServiceError):
    kind = "precondition_failed"


class Conflict(ServiceError):
    kind = "conflict"


class ConcurrencyConflict(Conflict):
    kind = "concurrency_conflict"
