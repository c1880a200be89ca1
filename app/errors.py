import logging
from flask import Blueprint
from werkzeug.exceptions import HTTPException
from app.services.errors import ServiceError
from app.utils.responses import error

errors_bp = Blueprint("errors_bp", __name__)

# Unlisted kinds fall back to 400
STATUS_BY_KIND = {
    "not_found": 404,
    "invalid_state": 400,
    "precondition_failed": 400,
    "conflict": 409,
    "concurrency_conflict": 409,
}


@errors_bp.app_errorhandler(ServiceError)
def handle_service_error(e):
    status = STATUS_BY_KIND.get(e.kind, 400)
    logging.info("service error kind=%s status=%s: %s", e.kind, status, e.message)
    return error(e.message, status=status, details=e.to_dict())


@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code, code=e.code)


@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return error(
        "An unexpected error occurred. Please try again later.",
        status=500,
        code=500,
    )
