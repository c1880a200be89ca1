from flask import Blueprint, request, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.version import API_PREFIX
from app.utils import (
    auth_required,
    role_required,
    current_user_is_admin,
    ok,
    validate_schema,
    validate_query,
    page_size,
)
from app.schemas.order import CreateOrderRequest, OrderQuery
from app.services.order_service import OrderService

orders_bp = Blueprint("orders", __name__, url_prefix=f"{API_PREFIX}/orders")


@orders_bp.before_request
@auth_required
@role_required(["customer", "admin"])
def _enforce_signed_in():
    """Ensure the requester is authenticated."""
    return None


@orders_bp.route("", methods=["POST"])
@limiter.limit(lambda: current_app.config["ORDER_LIMIT_PER_IP"], key_func=get_remote_address, error_message="Too many orders from this IP")
@role_required(["customer:place_order", "admin"])
@validate_schema(CreateOrderRequest)
def create_order():
    """
    Place an order from the current cart.
    ---
    tags:
      - Orders
    responses:
      201:
        description: Order created
      400:
        description: Cart empty or product unavailable
    """
    body = request.validated_data
    order = OrderService().create_from_cart(request.user.id, notes=body.notes)
    return ok({"order": order.to_dict(include_history=True)}, message="Order placed successfully", status=201)


@orders_bp.route("", methods=["GET"])
@validate_query(OrderQuery)
def list_my_orders():
    q = request.validated_query
    result = OrderService().list_for_user(request.user.id, status=q.status, page=q.page, limit=page_size(q.limit))
    return ok({
        "orders": [o.to_dict() for o in result["orders"]],
        "pagination": result["pagination"],
    })


@orders_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id):
    is_admin = current_user_is_admin()
    order = OrderService().get_by_id(order_id, request.user.id, is_admin=is_admin)
    return ok({"order": order.to_dict(include_history=True, include_customer=is_admin)})


@orders_bp.route("/<int:order_id>/cancel", methods=["PATCH"])
@role_required("customer:cancel_order")
def cancel_order(order_id):
    order = OrderService().cancel(order_id, request.user.id)
    return ok({"order": order.to_dict(include_history=True)}, message="Order cancelled")
