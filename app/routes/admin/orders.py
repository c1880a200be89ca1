from flask import request
from app.utils import ok, page_size, role_required, validate_schema, validate_query
from app.schemas.order import OrderQuery, UpdateOrderStatusRequest
from app.services.order_service import OrderService
from app.services.order_status import allowed_transitions
from . import admin_bp


@admin_bp.route("/orders", methods=["GET"])
@validate_query(OrderQuery)
def list_orders():
    """
    Kitchen view of all orders, newest first.
    ---
    tags:
      - Admin
    parameters:
      - name: status
        in: query
        type: string
      - name: date
        in: query
        type: string
        format: date
    responses:
      200:
        description: Paginated orders with customer contact
    """
    q = request.validated_query
    result = OrderService().list_all(status=q.status, date=q.date, page=q.page, limit=page_size(q.limit))
    orders = []
    for order in result["orders"]:
        data = order.to_dict(include_customer=True)
        data["next_statuses"] = sorted(allowed_transitions(order.status))
        orders.append(data)
    return ok({"orders": orders, "pagination": result["pagination"]})


@admin_bp.route("/orders/<int:order_id>/status", methods=["PATCH"])
@role_required("admin:update_order_status")
@validate_schema(UpdateOrderStatusRequest)
def update_order_status(order_id):
    body = request.validated_data
    order = OrderService().update_status(order_id, body.status, actor_id=request.user.id, notes=body.notes)
    return ok(
        {"order": order.to_dict(include_history=True, include_customer=True)},
        message=f"Order status updated to {order.status}",
    )
