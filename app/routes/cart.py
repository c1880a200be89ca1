from flask import Blueprint, request
from app.version import API_PREFIX
from app.utils import auth_required, role_required, ok, transactional, validate_schema
from app.schemas.cart import AddCartItemRequest, UpdateCartItemRequest
from app.services.cart_service import CartService, cart_to_dict

cart_bp = Blueprint("cart", __name__, url_prefix=f"{API_PREFIX}/cart")


@cart_bp.before_request
@auth_required
@role_required(["customer:manage_cart", "admin"])
def _enforce_signed_in():
    """Carts belong to the authenticated user."""
    return None


@cart_bp.route("", methods=["GET"])
def get_cart():
    with transactional("Failed to load cart"):
        cart = CartService().get_cart(request.user.id)
    return ok({"cart": cart}, message="Cart loaded")


@cart_bp.route("/items", methods=["POST"])
@validate_schema(AddCartItemRequest)
def add_item():
    body = request.validated_data
    with transactional("Failed to add to cart"):
        cart = CartService().add_item(request.user.id, body.product_id, body.quantity, body.notes)
        payload = cart_to_dict(cart)
    return ok({"cart": payload}, message="Item added to cart")


@cart_bp.route("/items/<int:item_id>", methods=["PUT"])
@validate_schema(UpdateCartItemRequest)
def update_item(item_id):
    body = request.validated_data
    kwargs = {"notes": body.notes} if "notes" in body.model_fields_set else {}
    with transactional("Failed to update cart item"):
        cart = CartService().update_item(request.user.id, item_id, body.quantity, **kwargs)
        payload = cart_to_dict(cart)
    return ok({"cart": payload}, message="Cart item updated")


@cart_bp.route("/items/<int:item_id>", methods=["DELETE"])
def remove_item(item_id):
    with transactional("Failed to remove cart item"):
        cart = CartService().remove_item(request.user.id, item_id)
        payload = cart_to_dict(cart)
    return ok({"cart": payload}, message="Item removed from cart")


@cart_bp.route("", methods=["DELETE"])
def clear_cart():
    with transactional("Failed to clear cart"):
        cart = CartService().clear_cart(request.user.id)
        payload = cart_to_dict(cart)
    return ok({"cart": payload}, message="Cart cleared")
