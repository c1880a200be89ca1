import logging
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from models import db
from models.cart import Cart, CartItem
from models.catalog import Product
from app.services.errors import NotFound, PreconditionFailed, ConcurrencyConflict
from app.services.money import to_money

logger = logging.getLogger(__name__)

_UNSET = object()


class CartService:
    """Per-user cart operations. Mutating methods do not commit."""

    def __init__(self, session=None):
        self.session = session or db.session

    def _find_cart(self, user_id):
        return (
            self.session.query(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.product))
            .filter_by(user_id=user_id)
            .first()
        )

    def _lock_cart(self, user_id):
        # Row lock on the cart, items re-read under it
        return (
            self.session.query(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.product))
            .filter_by(user_id=user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def _require_cart(self, user_id):
        cart = self._find_cart(user_id)
        if not cart:
            raise NotFound("Cart not found")
        return cart

    def _require_item(self, cart, item_id):
        item = self.session.query(CartItem).filter_by(id=item_id, cart_id=cart.id).first()
        if not item:
            raise NotFound("Item not found in cart", item_id=item_id)
        return item

    def _find_line(self, cart_id, product_id):
        return self.session.query(CartItem).filter_by(cart_id=cart_id, product_id=product_id).first()

    def get_or_create(self, user_id) -> Cart:
        cart = self._find_cart(user_id)
        if cart:
            return cart
        try:
            with self.session.begin_nested():
                self.session.add(Cart(user_id=user_id))
        except IntegrityError:
            # Another request created this user's cart first
            logger.info("cart for user %s created concurrently, re-reading", user_id)
        cart = self._find_cart(user_id)
        if not cart:
            raise ConcurrencyConflict("Could not create cart", user_id=user_id)
        return cart

    def get_cart(self, user_id) -> dict:
        return cart_to_dict(self.get_or_create(user_id))

    def add_item(self, user_id, product_id, quantity: int = 1, notes=None) -> Cart:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFound("Product not found", product_id=product_id)
        if not product.is_available:
            raise PreconditionFailed("Product not available", product=product.name)

        cart = self.get_or_create(user_id)
        existing = self._find_line(cart.id, product_id)
        if not existing:
            try:
                with self.session.begin_nested():
                    self.session.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity, notes=notes))
            except IntegrityError:
                logger.info("cart line for product %s added concurrently, merging", product_id)
                existing = self._find_line(cart.id, product_id)
                if not existing:
                    raise ConcurrencyConflict("Could not add item to cart", product_id=product_id)
        if existing:
            existing.quantity = existing.quantity + quantity
            existing.notes = notes or existing.notes
        self.session.flush()
        self.session.expire(cart, ["items"])
        return cart

    def update_item(self, user_id, item_id, quantity: int, notes=_UNSET) -> Cart:
        """Set a line's quantity; zero or below removes the line."""
        cart = self._require_cart(user_id)
        item = self._require_item(cart, item_id)
        if quantity <= 0:
            self.session.delete(item)
        else:
            item.quantity = quantity
            if notes is not _UNSET:
                item.notes = notes
        self.session.flush()
        self.session.expire(cart, ["items"])
        return cart

    def remove_item(self, user_id, item_id) -> Cart:
        cart = self._require_cart(user_id)
        item = self._require_item(cart, item_id)
        self.session.delete(item)
        self.session.flush()
        self.session.expire(cart, ["items"])
        return cart

    def clear_cart(self, user_id) -> Cart:
        cart = self._require_cart(user_id)
        self.purge(cart)
        return cart

    def purge(self, cart: Cart, expected=None) -> int:
        """Delete every line of the cart.

        With ``expected`` set, a different number of deleted lines means the
        cart changed since it was read and ConcurrencyConflict is raised.
        """
        deleted = self.session.query(CartItem).filter_by(cart_id=cart.id).delete(synchronize_session=False)
        self.session.expire(cart, ["items"])
        if expected is not None and deleted != expected:
            raise ConcurrencyConflict(
                "Cart changed while the order was being placed",
                cart_id=cart.id,
                expected=expected,
                deleted=deleted,
            )
        return deleted

    def snapshot(self, user_id) -> Cart:
        """Return the cart to be converted into an order.

        Raises PreconditionFailed when the cart is missing or empty, or when
        any line references a product that is no longer available. The cart row
        stays locked until the caller's transaction ends.
        """
        cart = self._lock_cart(user_id)
        if not cart or not cart.items:
            raise PreconditionFailed("Cart is empty")
        for ci in cart.items:
            if not ci.product.is_available:
                raise PreconditionFailed(
                    f'Product "{ci.product.name}" is no longer available',
                    product=ci.product.name,
                    product_id=ci.product_id,
                )
        return cart


def line_subtotal(item: CartItem) -> Decimal:
    return to_money(item.product.price) * item.quantity


def cart_to_dict(cart: Cart) -> dict:
    items = []
    total = Decimal("0.00")
    for ci in cart.items:
        subtotal = line_subtotal(ci)
        total += subtotal
        items.append({
            "id": ci.id,
            "product_id": ci.product_id,
            "quantity": ci.quantity,
            "notes": ci.notes,
            "subtotal": float(subtotal),
            "product": ci.product.summary_dict(),
        })
    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "items": items,
        "total": float(total),
        "item_count": sum(ci.quantity for ci in cart.items),
    }
