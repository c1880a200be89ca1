import math
from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload
from models import db
from models.catalog import Category, Product
from app.services.errors import NotFound, Conflict


class CatalogService:
    """Products and categories. Writes are flushed, never committed here."""

    def __init__(self, session=None):
        self.session = session or db.session

    # --- Products ---

    def list_products(self, category_id=None, search=None, available=None, page: int = 1, limit: int = 20) -> dict:
        query = self.session.query(Product).options(selectinload(Product.category))
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if available is not None:
            query = query.filter(Product.is_available.is_(available))

        total = query.count()
        products = query.order_by(Product.name.asc(), Product.id.asc()).offset((page - 1) * limit).limit(limit).all()
        return {
            "products": products,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def get_product(self, product_id) -> Product:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFound("Product not found", product_id=product_id)
        return product

    def create_product(self, data: dict) -> Product:
        self.get_category(data["category_id"])
        product = Product(
            name=data["name"],
            description=data.get("description"),
            price=data["price"],
            category_id=data["category_id"],
            image_url=data.get("image_url"),
            is_available=data.get("is_available", True),
            stock_quantity=data.get("stock_quantity"),
        )
        self.session.add(product)
        self.session.flush()
        return product

    def update_product(self, product_id, data: dict) -> Product:
        product = self.get_product(product_id)
        if data.get("category_id"):
            self.get_category(data["category_id"])
        for field, value in data.items():
            setattr(product, field, value)
        self.session.flush()
        return product

    def delete_product(self, product_id) -> Product:
        # Soft delete: order history keeps its own snapshot of the product
        return self.set_availability(product_id, False)

    def set_availability(self, product_id, is_available: bool) -> Product:
        product = self.get_product(product_id)
        product.is_available = is_available
        self.session.flush()
        return product

    # --- Categories ---

    def list_categories(self, include_inactive: bool = False):
        """Return (category, product_count) pairs ordered by sort_order."""
        counts = (
            self.session.query(Product.category_id, func.count(Product.id).label("n"))
            .group_by(Product.category_id)
            .subquery()
        )
        query = self.session.query(Category, func.coalesce(counts.c.n, 0)).outerjoin(
            counts, counts.c.category_id == Category.id
        )
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.sort_order.asc(), Category.id.asc()).all()

    def get_category(self, category_id) -> Category:
        category = self.session.get(Category, category_id)
        if not category:
            raise NotFound("Category not found", category_id=category_id)
        return category

    def available_products(self, category: Category):
        return (
            self.session.query(Product)
            .filter_by(category_id=category.id, is_available=True)
            .order_by(Product.name.asc())
            .all()
        )

    def create_category(self, data: dict) -> Category:
        if self.session.query(Category).filter_by(name=data["name"]).first():
            raise Conflict("Category name already in use", name=data["name"])
        max_order = self.session.query(func.max(Category.sort_order)).scalar() or 0
        category = Category(
            name=data["name"],
            description=data.get("description"),
            image_url=data.get("image_url"),
            sort_order=max_order + 1,
        )
        self.session.add(category)
        self.session.flush()
        return category

    def update_category(self, category_id, data: dict) -> Category:
        category = self.get_category(category_id)
        name = data.get("name")
        if name and name != category.name:
            if self.session.query(Category).filter_by(name=name).first():
                raise Conflict("Category name already in use", name=name)
        for field, value in data.items():
            setattr(category, field, value)
        self.session.flush()
        return category

    def delete_category(self, category_id) -> Category:
        category = self.get_category(category_id)
        category.is_active = False
        self.session.flush()
        return category

    def reorder_categories(self, ordered_ids):
        categories = {c.id: c for c in self.session.query(Category).filter(Category.id.in_(ordered_ids)).all()}
        missing = [cid for cid in ordered_ids if cid not in categories]
        if missing:
            raise NotFound("Category not found", category_ids=missing)
        for position, cid in enumerate(ordered_ids, start=1):
            categories[cid].sort_order = position
        self.session.flush()
        return self.list_categories(include_inactive=True)
