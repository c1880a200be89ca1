from models import db, BIGINT
from sqlalchemy.sql import func


class Category(db.Model):
    __tablename__ = "category"

    id = db.Column(BIGINT, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    image_url = db.Column(db.String(255), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True)               # For soft delete
    created_at = db.Column(db.DateTime, default=func.now())
    updated_at = db.Column(db.DateTime, default=func.now(), onupdate=func.now())

    products = db.relationship("Product", back_populates="category", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(BIGINT, primary_key=True)
    category_id = db.Column(BIGINT, db.ForeignKey("category.id"), nullable=False)

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(255), nullable=True)

    # Availability; unavailable products cannot be ordered
    is_available = db.Column(db.Boolean, default=True)
    stock_quantity = db.Column(db.Integer, nullable=True)         # Informational only

    created_at = db.Column(db.DateTime, default=func.now())
    updated_at = db.Column(db.DateTime, default=func.now(), onupdate=func.now())

    category = db.relationship("Category", back_populates="products")

    def summary_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "image_url": self.image_url,
            "is_available": self.is_available,
        }

    def to_dict(self):
        data = self.summary_dict()
        data.update({
            "description": self.description,
            "stock_quantity": self.stock_quantity,
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
        })
        return data
