from models import db, BIGINT
from sqlalchemy.sql import func


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(BIGINT, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="customer")  # customer, admin
    created_at = db.Column(db.DateTime, default=func.now())

    cart = db.relationship("Cart", back_populates="user", uselist=False)

    @property
    def is_admin(self):
        return self.role == "admin"

    def contact_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }

    def __repr__(self):
        return f"<User id={self.id} role={self.role}>"
