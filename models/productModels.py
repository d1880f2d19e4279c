from core.extensions import db
from core.imports import datetime, uuid

CATEGORIES = ("t-shirt", "hoodie")


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    category = db.Column(db.String(20), nullable=False, index=True)  # t-shirt, hoodie
    image_url = db.Column(db.String(500), nullable=False)
    sizes = db.Column(db.JSON, nullable=False, default=list)
    colors = db.Column(db.JSON, nullable=False, default=list)
    stock = db.Column(db.Integer, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    flash_deals = db.relationship("FlashDeal", backref="product", cascade="all, delete-orphan")
    cart_items = db.relationship("CartItem", backref="product", cascade="all, delete-orphan")
    order_items = db.relationship("OrderItem", backref="product", passive_deletes="all")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "category": self.category,
            "image_url": self.image_url,
            "sizes": list(self.sizes or []),
            "colors": list(self.colors or []),
            "stock": self.stock,
            "featured": bool(self.featured),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class FlashDeal(db.Model):
    __tablename__ = "flash_deals"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    discount_percentage = db.Column(db.Integer, nullable=False)  # 1-99
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
