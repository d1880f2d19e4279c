from core.extensions import db
from core.imports import datetime, uuid

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(50), default="pending")  # ORDER_STATUSES plus payment_pending
    payment_method = db.Column(db.String(50), default="cod")
    payment_status = db.Column(db.String(50), default="pending")
    payment_id = db.Column(db.String(255), nullable=True)
    transaction_id = db.Column(db.String(255), nullable=True)
    shipping_address = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    order_items = db.relationship("OrderItem", backref="order", cascade="all, delete-orphan",
                                  order_by="OrderItem.created_at")
    user = db.relationship("User", backref="orders")

    def to_dict(self, with_items=True):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.email,
            "total_amount": float(self.total_amount),
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "payment_id": self.payment_id,
            "transaction_id": self.transaction_id,
            "shipping_address": self.shipping_address,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if with_items:
            data["items"] = [item.to_dict() for item in self.order_items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    size = db.Column(db.String(20), nullable=True)
    color = db.Column(db.String(50), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # unit price at time of purchase
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_image": self.product.image_url if self.product else None,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
            "price": float(self.price),
        }
