from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from printshop.database import Base

ORDER_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled")
CONTACT_STATUSES = ("new", "read", "replied")

DELIVERY_TYPES = ("pickup", "delivery")
URGENCY_LEVELS = ("normal", "urgent", "rush")
CONTACT_METHODS = ("phone", "email", "whatsapp")
CONTACT_TIMES = ("morning", "afternoon", "evening", "anytime")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)

    # customer snapshot taken at order time
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(20), nullable=True)
    customer_company = Column(String(255), nullable=True)
    customer_address = Column(Text, nullable=True)

    delivery_type = Column(String(20), nullable=False, default="pickup")
    delivery_address = Column(Text, nullable=True)
    delivery_date = Column(Date, nullable=True)
    delivery_time = Column(String(50), nullable=True)
    special_instructions = Column(Text, nullable=True)

    urgency = Column(String(20), nullable=False, default="normal")
    contact_method = Column(String(20), nullable=False, default="phone")
    preferred_contact_time = Column(String(20), nullable=False, default="anytime")

    status = Column(String(20), nullable=False, default="pending")
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)

    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_name = Column(String(255), nullable=False)
    product_description = Column(Text, nullable=True)
    product_icon = Column(String(10), nullable=True)
    quantity = Column(Integer, nullable=False)
    options = Column(Text, nullable=True)  # JSON text

    created_at = Column(DateTime, server_default=func.now())

    order = relationship("Order", back_populates="items")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    icon = Column(String(10), nullable=True)
    image_url = Column(String(500), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    company = Column(String(255), nullable=True)
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    service_type = Column(String(100), nullable=True)

    status = Column(String(20), nullable=False, default="new")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
