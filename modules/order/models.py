"""
Order Module - Models
======================
Order with full price snapshot per item for audit trail, plus a status log.
Items and money columns are written once at checkout and never updated.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Text, JSON,
    ForeignKey, DateTime, Index,
)
from sqlalchemy.orm import relationship
from config.database import Base
from modules.order.lifecycle import OrderStatus


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String, default=OrderStatus.PENDING, nullable=False, index=True)

    # Frozen totals
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), default=0, nullable=False)
    grand_total = Column(Numeric(10, 2), nullable=False)
    coupon_code = Column(String, nullable=True)

    # Delivery
    delivery_street = Column(String, nullable=False)
    delivery_city = Column(String, nullable=False)
    delivery_state = Column(String, nullable=False)
    delivery_zip_code = Column(String, nullable=False)
    delivery_country = Column(String, default="USA", nullable=False)
    delivery_phone = Column(String, nullable=False)
    special_instructions = Column(Text, nullable=True)
    estimated_delivery_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    # Contact & payment
    contact_phone = Column(String, nullable=False)
    contact_email = Column(String, nullable=True)
    payment_method = Column(String, nullable=False)

    # Cancellation
    cancellation_reason = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Rating
    rating_stars = Column(Integer, nullable=True)
    rating_review = Column(Text, nullable=True)
    rated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    customer = relationship("User", foreign_keys=[customer_id])
    restaurant = relationship("Restaurant", foreign_keys=[restaurant_id])
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    status_logs = relationship("OrderStatusLog", back_populates="order", cascade="all, delete-orphan", order_by="OrderStatusLog.id")

    __table_args__ = (
        Index("ix_order_created", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="RESTRICT"), nullable=False)

    # Snapshot at time of purchase
    name = Column(String, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    customization = Column(JSON, nullable=True)
    line_total = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")


class OrderStatusLog(Base):
    __tablename__ = "order_status_logs"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False)
    actor_role = Column(String, nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    order = relationship("Order", back_populates="status_logs")
