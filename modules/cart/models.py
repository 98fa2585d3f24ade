"""
Cart Module - Models
=====================
One cart per customer. Line items carry the price snapshot taken at add-time;
the applied coupon is stored as a discount snapshot on the cart row.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, ForeignKey, DateTime, JSON,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True)

    # Applied coupon snapshot
    coupon_code = Column(String(20), nullable=True)
    coupon_discount_type = Column(String, nullable=True)
    coupon_discount_value = Column(Numeric(10, 2), nullable=True)
    coupon_max_discount = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    customer = relationship("User", foreign_keys=[customer_id])
    restaurant = relationship("Restaurant", foreign_keys=[restaurant_id])
    items = relationship(
        "CartItem", back_populates="cart",
        cascade="all, delete-orphan", order_by="CartItem.position",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(String(32), primary_key=True)  # line reference exposed to clients
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    customization = Column(JSON, nullable=True)
    position = Column(Integer, default=0, nullable=False)

    cart = relationship("Cart", back_populates="items")
    menu_item = relationship("MenuItem")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_qty"),
    )
