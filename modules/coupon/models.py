"""
Coupon Module - Models
========================
Promo codes redeemable on the cart.

Features:
  - Percentage or flat amount
  - Optional cap on percentage discounts
  - Minimum order subtotal
  - Expiry date and active flag
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Text, Numeric, DateTime,
)
from sqlalchemy.sql import func
from config.database import Base
from modules.cart.engine import DiscountType


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    discount_type = Column(String, default=DiscountType.PERCENTAGE, nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)     # percent (e.g. 10) or dollars
    max_discount_amount = Column(Numeric(10, 2), nullable=True)  # cap for percentage coupons
    min_order_amount = Column(Numeric(10, 2), default=0, nullable=False)

    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def discount_display(self) -> str:
        if self.discount_type == DiscountType.PERCENTAGE:
            return f"{self.discount_value.normalize():f}% off"
        return f"${self.discount_value} off"

    def __repr__(self):
        return f"<Coupon {self.code}>"
