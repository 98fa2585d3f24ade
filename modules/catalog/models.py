"""
Catalog Module - Models
========================
Restaurant and MenuItem. Menu items are priced per unit; the cart snapshots
the price at add-time so later menu edits never change an open order.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text,
    ForeignKey, DateTime, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class MenuCategory(str, enum.Enum):
    APPETIZER = "Appetizer"
    MAIN_COURSE = "Main Course"
    DESSERT = "Dessert"
    BEVERAGE = "Beverage"
    SALAD = "Salad"
    SOUP = "Soup"
    PIZZA = "Pizza"
    BURGER = "Burger"
    PASTA = "Pasta"
    SANDWICH = "Sandwich"
    SEAFOOD = "Seafood"
    VEGETARIAN = "Vegetarian"
    VEGAN = "Vegan"
    OTHER = "Other"


class SpiceLevel(str, enum.Enum):
    NONE = "None"
    MILD = "Mild"
    MEDIUM = "Medium"
    HOT = "Hot"
    EXTRA_HOT = "Extra Hot"


class PriceRange(str, enum.Enum):
    BUDGET = "$"
    MODERATE = "$$"
    UPSCALE = "$$$"
    FINE = "$$$$"


# ==========================================
# 🍽️ Restaurant
# ==========================================

class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    cuisine = Column(String, nullable=False, index=True)

    # Address
    street = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    state = Column(String, nullable=False)
    zip_code = Column(String, nullable=False)
    country = Column(String, default="USA", nullable=False)

    phone = Column(String, nullable=False)
    email = Column(String, nullable=False)
    price_range = Column(String, default=PriceRange.MODERATE, nullable=False)
    delivery_time = Column(String, default="30-45 mins", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    menu_items = relationship("MenuItem", back_populates="restaurant")

    def __repr__(self):
        return f"<Restaurant {self.name}>"


# ==========================================
# 🍔 Menu Item
# ==========================================

class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, default=MenuCategory.OTHER, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    preparation_time = Column(Integer, default=15, nullable=False)  # minutes
    spice_level = Column(String, default=SpiceLevel.NONE, nullable=False)

    # Dietary flags
    is_vegetarian = Column(Boolean, default=False, nullable=False)
    is_vegan = Column(Boolean, default=False, nullable=False)
    is_gluten_free = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="menu_items")

    __table_args__ = (
        Index("ix_menu_item_restaurant", "restaurant_id"),
        Index("ix_menu_item_category", "category"),
    )

    @property
    def is_orderable(self) -> bool:
        return bool(self.is_available and self.restaurant and self.restaurant.is_active)

    def __repr__(self):
        return f"<MenuItem {self.name} ${self.price}>"
