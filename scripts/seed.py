"""
QuickBite - Demo Database Seeder
==================================
Seeds users, restaurants, menus, coupons and pricing settings for local use.

Usage:
    python scripts/seed.py          # Seed (idempotent)
    python scripts/seed.py --reset  # Drop all data and reseed

Prints bearer tokens for the demo admin and customer at the end.
"""

import sys
import os
from datetime import timedelta
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from config.database import SessionLocal, Base, engine
from common.helpers import now_utc
from common.security import create_token
from modules.user.models import User, UserRole
from modules.admin.models import SystemSetting
from modules.admin.service import PRICING_SETTINGS
from modules.catalog.models import Restaurant, MenuItem, MenuCategory, SpiceLevel, PriceRange
from modules.coupon.models import Coupon
from modules.cart.engine import DiscountType
from modules.cart.models import Cart, CartItem  # noqa: F401
from modules.order.models import Order, OrderItem, OrderStatusLog  # noqa: F401


USERS = [
    {"email": "admin@quickbite.test", "name": "Site Admin", "phone": "555-0100", "role": UserRole.ADMIN},
    {"email": "jane@quickbite.test", "name": "Jane Customer", "phone": "555-0101", "role": UserRole.CUSTOMER},
    {"email": "sam@quickbite.test", "name": "Sam Customer", "phone": "555-0102", "role": UserRole.CUSTOMER},
]

RESTAURANTS = [
    {
        "name": "Luigi's Trattoria",
        "description": "Wood-fired pizza and fresh pasta.",
        "cuisine": "Italian",
        "street": "12 Mulberry St", "city": "New York", "state": "NY", "zip_code": "10013",
        "phone": "212-555-0143", "email": "hello@luigis.test",
        "price_range": PriceRange.MODERATE, "delivery_time": "30-40 mins",
        "menu": [
            ("Margherita Pizza", "San Marzano tomato, mozzarella, basil", "12.50", MenuCategory.PIZZA, {"is_vegetarian": True}),
            ("Garlic Bread", "Toasted ciabatta with garlic butter", "5.75", MenuCategory.APPETIZER, {"is_vegetarian": True}),
            ("Spaghetti Carbonara", "Guanciale, egg yolk, pecorino", "15.00", MenuCategory.PASTA, {}),
            ("Tiramisu", "Espresso-soaked ladyfingers, mascarpone", "7.25", MenuCategory.DESSERT, {"is_vegetarian": True}),
            ("San Pellegrino", "Sparkling mineral water", "2.50", MenuCategory.BEVERAGE, {"is_vegan": True, "is_gluten_free": True}),
        ],
    },
    {
        "name": "Spice Route",
        "description": "North Indian curries and tandoor.",
        "cuisine": "Indian",
        "street": "88 Lexington Ave", "city": "New York", "state": "NY", "zip_code": "10016",
        "phone": "212-555-0177", "email": "orders@spiceroute.test",
        "price_range": PriceRange.BUDGET, "delivery_time": "35-50 mins",
        "menu": [
            ("Chicken Tikka Masala", "Charred chicken in tomato cream sauce", "14.95", MenuCategory.MAIN_COURSE, {"spice_level": SpiceLevel.MEDIUM}),
            ("Chana Masala", "Chickpeas, onion, tomato, garam masala", "11.50", MenuCategory.VEGAN, {"is_vegan": True, "is_vegetarian": True, "spice_level": SpiceLevel.MILD}),
            ("Vegetable Samosa", "Two pastries with spiced potato and peas", "4.50", MenuCategory.APPETIZER, {"is_vegetarian": True}),
            ("Mango Lassi", "Yogurt and mango", "3.95", MenuCategory.BEVERAGE, {"is_vegetarian": True, "is_gluten_free": True}),
        ],
    },
    {
        "name": "Harbor Burger Co.",
        "description": "Smash burgers and shakes.",
        "cuisine": "American",
        "street": "400 Atlantic Ave", "city": "Boston", "state": "MA", "zip_code": "02110",
        "phone": "617-555-0190", "email": "hi@harborburger.test",
        "price_range": PriceRange.BUDGET, "delivery_time": "20-30 mins",
        "menu": [
            ("Classic Smash Burger", "Two patties, American cheese, pickles", "10.99", MenuCategory.BURGER, {}),
            ("Crispy Fries", "Skin-on, sea salt", "3.99", MenuCategory.OTHER, {"is_vegan": True}),
            ("Chocolate Shake", "Hand-spun", "5.49", MenuCategory.BEVERAGE, {"is_vegetarian": True}),
        ],
    },
]

COUPONS = [
    {"code": "SAVE10", "description": "10% off your order", "discount_type": DiscountType.PERCENTAGE, "discount_value": Decimal("10")},
    {"code": "WELCOME20", "description": "20% off, up to $15", "discount_type": DiscountType.PERCENTAGE, "discount_value": Decimal("20"), "max_discount_amount": Decimal("15.00")},
    {"code": "NEWUSER", "description": "15% off for new customers", "discount_type": DiscountType.PERCENTAGE, "discount_value": Decimal("15")},
    {"code": "FLAT50", "description": "$50 off orders over $100", "discount_type": DiscountType.FIXED, "discount_value": Decimal("50.00"), "min_order_amount": Decimal("100.00")},
]


def ensure_tables():
    """Create all tables if they don't exist (safe to call multiple times)."""
    print("[0/4] Ensuring all tables exist...")
    Base.metadata.create_all(bind=engine)
    print("  + All tables OK\n")


def seed():
    db = SessionLocal()
    try:
        print("=" * 50)
        print("  QuickBite — Demo Seeder")
        print("=" * 50)

        ensure_tables()

        # ==========================================
        # 1. Users
        # ==========================================
        print("[1/4] Users")
        users = {}
        for data in USERS:
            user = db.query(User).filter(User.email == data["email"]).first()
            if not user:
                user = User(email=data["email"], name=data["name"], phone=data["phone"], role=data["role"].value)
                db.add(user)
                print(f"  + {data['role'].value}: {data['email']}")
            else:
                print(f"  = exists: {data['email']}")
            users[data["email"]] = user
        db.flush()

        # ==========================================
        # 2. Restaurants & Menus
        # ==========================================
        print("\n[2/4] Restaurants & Menus")
        for data in RESTAURANTS:
            data = dict(data)
            menu = data.pop("menu")
            restaurant = db.query(Restaurant).filter(Restaurant.name == data["name"]).first()
            if restaurant:
                print(f"  = exists: {data['name']}")
                continue

            data["price_range"] = data["price_range"].value
            restaurant = Restaurant(**data)
            db.add(restaurant)
            db.flush()
            for name, description, price, category, extra in menu:
                extra = dict(extra)
                if "spice_level" in extra:
                    extra["spice_level"] = extra["spice_level"].value
                db.add(MenuItem(
                    restaurant_id=restaurant.id,
                    name=name,
                    description=description,
                    price=Decimal(price),
                    category=category.value,
                    **extra,
                ))
            print(f"  + {restaurant.name} ({len(menu)} items)")
        db.flush()

        # ==========================================
        # 3. Coupons
        # ==========================================
        print("\n[3/4] Coupons")
        for data in COUPONS:
            if db.query(Coupon).filter(Coupon.code == data["code"]).first():
                print(f"  = exists: {data['code']}")
                continue
            data = dict(data)
            data["discount_type"] = data["discount_type"].value
            db.add(Coupon(expires_at=now_utc() + timedelta(days=365), **data))
            print(f"  + {data['code']}")

        # ==========================================
        # 4. Pricing Settings
        # ==========================================
        print("\n[4/4] Pricing Settings")
        for key, (default, description) in PRICING_SETTINGS.items():
            if not db.query(SystemSetting).filter(SystemSetting.key == key).first():
                db.add(SystemSetting(key=key, value=str(default), description=description))
                print(f"  + {key} = {default}")

        db.commit()

        print("\n" + "=" * 50)
        print("  Seed complete")
        print("=" * 50)

        print("\n--- Bearer Tokens ---")
        for email, user in users.items():
            token = create_token({"sub": str(user.id)}, expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
            print(f"  {email} ({user.role}):\n    {token}")

        print("\n--- Coupons ---")
        print("  SAVE10    : 10% off")
        print("  WELCOME20 : 20% off (max $15)")
        print("  NEWUSER   : 15% off")
        print("  FLAT50    : $50 off (min $100 order)")

    except Exception as e:
        db.rollback()
        print(f"\nSeed failed: {e}")
        raise
    finally:
        db.close()


def reset_and_seed():
    """Drop all tables and recreate + seed."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("All tables recreated")
    seed()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DELETE ALL DATA. Type 'yes' to confirm: ")
        if confirm.strip().lower() == "yes":
            reset_and_seed()
        else:
            print("Aborted.")
    else:
        seed()
