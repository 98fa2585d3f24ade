"""
Shared fixtures: an in-memory SQLite database wired into the app, demo
catalog data, user tokens, and a pure pricing engine with fixed lookups.
"""

import os

# Must be set before config.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TAX_RATE"] = "0.08"
os.environ["DELIVERY_FEE"] = "3.00"
os.environ["FREE_DELIVERY_THRESHOLD"] = "50.00"
os.environ["MINIMUM_ORDER_AMOUNT"] = "10.00"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from config.database import Base, get_db
from common.security import create_token
from modules.user.models import User, UserRole
from modules.catalog.models import Restaurant, MenuItem, MenuCategory
from modules.coupon.models import Coupon
from modules.cart.engine import (
    CartPricingEngine, CouponInfo, DiscountType, MenuItemInfo, ShoppingCart,
)
from modules.order.lifecycle import OrderLifecycleManager


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# ==========================================
# Pure core fixtures
# ==========================================

MENU = {
    1: MenuItemInfo(id=1, name="Spring Rolls", price=Decimal("5.00"), is_available=True, restaurant_id=1),
    2: MenuItemInfo(id=2, name="Pad Thai", price=Decimal("10.00"), is_available=True, restaurant_id=1),
    3: MenuItemInfo(id=3, name="Cheeseburger", price=Decimal("8.00"), is_available=True, restaurant_id=2),
    4: MenuItemInfo(id=4, name="Tom Yum", price=Decimal("6.00"), is_available=False, restaurant_id=1),
    5: MenuItemInfo(id=5, name="Feast Platter", price=Decimal("60.00"), is_available=True, restaurant_id=1),
}

COUPONS = {
    "SAVE10": CouponInfo(code="SAVE10", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10")),
    "FLAT5": CouponInfo(code="FLAT5", discount_type=DiscountType.FIXED, discount_value=Decimal("5.00")),
    "FLAT50": CouponInfo(code="FLAT50", discount_type=DiscountType.FIXED, discount_value=Decimal("50.00")),
    "HALF": CouponInfo(
        code="HALF", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("50"),
        max_discount=Decimal("4.00"),
    ),
    "MIN30": CouponInfo(
        code="MIN30", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"),
        min_order_amount=Decimal("30.00"),
    ),
    "OLD": CouponInfo(
        code="OLD", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"),
        expires_at=NOW - timedelta(days=1),
    ),
    "OFF": CouponInfo(
        code="OFF", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"), is_active=False,
    ),
}


@pytest.fixture
def menu():
    return dict(MENU)


@pytest.fixture
def pricing(menu):
    return CartPricingEngine(
        menu_lookup=menu.get,
        coupon_lookup=COUPONS.get,
        clock=lambda: NOW,
    )


@pytest.fixture
def manager(pricing):
    return OrderLifecycleManager(pricing, clock=lambda: NOW)


@pytest.fixture
def cart():
    return ShoppingCart(owner_id=7)


# ==========================================
# Database / API fixtures
# ==========================================

@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_token({'sub': str(user_id)})}"}


@pytest.fixture
def users(db):
    customer = User(email="jane@example.com", name="Jane", phone="555-0101", role=UserRole.CUSTOMER.value)
    other = User(email="sam@example.com", name="Sam", phone="555-0102", role=UserRole.CUSTOMER.value)
    admin = User(email="admin@example.com", name="Admin", phone="555-0100", role=UserRole.ADMIN.value)
    db.add_all([customer, other, admin])
    db.commit()
    return SimpleNamespace(
        customer=_auth(customer.id),
        other=_auth(other.id),
        admin=_auth(admin.id),
        customer_id=customer.id,
        other_id=other.id,
        admin_id=admin.id,
    )


@pytest.fixture
def catalog(db):
    thai = Restaurant(
        name="Bangkok Kitchen", description="Thai street food", cuisine="Thai",
        street="1 Main St", city="Springfield", state="IL", zip_code="62701",
        phone="555-0200", email="bk@example.com",
    )
    diner = Restaurant(
        name="Route 66 Diner", description="Burgers and shakes", cuisine="American",
        street="66 Route Rd", city="Chicago", state="IL", zip_code="60601",
        phone="555-0300", email="diner@example.com",
    )
    db.add_all([thai, diner])
    db.flush()

    rolls = MenuItem(restaurant_id=thai.id, name="Spring Rolls", description="Crispy",
                     price=Decimal("5.00"), category=MenuCategory.APPETIZER.value)
    noodles = MenuItem(restaurant_id=thai.id, name="Pad Thai", description="Rice noodles",
                       price=Decimal("10.00"), category=MenuCategory.MAIN_COURSE.value)
    soup = MenuItem(restaurant_id=thai.id, name="Tom Yum", description="Hot and sour",
                    price=Decimal("6.00"), category=MenuCategory.SOUP.value, is_available=False)
    burger = MenuItem(restaurant_id=diner.id, name="Cheeseburger", description="Double patty",
                      price=Decimal("8.00"), category=MenuCategory.BURGER.value)
    db.add_all([rolls, noodles, soup, burger])

    db.add_all([
        Coupon(code="SAVE10", discount_type=DiscountType.PERCENTAGE.value, discount_value=Decimal("10")),
        Coupon(code="FLAT50", discount_type=DiscountType.FIXED.value, discount_value=Decimal("50.00"),
               min_order_amount=Decimal("100.00")),
        Coupon(code="EXPIRED", discount_type=DiscountType.FIXED.value, discount_value=Decimal("5.00"),
               expires_at=datetime.now(timezone.utc) - timedelta(days=1)),
    ])
    db.commit()

    return SimpleNamespace(
        thai_id=thai.id,
        diner_id=diner.id,
        rolls_id=rolls.id,
        noodles_id=noodles.id,
        soup_id=soup.id,
        burger_id=burger.id,
    )


@pytest.fixture
def checkout_body():
    return {
        "delivery_address": {
            "street": "742 Evergreen Terrace",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62704",
            "phone": "555-0101",
        },
        "payment_method": "credit-card",
        "contact_info": {"phone": "555-0101", "email": "jane@example.com"},
        "special_instructions": "Leave at the door",
    }


@pytest.fixture
def filled_cart(client, users, catalog):
    """Customer cart: 2x Spring Rolls ($5) + 1x Pad Thai ($10)."""
    client.post("/api/cart/items", json={"menu_item_id": catalog.rolls_id, "quantity": 2}, headers=users.customer)
    client.post("/api/cart/items", json={"menu_item_id": catalog.noodles_id, "quantity": 1}, headers=users.customer)
    return catalog
