"""
Cart Module - Service Layer
==============================
Loads the customer's cart row, runs the pricing engine on it, and writes
the result back. The cart row is locked (SELECT ... FOR UPDATE) for every
mutation so concurrent requests from the same customer serialize.

Routes commit; this layer only flushes.
"""

import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.orm import Session

from common.helpers import to_money
from modules.cart.models import Cart, CartItem
from modules.cart.engine import (
    CartPricingEngine, CartLineItem, CouponSnapshot, DiscountType,
    PricedTotals, ShoppingCart,
)
from modules.catalog.service import catalog_service
from modules.coupon.service import coupon_service
from modules.admin.service import settings_service

logger = logging.getLogger("quickbite.cart")


class CartService:

    def build_engine(self, db: Session) -> CartPricingEngine:
        """Engine wired to this session's menu/coupon stores and current pricing settings."""
        return CartPricingEngine(
            menu_lookup=lambda menu_item_id: catalog_service.menu_item_info(db, menu_item_id),
            coupon_lookup=lambda code: coupon_service.lookup(db, code),
            policy=settings_service.pricing_policy(db),
        )

    def get_or_create_cart(self, db: Session, customer_id: int, lock: bool = False) -> Cart:
        """Get existing cart or create new one for customer."""
        q = db.query(Cart).filter(Cart.customer_id == customer_id)
        if lock:
            q = q.with_for_update()
        row = q.first()
        if not row:
            row = Cart(customer_id=customer_id)
            db.add(row)
            db.flush()
        return row

    def load(self, db: Session, customer_id: int, lock: bool = True) -> Tuple[Cart, ShoppingCart]:
        row = self.get_or_create_cart(db, customer_id, lock=lock)
        return row, self.to_domain(row)

    # ==========================================
    # Row <-> domain
    # ==========================================

    def to_domain(self, row: Cart) -> ShoppingCart:
        coupon = None
        if row.coupon_code:
            coupon = CouponSnapshot(
                code=row.coupon_code,
                discount_type=DiscountType(row.coupon_discount_type),
                discount_value=Decimal(row.coupon_discount_value),
                max_discount=to_money(row.coupon_max_discount) if row.coupon_max_discount is not None else None,
            )
        return ShoppingCart(
            owner_id=row.customer_id,
            restaurant_id=row.restaurant_id,
            line_items=[
                CartLineItem(
                    id=item.id,
                    menu_item_id=item.menu_item_id,
                    name=item.name,
                    unit_price=to_money(item.unit_price),
                    quantity=item.quantity,
                    customization=dict(item.customization or {}),
                )
                for item in row.items
            ],
            applied_coupon=coupon,
        )

    def save(self, db: Session, row: Cart, cart: ShoppingCart):
        """Write the domain cart back onto its row, syncing line items by id."""
        existing = {item.id: item for item in row.items}
        keep_ids = {li.id for li in cart.line_items}

        for item in list(row.items):
            if item.id not in keep_ids:
                row.items.remove(item)

        for position, li in enumerate(cart.line_items):
            item = existing.get(li.id)
            if item is None:
                item = CartItem(id=li.id, menu_item_id=li.menu_item_id)
                row.items.append(item)
            item.name = li.name
            item.unit_price = li.unit_price
            item.quantity = li.quantity
            item.customization = dict(li.customization) or None
            item.position = position

        row.restaurant_id = cart.restaurant_id
        coupon = cart.applied_coupon
        row.coupon_code = coupon.code if coupon else None
        row.coupon_discount_type = coupon.discount_type.value if coupon else None
        row.coupon_discount_value = coupon.discount_value if coupon else None
        row.coupon_max_discount = coupon.max_discount if coupon else None
        db.flush()

    # ==========================================
    # Operations (each returns the cart and its totals)
    # ==========================================

    def get_cart(self, db: Session, customer_id: int) -> Tuple[ShoppingCart, PricedTotals]:
        row, cart = self.load(db, customer_id, lock=False)
        return cart, self.build_engine(db).compute_totals(cart)

    def add_item(self, db: Session, customer_id: int, menu_item_id: int, quantity: int, customization=None):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).add_item(cart, menu_item_id, quantity, customization)
        self.save(db, row, cart)
        logger.info("Cart of user #%s: +%s x menu item #%s", customer_id, quantity, menu_item_id)
        return cart, totals

    def update_item(self, db: Session, customer_id: int, line_item_id: str, quantity: int):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).update_item_quantity(cart, line_item_id, quantity)
        self.save(db, row, cart)
        logger.info("Cart of user #%s: line %s set to %s", customer_id, line_item_id, quantity)
        return cart, totals

    def remove_item(self, db: Session, customer_id: int, line_item_id: str):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).remove_item(cart, line_item_id)
        self.save(db, row, cart)
        logger.info("Cart of user #%s: line %s removed", customer_id, line_item_id)
        return cart, totals

    def clear_cart(self, db: Session, customer_id: int):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).clear(cart)
        self.save(db, row, cart)
        logger.info("Cart of user #%s cleared", customer_id)
        return cart, totals

    def apply_coupon(self, db: Session, customer_id: int, code: str):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).apply_coupon(cart, code)
        self.save(db, row, cart)
        logger.info("Coupon %s applied to cart of user #%s (-%s)",
                    cart.applied_coupon.code, customer_id, totals.discount_amount)
        return cart, totals

    def remove_coupon(self, db: Session, customer_id: int):
        row, cart = self.load(db, customer_id)
        totals = self.build_engine(db).remove_coupon(cart)
        self.save(db, row, cart)
        return cart, totals

    def validate_cart(self, db: Session, customer_id: int) -> Tuple[ShoppingCart, PricedTotals, List[str]]:
        """Pre-checkout review against the current menu, coupon store and order minimum."""
        row, cart = self.load(db, customer_id, lock=False)
        engine = self.build_engine(db)
        problems = engine.review(cart, settings_service.minimum_order_amount(db))
        if problems:
            logger.warning("Cart of user #%s failed validation: %s", customer_id, "; ".join(problems))
        return cart, engine.compute_totals(cart), problems

    def replace_cart(self, db: Session, customer_id: int, cart: ShoppingCart) -> PricedTotals:
        """Overwrite the stored cart (used by reorder)."""
        row = self.get_or_create_cart(db, customer_id, lock=True)
        self.save(db, row, cart)
        return self.build_engine(db).compute_totals(cart)


# Singleton
cart_service = CartService()
