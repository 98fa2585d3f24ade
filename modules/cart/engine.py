"""
Cart Module - Pricing Engine
==============================
Pure cart rules: line-item bookkeeping, the one-restaurant-per-cart rule,
coupon validation and totals arithmetic.

Nothing here touches the database, the network or the logger. Menu items and
coupons are resolved through the two lookup callables handed to the engine,
and the cart is an explicit object passed into every call. The service layer
loads it, calls the engine, and persists the result.

Every operation validates before it mutates, so a raised error leaves the
cart exactly as it was.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from common.exceptions import (
    InvalidQuantityError, ItemNotFoundError, CrossRestaurantError,
    InvalidCouponError, EmptyCartError, MenuItemUnavailableError, NotFoundError,
)
from common.helpers import now_utc, as_utc, to_money

ZERO = Decimal("0.00")

COUPON_CODE_MIN_LENGTH = 3
COUPON_CODE_MAX_LENGTH = 20


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# ==========================================
# Value objects
# ==========================================

@dataclass(frozen=True)
class MenuItemInfo:
    """What the engine needs to know about a menu item."""
    id: int
    name: str
    price: Decimal
    is_available: bool
    restaurant_id: int


@dataclass(frozen=True)
class CouponInfo:
    """Coupon as returned by the coupon store."""
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    expires_at: Optional[datetime] = None
    is_active: bool = True
    max_discount: Optional[Decimal] = None
    min_order_amount: Decimal = ZERO


@dataclass(frozen=True)
class CouponSnapshot:
    """Discount terms frozen onto the cart when a coupon is applied."""
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    max_discount: Optional[Decimal] = None

    def discount_for(self, subtotal: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENTAGE:
            raw = to_money(subtotal * self.discount_value / Decimal(100))
            if self.max_discount is not None:
                raw = min(raw, to_money(self.max_discount))
            return raw
        return to_money(self.discount_value)


@dataclass(frozen=True)
class PricedTotals:
    subtotal: Decimal
    tax_amount: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    grand_total: Decimal

    @classmethod
    def empty(cls) -> "PricedTotals":
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO)


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.08")
    delivery_fee: Decimal = Decimal("3.00")
    free_delivery_threshold: Decimal = Decimal("50.00")


@dataclass
class CartLineItem:
    menu_item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    customization: Dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def matches(self, menu_item_id: int, customization: Dict[str, str]) -> bool:
        return self.menu_item_id == menu_item_id and self.customization == customization


@dataclass
class ShoppingCart:
    owner_id: int
    restaurant_id: Optional[int] = None
    line_items: List[CartLineItem] = field(default_factory=list)
    applied_coupon: Optional[CouponSnapshot] = None

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    @property
    def item_count(self) -> int:
        return sum(li.quantity for li in self.line_items)

    def find_line(self, line_item_id: str) -> CartLineItem:
        for li in self.line_items:
            if li.id == line_item_id:
                return li
        raise ItemNotFoundError(line_item_id)


MenuLookup = Callable[[int], Optional[MenuItemInfo]]
CouponLookup = Callable[[str], Optional[CouponInfo]]


def normalize_coupon_code(code: str) -> str:
    return (code or "").strip().upper()


# ==========================================
# Engine
# ==========================================

class CartPricingEngine:

    def __init__(
        self,
        menu_lookup: MenuLookup,
        coupon_lookup: CouponLookup,
        policy: Optional[PricingPolicy] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.menu_lookup = menu_lookup
        self.coupon_lookup = coupon_lookup
        self.policy = policy or PricingPolicy()
        self.clock = clock

    # ------------------------------------------
    # Line items
    # ------------------------------------------

    def add_item(
        self,
        cart: ShoppingCart,
        menu_item_id: int,
        quantity: int,
        customization: Optional[Dict[str, str]] = None,
    ) -> PricedTotals:
        """
        Add `quantity` of a menu item. Merges into an existing line with the
        same menu item + customization; the unit price is re-snapshotted at
        the current menu price either way.
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidQuantityError(quantity)

        item = self.menu_lookup(menu_item_id)
        if item is None:
            raise NotFoundError(f"Menu item {menu_item_id} not found.")
        if not item.is_available:
            raise MenuItemUnavailableError(item.name)
        if cart.restaurant_id is not None and cart.restaurant_id != item.restaurant_id:
            raise CrossRestaurantError()

        customization = dict(customization or {})
        price = to_money(item.price)

        existing = next((li for li in cart.line_items if li.matches(item.id, customization)), None)
        if existing:
            existing.quantity += quantity
            existing.unit_price = price
            existing.name = item.name
        else:
            cart.line_items.append(CartLineItem(
                menu_item_id=item.id,
                name=item.name,
                unit_price=price,
                quantity=quantity,
                customization=customization,
            ))
        cart.restaurant_id = item.restaurant_id
        return self.compute_totals(cart)

    def update_item_quantity(self, cart: ShoppingCart, line_item_id: str, new_quantity: int) -> PricedTotals:
        """Set a line's quantity; 0 removes the line."""
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool) or new_quantity < 0:
            raise InvalidQuantityError(new_quantity)

        line = cart.find_line(line_item_id)
        if new_quantity == 0:
            return self.remove_item(cart, line_item_id)
        line.quantity = new_quantity
        return self.compute_totals(cart)

    def remove_item(self, cart: ShoppingCart, line_item_id: str) -> PricedTotals:
        line = cart.find_line(line_item_id)
        cart.line_items.remove(line)
        if cart.is_empty:
            cart.restaurant_id = None
        return self.compute_totals(cart)

    def clear(self, cart: ShoppingCart) -> PricedTotals:
        cart.line_items.clear()
        cart.restaurant_id = None
        cart.applied_coupon = None
        return PricedTotals.empty()

    # ------------------------------------------
    # Coupons
    # ------------------------------------------

    def apply_coupon(self, cart: ShoppingCart, code: str) -> PricedTotals:
        """
        Validation chain:
          1. Code format (3-20 chars after trim/upper-case)
          2. Cart has items
          3. Code exists & is active
          4. Not expired
          5. Cart subtotal meets the coupon minimum
        Replaces any previously applied coupon.
        """
        code = normalize_coupon_code(code)
        if not (COUPON_CODE_MIN_LENGTH <= len(code) <= COUPON_CODE_MAX_LENGTH):
            raise InvalidCouponError(
                f"Coupon code must be {COUPON_CODE_MIN_LENGTH}-{COUPON_CODE_MAX_LENGTH} characters."
            )
        if cart.is_empty:
            raise EmptyCartError()

        coupon = self.coupon_lookup(code)
        self._check_coupon_terms(coupon, self._subtotal(cart))

        cart.applied_coupon = CouponSnapshot(
            code=coupon.code,
            discount_type=DiscountType(coupon.discount_type),
            discount_value=Decimal(coupon.discount_value),
            max_discount=coupon.max_discount,
        )
        return self.compute_totals(cart)

    def remove_coupon(self, cart: ShoppingCart) -> PricedTotals:
        cart.applied_coupon = None
        return self.compute_totals(cart)

    def recheck_coupon(self, cart: ShoppingCart):
        """
        Re-run the coupon checks against the coupon store and the cart as it
        is now. Quantities or the coupon itself may have changed since it was
        applied.
        """
        if cart.applied_coupon is None:
            return
        coupon = self.coupon_lookup(cart.applied_coupon.code)
        self._check_coupon_terms(coupon, self._subtotal(cart))

    def _check_coupon_terms(self, coupon: Optional[CouponInfo], subtotal: Decimal):
        if coupon is None or not coupon.is_active:
            raise InvalidCouponError()

        expires_at = as_utc(coupon.expires_at)
        if expires_at is not None and self.clock() > expires_at:
            raise InvalidCouponError("This coupon has expired.")

        minimum = to_money(coupon.min_order_amount or ZERO)
        if subtotal < minimum:
            raise InvalidCouponError(f"Minimum order of ${minimum} required for this coupon.")

    # ------------------------------------------
    # Checkout checks
    # ------------------------------------------

    def check_availability(self, cart: ShoppingCart):
        """Raise MenuItemUnavailableError for the first line that can no longer be ordered."""
        for li in cart.line_items:
            info = self.menu_lookup(li.menu_item_id)
            if info is None or not info.is_available:
                raise MenuItemUnavailableError(li.name)

    def review(self, cart: ShoppingCart, minimum_order_amount: Optional[Decimal] = None) -> List[str]:
        """
        Everything that stands between this cart and checkout, as messages:
        unavailable items, prices that moved since the item was added, a coupon
        that no longer holds, and the order minimum. An empty list means the
        cart can be checked out as is.
        """
        if cart.is_empty:
            return [EmptyCartError().message]

        problems = []
        for li in cart.line_items:
            info = self.menu_lookup(li.menu_item_id)
            if info is None or not info.is_available:
                problems.append(f"{li.name} is no longer available.")
            elif to_money(info.price) != to_money(li.unit_price):
                problems.append(f"Price of {li.name} has changed to ${to_money(info.price)}.")

        if cart.applied_coupon is not None:
            try:
                self.recheck_coupon(cart)
            except InvalidCouponError as e:
                problems.append(f"Coupon {cart.applied_coupon.code}: {e.message}")

        if minimum_order_amount is not None:
            minimum = to_money(minimum_order_amount)
            grand_total = self.compute_totals(cart).grand_total
            if grand_total < minimum:
                problems.append(f"Minimum order amount is ${minimum}.")
        return problems

    # ------------------------------------------
    # Totals
    # ------------------------------------------

    def compute_totals(self, cart: ShoppingCart) -> PricedTotals:
        if cart.is_empty:
            return PricedTotals.empty()

        subtotal = self._subtotal(cart)
        tax = to_money(subtotal * self.policy.tax_rate)
        if subtotal > self.policy.free_delivery_threshold:
            delivery_fee = ZERO
        else:
            delivery_fee = to_money(self.policy.delivery_fee)

        before_discount = subtotal + tax + delivery_fee
        discount = ZERO
        if cart.applied_coupon:
            discount = min(cart.applied_coupon.discount_for(subtotal), before_discount)

        grand_total = max(before_discount - discount, ZERO)
        return PricedTotals(
            subtotal=subtotal,
            tax_amount=tax,
            delivery_fee=delivery_fee,
            discount_amount=discount,
            grand_total=grand_total,
        )

    def _subtotal(self, cart: ShoppingCart) -> Decimal:
        return to_money(sum((li.line_total for li in cart.line_items), ZERO))
