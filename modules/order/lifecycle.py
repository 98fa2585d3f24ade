"""
Order Module - Lifecycle Manager
==================================
Pure order rules: checkout snapshot, the status state machine, role-scoped
cancellation, rating and reorder.

    pending → confirmed → preparing → ready → delivered
        └────────┴──→ cancelled

Only admins advance an order, one stage at a time. Customers may cancel
while the order is pending or confirmed; admins may cancel any order that
has not reached a terminal state. A delivered order can be rated once.

The manager never mutates a cart and never persists anything; the order
service handles both.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from common.exceptions import (
    EmptyCartError, MinimumOrderError, InvalidTransitionError,
    ForbiddenTransitionError, NotCancellableError, NotRatableError,
    InvalidRatingError, AlreadyRatedError,
)
from common.helpers import now_utc, to_money, generate_order_number
from modules.cart.engine import CartPricingEngine, PricedTotals, ShoppingCart


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ActorRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"
    DIGITAL_WALLET = "digital-wallet"
    UPI = "upi"


NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

DEFAULT_CANCEL_REASONS = {
    ActorRole.CUSTOMER: "Cancelled by customer",
    ActorRole.ADMIN: "Cancelled by restaurant",
}


# ==========================================
# Value objects
# ==========================================

@dataclass(frozen=True)
class DeliveryAddress:
    street: str
    city: str
    state: str
    zip_code: str
    phone: str
    country: str = "USA"


@dataclass(frozen=True)
class ContactInfo:
    phone: str
    email: Optional[str] = None


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    customization: Tuple[Tuple[str, str], ...] = ()

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    @property
    def customization_dict(self) -> Dict[str, str]:
        return dict(self.customization)


@dataclass(frozen=True)
class OrderRating:
    stars: int
    review: Optional[str]
    rated_at: datetime


@dataclass(frozen=True)
class StatusChange:
    status: OrderStatus
    actor_role: Optional[ActorRole]
    note: Optional[str]
    changed_at: datetime


@dataclass
class PlacedOrder:
    """An order as the lifecycle rules see it. `items` and `totals` never change."""
    order_number: str
    customer_id: int
    restaurant_id: int
    items: Tuple[OrderLine, ...]
    totals: PricedTotals
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    contact_info: ContactInfo
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    coupon_code: Optional[str] = None
    special_instructions: Optional[str] = None
    estimated_delivery_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    rating: Optional[OrderRating] = None
    id: Optional[int] = None
    history: List[StatusChange] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _record(self, status: OrderStatus, actor: Optional[ActorRole], note: Optional[str], at: datetime):
        self.status = status
        self.updated_at = at
        self.history.append(StatusChange(status=status, actor_role=actor, note=note, changed_at=at))


# ==========================================
# Manager
# ==========================================

class OrderLifecycleManager:

    def __init__(
        self,
        pricing: CartPricingEngine,
        minimum_order_amount: Decimal = Decimal("10.00"),
        estimated_delivery_minutes: int = 45,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.pricing = pricing
        self.minimum_order_amount = to_money(minimum_order_amount)
        self.estimated_delivery_minutes = estimated_delivery_minutes
        self.clock = clock

    # ------------------------------------------
    # Checkout
    # ------------------------------------------

    def place_order(
        self,
        cart: ShoppingCart,
        delivery_address: DeliveryAddress,
        payment_method: PaymentMethod,
        contact_info: ContactInfo,
        special_instructions: Optional[str] = None,
    ) -> PlacedOrder:
        """
        Freeze the priced cart into a pending order. The caller clears the cart.

        Every line must still be orderable and an applied coupon must still
        hold; line prices stay at their add-time snapshot.
        """
        if cart.is_empty:
            raise EmptyCartError()
        self.pricing.check_availability(cart)
        self.pricing.recheck_coupon(cart)

        totals = self.pricing.compute_totals(cart)
        if totals.grand_total < self.minimum_order_amount:
            raise MinimumOrderError(self.minimum_order_amount, totals.grand_total)

        now = self.clock()
        items = tuple(
            OrderLine(
                menu_item_id=li.menu_item_id,
                name=li.name,
                unit_price=li.unit_price,
                quantity=li.quantity,
                customization=tuple(sorted(li.customization.items())),
            )
            for li in cart.line_items
        )
        order = PlacedOrder(
            order_number=generate_order_number(now),
            customer_id=cart.owner_id,
            restaurant_id=cart.restaurant_id,
            items=items,
            totals=totals,
            delivery_address=delivery_address,
            payment_method=PaymentMethod(payment_method),
            contact_info=contact_info,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            coupon_code=cart.applied_coupon.code if cart.applied_coupon else None,
            special_instructions=special_instructions,
            estimated_delivery_at=now + timedelta(minutes=self.estimated_delivery_minutes),
        )
        order.history.append(StatusChange(OrderStatus.PENDING, ActorRole.CUSTOMER, "Order placed", now))
        return order

    # ------------------------------------------
    # Status transitions
    # ------------------------------------------

    def advance_status(
        self,
        order: PlacedOrder,
        target_status: OrderStatus,
        actor_role: ActorRole,
        note: Optional[str] = None,
    ) -> PlacedOrder:
        """Move the order exactly one stage forward. Admin only."""
        target = OrderStatus(target_status)
        actor = ActorRole(actor_role)

        if actor != ActorRole.ADMIN:
            raise ForbiddenTransitionError(actor.value, target.value)
        if NEXT_STATUS.get(order.status) != target:
            raise InvalidTransitionError(order.status.value, target.value)

        now = self.clock()
        order._record(target, actor, note, now)
        if target == OrderStatus.DELIVERED:
            order.delivered_at = now
        return order

    def cancel(self, order: PlacedOrder, actor_role: ActorRole, reason: Optional[str] = None) -> PlacedOrder:
        actor = ActorRole(actor_role)
        if order.is_terminal:
            raise NotCancellableError(order.status.value)
        if actor == ActorRole.CUSTOMER and order.status not in CUSTOMER_CANCELLABLE:
            raise NotCancellableError(order.status.value)

        reason = (reason or "").strip() or DEFAULT_CANCEL_REASONS[actor]
        now = self.clock()
        order._record(OrderStatus.CANCELLED, actor, reason, now)
        order.cancellation_reason = reason
        order.cancelled_at = now
        return order

    # ------------------------------------------
    # Rating
    # ------------------------------------------

    def attach_rating(self, order: PlacedOrder, stars: int, review: Optional[str] = None) -> PlacedOrder:
        if order.status != OrderStatus.DELIVERED:
            raise NotRatableError()
        if not isinstance(stars, int) or isinstance(stars, bool) or not 1 <= stars <= 5:
            raise InvalidRatingError(stars)
        if order.rating is not None:
            raise AlreadyRatedError()

        now = self.clock()
        order.rating = OrderRating(stars=stars, review=(review or "").strip() or None, rated_at=now)
        order.updated_at = now
        return order

    # ------------------------------------------
    # Reorder
    # ------------------------------------------

    def reorder(self, order: PlacedOrder) -> ShoppingCart:
        """A fresh cart with the order's lines at today's menu prices."""
        cart = ShoppingCart(owner_id=order.customer_id)
        for line in order.items:
            self.pricing.add_item(cart, line.menu_item_id, line.quantity, line.customization_dict)
        return cart
