from datetime import timedelta
from decimal import Decimal

import pytest

from common.exceptions import (
    AlreadyRatedError, EmptyCartError, ForbiddenTransitionError, InvalidCouponError, InvalidRatingError,
    InvalidTransitionError, MenuItemUnavailableError, MinimumOrderError,
    NotCancellableError, NotRatableError,
)
from modules.cart.engine import MenuItemInfo
from modules.order.lifecycle import (
    ActorRole, ContactInfo, DeliveryAddress, OrderStatus, PaymentMethod,
)

ADDRESS = DeliveryAddress(street="742 Evergreen Terrace", city="Springfield", state="IL",
                          zip_code="62704", phone="555-0101")
CONTACT = ContactInfo(phone="555-0101", email="jane@example.com")

FLOW = [OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED]


@pytest.fixture
def order(pricing, manager, cart):
    pricing.add_item(cart, 1, 2)
    pricing.add_item(cart, 2, 1, {"spice": "mild"})
    return manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT, "Ring twice")


def advance_to(manager, order, status):
    for step in FLOW:
        if order.status == status:
            break
        manager.advance_status(order, step, ActorRole.ADMIN)
    return order


class TestPlaceOrder:

    def test_empty_cart(self, manager, cart):
        with pytest.raises(EmptyCartError):
            manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT)

    def test_below_minimum(self, pricing, manager, cart):
        pricing.add_item(cart, 1, 1)
        pricing.apply_coupon(cart, "FLAT5")  # 5 + 0.40 + 3.00 - 5 = 3.40
        with pytest.raises(MinimumOrderError):
            manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT)

    def test_item_unavailable_at_checkout(self, pricing, manager, menu, cart):
        pricing.add_item(cart, 1, 2)
        pricing.add_item(cart, 2, 1)
        menu[2] = MenuItemInfo(id=2, name="Pad Thai", price=Decimal("10.00"), is_available=False, restaurant_id=1)
        with pytest.raises(MenuItemUnavailableError):
            manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT)
        assert len(cart.line_items) == 2

    def test_coupon_minimum_no_longer_met(self, pricing, manager, cart):
        pricing.add_item(cart, 2, 3)
        pricing.apply_coupon(cart, "MIN30")
        pricing.update_item_quantity(cart, cart.line_items[0].id, 2)
        with pytest.raises(InvalidCouponError):
            manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT)
        assert cart.applied_coupon.code == "MIN30"

    def test_price_change_keeps_cart_snapshot(self, pricing, manager, menu, cart):
        pricing.add_item(cart, 1, 2)
        pricing.add_item(cart, 2, 1)
        menu[1] = MenuItemInfo(id=1, name="Spring Rolls", price=Decimal("7.00"), is_available=True, restaurant_id=1)
        placed = manager.place_order(cart, ADDRESS, PaymentMethod.CASH, CONTACT)
        assert placed.items[0].unit_price == Decimal("5.00")
        assert placed.totals.grand_total == Decimal("24.60")

    def test_snapshot(self, manager, order, cart):
        assert order.status == OrderStatus.PENDING
        assert order.customer_id == 7
        assert order.restaurant_id == 1
        assert order.totals.grand_total == Decimal("24.60")
        assert [(line.name, line.quantity) for line in order.items] == [("Spring Rolls", 2), ("Pad Thai", 1)]
        assert order.items[1].customization_dict == {"spice": "mild"}
        assert order.order_number.startswith("ORD-260115-")
        assert order.estimated_delivery_at == manager.clock() + timedelta(minutes=45)
        assert order.special_instructions == "Ring twice"
        assert [h.status for h in order.history] == [OrderStatus.PENDING]
        # the manager leaves clearing the cart to its caller
        assert not cart.is_empty

    def test_coupon_code_recorded(self, pricing, manager, cart):
        pricing.add_item(cart, 2, 2)
        pricing.apply_coupon(cart, "SAVE10")
        placed = manager.place_order(cart, ADDRESS, PaymentMethod.UPI, CONTACT)
        assert placed.coupon_code == "SAVE10"
        assert placed.totals.discount_amount == Decimal("2.00")

    def test_later_price_changes_do_not_touch_order(self, pricing, menu, order):
        menu[1] = MenuItemInfo(id=1, name="Spring Rolls", price=Decimal("9.99"), is_available=True, restaurant_id=1)
        assert order.items[0].unit_price == Decimal("5.00")


class TestStatusTransitions:

    def test_full_path(self, manager, order):
        for step in FLOW:
            manager.advance_status(order, step, ActorRole.ADMIN)
            assert order.status == step

        assert order.delivered_at == manager.clock()
        assert [h.status for h in order.history] == [OrderStatus.PENDING] + FLOW

    @pytest.mark.parametrize("target", [
        OrderStatus.READY, OrderStatus.PREPARING, OrderStatus.DELIVERED,
        OrderStatus.PENDING, OrderStatus.CANCELLED,
    ])
    def test_skipping_or_backwards_fails(self, manager, order, target):
        with pytest.raises(InvalidTransitionError):
            manager.advance_status(order, target, ActorRole.ADMIN)
        assert order.status == OrderStatus.PENDING
        assert len(order.history) == 1

    def test_customer_cannot_advance(self, manager, order):
        with pytest.raises(ForbiddenTransitionError):
            manager.advance_status(order, OrderStatus.CONFIRMED, ActorRole.CUSTOMER)
        assert order.status == OrderStatus.PENDING

    def test_terminal_state_is_final(self, manager, order):
        advance_to(manager, order, OrderStatus.DELIVERED)
        with pytest.raises(InvalidTransitionError):
            manager.advance_status(order, OrderStatus.CONFIRMED, ActorRole.ADMIN)

    def test_note_is_recorded(self, manager, order):
        manager.advance_status(order, "confirmed", "admin", note="Kitchen accepted")
        assert order.history[-1].note == "Kitchen accepted"
        assert order.history[-1].actor_role == ActorRole.ADMIN


class TestCancel:

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_customer_can_cancel_early(self, manager, order, status):
        advance_to(manager, order, status)
        manager.cancel(order, ActorRole.CUSTOMER)
        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "Cancelled by customer"
        assert order.cancelled_at == manager.clock()

    @pytest.mark.parametrize("status", [OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED])
    def test_customer_cannot_cancel_later(self, manager, order, status):
        advance_to(manager, order, status)
        with pytest.raises(NotCancellableError):
            manager.cancel(order, ActorRole.CUSTOMER)
        assert order.status == status

    def test_admin_can_cancel_before_delivery(self, manager, order):
        advance_to(manager, order, OrderStatus.READY)
        manager.cancel(order, ActorRole.ADMIN, "  Out of noodles ")
        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "Out of noodles"

    def test_admin_default_reason(self, manager, order):
        manager.cancel(order, ActorRole.ADMIN)
        assert order.cancellation_reason == "Cancelled by restaurant"

    @pytest.mark.parametrize("actor", [ActorRole.ADMIN, ActorRole.CUSTOMER])
    def test_cancelled_order_cannot_be_cancelled_again(self, manager, order, actor):
        manager.cancel(order, ActorRole.CUSTOMER)
        with pytest.raises(NotCancellableError):
            manager.cancel(order, actor)

    def test_admin_cannot_cancel_delivered(self, manager, order):
        advance_to(manager, order, OrderStatus.DELIVERED)
        with pytest.raises(NotCancellableError):
            manager.cancel(order, ActorRole.ADMIN)


class TestRating:

    def test_not_delivered(self, manager, order):
        with pytest.raises(NotRatableError):
            manager.attach_rating(order, 5)
        assert order.rating is None

    def test_rate_delivered(self, manager, order):
        advance_to(manager, order, OrderStatus.DELIVERED)
        manager.attach_rating(order, 4, " Tasty ")
        assert order.rating.stars == 4
        assert order.rating.review == "Tasty"
        assert order.rating.rated_at == manager.clock()

    @pytest.mark.parametrize("stars", [0, 6, -1, 3.5, True, "5"])
    def test_invalid_stars(self, manager, order, stars):
        advance_to(manager, order, OrderStatus.DELIVERED)
        with pytest.raises(InvalidRatingError):
            manager.attach_rating(order, stars)

    def test_no_edits(self, manager, order):
        advance_to(manager, order, OrderStatus.DELIVERED)
        manager.attach_rating(order, 5)
        with pytest.raises(AlreadyRatedError):
            manager.attach_rating(order, 1, "changed my mind")
        assert order.rating.stars == 5

    def test_cancelled_order_not_ratable(self, manager, order):
        manager.cancel(order, ActorRole.CUSTOMER)
        with pytest.raises(NotRatableError):
            manager.attach_rating(order, 5)


class TestReorder:

    def test_uses_current_prices(self, manager, menu, order):
        menu[1] = MenuItemInfo(id=1, name="Spring Rolls", price=Decimal("6.00"), is_available=True, restaurant_id=1)
        cart = manager.reorder(order)

        assert cart.owner_id == order.customer_id
        assert cart.restaurant_id == 1
        assert [(li.menu_item_id, li.quantity, li.unit_price) for li in cart.line_items] == [
            (1, 2, Decimal("6.00")),
            (2, 1, Decimal("10.00")),
        ]
        assert cart.line_items[1].customization == {"spice": "mild"}

    def test_unavailable_item_propagates(self, manager, menu, order):
        menu[2] = MenuItemInfo(id=2, name="Pad Thai", price=Decimal("10.00"), is_available=False, restaurant_id=1)
        with pytest.raises(MenuItemUnavailableError):
            manager.reorder(order)
