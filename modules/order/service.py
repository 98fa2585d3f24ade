"""
Order Service
==============
Persists what the lifecycle manager decides: checkout from the stored cart,
status transitions, cancellation, rating, reorder, plus listings and stats.

Every mutation loads the order row with SELECT ... FOR UPDATE, converts it to
a PlacedOrder, lets the manager act on it, and writes the changes back.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from config import settings
from common.exceptions import NotFoundError
from common.helpers import as_utc, to_money
from modules.order.models import Order, OrderItem, OrderStatusLog
from modules.order.lifecycle import (
    OrderLifecycleManager, PlacedOrder, OrderLine, OrderRating, StatusChange,
    OrderStatus, ActorRole, PaymentMethod, DeliveryAddress, ContactInfo,
)
from modules.cart.engine import PricedTotals, ShoppingCart
from modules.cart.service import cart_service
from modules.admin.service import settings_service

logger = logging.getLogger("quickbite.order")


class OrderService:

    def build_manager(self, db: Session) -> OrderLifecycleManager:
        return OrderLifecycleManager(
            pricing=cart_service.build_engine(db),
            minimum_order_amount=settings_service.minimum_order_amount(db),
            estimated_delivery_minutes=settings.ESTIMATED_DELIVERY_MINUTES,
        )

    # ==========================================
    # Checkout
    # ==========================================

    def place_order(
        self,
        db: Session,
        customer_id: int,
        delivery_address: DeliveryAddress,
        payment_method: PaymentMethod,
        contact_info: ContactInfo,
        special_instructions: Optional[str] = None,
    ) -> Order:
        """
        Checkout: lock the customer's cart, freeze it into a pending order,
        then clear the cart. Both writes land in the caller's transaction.
        """
        cart_row, cart = cart_service.load(db, customer_id)
        manager = self.build_manager(db)

        placed = manager.place_order(
            cart, delivery_address, payment_method, contact_info, special_instructions,
        )

        order = Order(
            order_number=placed.order_number,
            customer_id=placed.customer_id,
            restaurant_id=placed.restaurant_id,
            status=placed.status.value,
            subtotal=placed.totals.subtotal,
            tax_amount=placed.totals.tax_amount,
            delivery_fee=placed.totals.delivery_fee,
            discount_amount=placed.totals.discount_amount,
            grand_total=placed.totals.grand_total,
            coupon_code=placed.coupon_code,
            delivery_street=delivery_address.street,
            delivery_city=delivery_address.city,
            delivery_state=delivery_address.state,
            delivery_zip_code=delivery_address.zip_code,
            delivery_country=delivery_address.country,
            delivery_phone=delivery_address.phone,
            special_instructions=placed.special_instructions,
            estimated_delivery_at=placed.estimated_delivery_at,
            contact_phone=contact_info.phone,
            contact_email=contact_info.email,
            payment_method=placed.payment_method.value,
            created_at=placed.created_at,
            updated_at=placed.updated_at,
        )
        for line in placed.items:
            order.items.append(OrderItem(
                menu_item_id=line.menu_item_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                customization=line.customization_dict or None,
                line_total=line.line_total,
            ))
        self._write_history(order, placed.history)
        db.add(order)

        manager.pricing.clear(cart)
        cart_service.save(db, cart_row, cart)
        db.flush()

        logger.info(
            "Order %s placed by user #%s: %d lines, total %s",
            order.order_number, customer_id, len(order.items), order.grand_total,
        )
        return order

    # ==========================================
    # Lifecycle
    # ==========================================

    def advance_status(self, db: Session, order_id: int, target_status: str, note: Optional[str] = None) -> Order:
        """Admin status update. A target of `cancelled` goes through cancel()."""
        if OrderStatus(target_status) == OrderStatus.CANCELLED:
            return self.cancel(db, order_id, ActorRole.ADMIN, note)

        row = self._lock(db, order_id)
        placed = self.to_domain(row)
        seen = len(placed.history)
        old_status = placed.status

        self.build_manager(db).advance_status(placed, target_status, ActorRole.ADMIN, note)
        self._apply(row, placed, seen)
        logger.info("Order %s: %s -> %s", row.order_number, old_status.value, row.status)
        return row

    def cancel(
        self,
        db: Session,
        order_id: int,
        actor_role: ActorRole,
        reason: Optional[str] = None,
        customer_id: Optional[int] = None,
    ) -> Order:
        """Cancel an order. When `customer_id` is given the order must belong to that customer."""
        row = self._lock(db, order_id, customer_id=customer_id)
        placed = self.to_domain(row)
        seen = len(placed.history)

        self.build_manager(db).cancel(placed, actor_role, reason)
        self._apply(row, placed, seen)
        logger.info("Order %s cancelled by %s: %s", row.order_number, ActorRole(actor_role).value, row.cancellation_reason)
        return row

    def rate(self, db: Session, order_id: int, customer_id: int, stars: int, review: Optional[str] = None) -> Order:
        row = self._lock(db, order_id, customer_id=customer_id)
        placed = self.to_domain(row)

        self.build_manager(db).attach_rating(placed, stars, review)
        self._apply(row, placed, len(placed.history))
        logger.info("Order %s rated %s/5", row.order_number, row.rating_stars)
        return row

    def reorder(self, db: Session, order_id: int, customer_id: int) -> Tuple[ShoppingCart, PricedTotals]:
        """Replace the customer's cart with the order's lines at today's prices."""
        row = self.get_order(db, order_id, customer_id=customer_id)
        placed = self.to_domain(row)

        cart = self.build_manager(db).reorder(placed)
        totals = cart_service.replace_cart(db, customer_id, cart)
        logger.info("Order %s reordered into cart of user #%s", row.order_number, customer_id)
        return cart, totals

    # ==========================================
    # Queries
    # ==========================================

    def get_order(self, db: Session, order_id: int, customer_id: Optional[int] = None) -> Order:
        q = db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id)
        if customer_id is not None:
            q = q.filter(Order.customer_id == customer_id)
        order = q.first()
        if not order:
            raise NotFoundError("Order not found.")
        return order

    def get_customer_orders(
        self, db: Session, customer_id: int, status: Optional[str] = None, offset: int = 0, limit: int = 10,
    ) -> Tuple[List[Order], int]:
        q = db.query(Order).filter(Order.customer_id == customer_id)
        if status:
            q = q.filter(Order.status == OrderStatus(status).value)
        total = q.count()
        orders = q.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()
        return orders, total

    def get_all_orders(
        self,
        db: Session,
        status: Optional[str] = None,
        restaurant_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Order], int]:
        q = db.query(Order)
        if status:
            q = q.filter(Order.status == OrderStatus(status).value)
        if restaurant_id:
            q = q.filter(Order.restaurant_id == restaurant_id)
        total = q.count()
        orders = q.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()
        return orders, total

    def get_stats(self, db: Session) -> Dict[str, Any]:
        """Counts per status, delivered revenue and average delivered order value."""
        counts = {s.value: 0 for s in OrderStatus}
        for status, count in db.query(Order.status, func.count(Order.id)).group_by(Order.status).all():
            counts[status] = count

        revenue, delivered = db.query(
            func.coalesce(func.sum(Order.grand_total), 0),
            func.count(Order.id),
        ).filter(Order.status == OrderStatus.DELIVERED.value).one()

        revenue = to_money(revenue or 0)
        average = to_money(revenue / delivered) if delivered else to_money(0)
        return {
            "total_orders": sum(counts.values()),
            "by_status": counts,
            "total_revenue": revenue,
            "average_order_value": average,
        }

    # ==========================================
    # Row <-> domain
    # ==========================================

    def to_domain(self, row: Order) -> PlacedOrder:
        rating = None
        if row.rating_stars is not None:
            rating = OrderRating(stars=row.rating_stars, review=row.rating_review, rated_at=as_utc(row.rated_at))

        return PlacedOrder(
            id=row.id,
            order_number=row.order_number,
            customer_id=row.customer_id,
            restaurant_id=row.restaurant_id,
            items=tuple(
                OrderLine(
                    menu_item_id=item.menu_item_id,
                    name=item.name,
                    unit_price=to_money(item.unit_price),
                    quantity=item.quantity,
                    customization=tuple(sorted((item.customization or {}).items())),
                )
                for item in row.items
            ),
            totals=PricedTotals(
                subtotal=to_money(row.subtotal),
                tax_amount=to_money(row.tax_amount),
                delivery_fee=to_money(row.delivery_fee),
                discount_amount=to_money(row.discount_amount),
                grand_total=to_money(row.grand_total),
            ),
            delivery_address=DeliveryAddress(
                street=row.delivery_street,
                city=row.delivery_city,
                state=row.delivery_state,
                zip_code=row.delivery_zip_code,
                phone=row.delivery_phone,
                country=row.delivery_country,
            ),
            payment_method=PaymentMethod(row.payment_method),
            contact_info=ContactInfo(phone=row.contact_phone, email=row.contact_email),
            status=OrderStatus(row.status),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            coupon_code=row.coupon_code,
            special_instructions=row.special_instructions,
            estimated_delivery_at=as_utc(row.estimated_delivery_at),
            delivered_at=as_utc(row.delivered_at),
            cancelled_at=as_utc(row.cancelled_at),
            cancellation_reason=row.cancellation_reason,
            rating=rating,
            history=[
                StatusChange(
                    status=OrderStatus(log.status),
                    actor_role=ActorRole(log.actor_role) if log.actor_role else None,
                    note=log.note,
                    changed_at=as_utc(log.created_at),
                )
                for log in row.status_logs
            ],
        )

    # ==========================================
    # Private helpers
    # ==========================================

    def _lock(self, db: Session, order_id: int, customer_id: Optional[int] = None) -> Order:
        q = db.query(Order).filter(Order.id == order_id)
        if customer_id is not None:
            q = q.filter(Order.customer_id == customer_id)
        row = q.with_for_update().first()
        if not row:
            raise NotFoundError("Order not found.")
        return row

    def _apply(self, row: Order, placed: PlacedOrder, seen: int):
        """Copy the mutable parts of `placed` back onto the row; items and totals never change."""
        row.status = placed.status.value
        row.updated_at = placed.updated_at
        row.delivered_at = placed.delivered_at
        row.cancelled_at = placed.cancelled_at
        row.cancellation_reason = placed.cancellation_reason
        if placed.rating is not None:
            row.rating_stars = placed.rating.stars
            row.rating_review = placed.rating.review
            row.rated_at = placed.rating.rated_at
        self._write_history(row, placed.history[seen:])

    def _write_history(self, row: Order, changes: List[StatusChange]):
        for change in changes:
            row.status_logs.append(OrderStatusLog(
                status=change.status.value,
                actor_role=change.actor_role.value if change.actor_role else None,
                note=change.note,
                created_at=change.changed_at,
            ))


# Singleton
order_service = OrderService()
