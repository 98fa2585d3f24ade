"""
Order Routes - Customer Facing
=================================
Checkout, order history, cancellation, rating and reorder.

Endpoints:
  POST  /api/orders                  - Place order from the current cart
  GET   /api/orders                  - My orders (status filter, paginated)
  GET   /api/orders/{id}             - Order detail (owner or admin)
  POST  /api/orders/{id}/cancel      - Cancel (owner while pending/confirmed; admin any non-terminal)
  POST  /api/orders/{id}/rating      - Rate a delivered order
  POST  /api/orders/{id}/reorder     - Refill the cart from a past order
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import settings
from config.database import get_db
from common.helpers import as_utc, format_money, paginate
from modules.auth.deps import require_login, require_customer
from modules.cart.routes import cart_to_dict
from modules.order.lifecycle import (
    OrderStatus, ActorRole, PaymentMethod, DeliveryAddress, ContactInfo,
)
from modules.order.models import Order
from modules.order.service import order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


# ==========================================
# Schemas
# ==========================================

class DeliveryAddressIn(BaseModel):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=10)
    phone: str = Field(..., min_length=1, max_length=20)
    country: str = Field("USA", max_length=60)


class ContactInfoIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=20)
    email: Optional[str] = Field(None, max_length=120)


class PlaceOrderRequest(BaseModel):
    delivery_address: DeliveryAddressIn
    payment_method: PaymentMethod
    contact_info: ContactInfoIn
    special_instructions: Optional[str] = Field(None, max_length=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=200)


class RatingRequest(BaseModel):
    stars: int
    review: Optional[str] = Field(None, max_length=settings.REVIEW_MAX_LENGTH)


# ==========================================
# Serializers
# ==========================================

def _iso(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def order_summary(o: Order) -> dict:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "customer_id": o.customer_id,
        "restaurant_id": o.restaurant_id,
        "status": o.status,
        "grand_total": format_money(o.grand_total),
        "created_at": _iso(o.created_at),
    }


def order_to_dict(o: Order) -> dict:
    data = order_summary(o)
    data.update({
        "items": [
            {
                "menu_item_id": it.menu_item_id,
                "name": it.name,
                "unit_price": format_money(it.unit_price),
                "quantity": it.quantity,
                "customization": it.customization or {},
                "line_total": format_money(it.line_total),
            }
            for it in o.items
        ],
        "totals": {
            "subtotal": format_money(o.subtotal),
            "tax_amount": format_money(o.tax_amount),
            "delivery_fee": format_money(o.delivery_fee),
            "discount_amount": format_money(o.discount_amount),
            "grand_total": format_money(o.grand_total),
        },
        "coupon_code": o.coupon_code,
        "delivery_address": {
            "street": o.delivery_street,
            "city": o.delivery_city,
            "state": o.delivery_state,
            "zip_code": o.delivery_zip_code,
            "country": o.delivery_country,
            "phone": o.delivery_phone,
        },
        "contact_info": {"phone": o.contact_phone, "email": o.contact_email},
        "payment_method": o.payment_method,
        "special_instructions": o.special_instructions,
        "estimated_delivery_at": _iso(o.estimated_delivery_at),
        "delivered_at": _iso(o.delivered_at),
        "cancelled_at": _iso(o.cancelled_at),
        "cancellation_reason": o.cancellation_reason,
        "rating": {
            "stars": o.rating_stars,
            "review": o.rating_review,
            "rated_at": _iso(o.rated_at),
        } if o.rating_stars is not None else None,
        "status_history": [
            {
                "status": log.status,
                "actor_role": log.actor_role,
                "note": log.note,
                "changed_at": _iso(log.created_at),
            }
            for log in o.status_logs
        ],
        "updated_at": _iso(o.updated_at),
    })
    return data


# ==========================================
# Checkout & history
# ==========================================

@router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, db: Session = Depends(get_db), me=Depends(require_customer)):
    order = order_service.place_order(
        db,
        me.id,
        delivery_address=DeliveryAddress(**body.delivery_address.model_dump()),
        payment_method=body.payment_method,
        contact_info=ContactInfo(**body.contact_info.model_dump()),
        special_instructions=body.special_instructions,
    )
    db.commit()
    db.refresh(order)
    return {"success": True, "data": order_to_dict(order)}


@router.get("")
async def my_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    page, limit, offset = paginate(page, limit, settings.MAX_PAGE_SIZE)
    orders, total = order_service.get_customer_orders(
        db, me.id, status=status.value if status else None, offset=offset, limit=limit,
    )
    return {
        "success": True,
        "data": {
            "items": [order_summary(o) for o in orders],
            "page": page,
            "limit": limit,
            "total": total,
        },
    }


@router.get("/{order_id}")
async def order_detail(order_id: int, db: Session = Depends(get_db), me=Depends(require_login)):
    order = order_service.get_order(db, order_id, customer_id=None if me.is_admin else me.id)
    return {"success": True, "data": order_to_dict(order)}


# ==========================================
# Actions
# ==========================================

@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    body: Optional[CancelRequest] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    if me.is_admin:
        actor, owner = ActorRole.ADMIN, None
    else:
        actor, owner = ActorRole.CUSTOMER, me.id

    order = order_service.cancel(db, order_id, actor, body.reason if body else None, customer_id=owner)
    db.commit()
    db.refresh(order)
    return {"success": True, "data": order_to_dict(order)}


@router.post("/{order_id}/rating")
async def rate_order(
    order_id: int,
    body: RatingRequest,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    order = order_service.rate(db, order_id, me.id, body.stars, body.review)
    db.commit()
    db.refresh(order)
    return {"success": True, "data": order_to_dict(order)}


@router.post("/{order_id}/reorder")
async def reorder(order_id: int, db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = order_service.reorder(db, order_id, me.id)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}
