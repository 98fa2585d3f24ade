"""
Cart Routes
=============
JSON API over the customer's cart. Every response carries the freshly
computed totals.

Endpoints:
  GET     /api/cart                     - Cart with totals
  DELETE  /api/cart                     - Clear cart
  POST    /api/cart/items               - Add menu item
  PUT     /api/cart/items/{line_id}     - Set quantity (0 removes)
  DELETE  /api/cart/items/{line_id}     - Remove line
  POST    /api/cart/coupon              - Apply coupon
  DELETE  /api/cart/coupon              - Remove coupon
  POST    /api/cart/validate            - Pre-checkout check
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import format_money
from modules.auth.deps import require_customer
from modules.cart.engine import PricedTotals, ShoppingCart
from modules.cart.service import cart_service

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddItemRequest(BaseModel):
    menu_item_id: int
    quantity: int = 1
    customization: Optional[Dict[str, str]] = None


class UpdateItemRequest(BaseModel):
    quantity: int


class ApplyCouponRequest(BaseModel):
    code: str = Field(..., max_length=50)


# ==========================================
# Serializers
# ==========================================

def totals_to_dict(totals: PricedTotals) -> dict:
    return {
        "subtotal": format_money(totals.subtotal),
        "tax_amount": format_money(totals.tax_amount),
        "delivery_fee": format_money(totals.delivery_fee),
        "discount_amount": format_money(totals.discount_amount),
        "grand_total": format_money(totals.grand_total),
    }


def cart_to_dict(cart: ShoppingCart, totals: PricedTotals) -> dict:
    coupon = cart.applied_coupon
    return {
        "restaurant_id": cart.restaurant_id,
        "items": [
            {
                "id": li.id,
                "menu_item_id": li.menu_item_id,
                "name": li.name,
                "unit_price": format_money(li.unit_price),
                "quantity": li.quantity,
                "customization": li.customization,
                "line_total": format_money(li.line_total),
            }
            for li in cart.line_items
        ],
        "item_count": cart.item_count,
        "coupon": {
            "code": coupon.code,
            "discount_type": coupon.discount_type.value,
            "discount_value": str(coupon.discount_value),
        } if coupon else None,
        "totals": totals_to_dict(totals),
    }


# ==========================================
# Cart
# ==========================================

@router.get("")
async def view_cart(db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.get_cart(db, me.id)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


@router.delete("")
async def clear_cart(db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.clear_cart(db, me.id)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


# ==========================================
# Line items
# ==========================================

@router.post("/items")
async def add_item(body: AddItemRequest, db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.add_item(db, me.id, body.menu_item_id, body.quantity, body.customization)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


@router.put("/items/{line_id}")
async def update_item(
    line_id: str,
    body: UpdateItemRequest,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    cart, totals = cart_service.update_item(db, me.id, line_id, body.quantity)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


@router.delete("/items/{line_id}")
async def remove_item(line_id: str, db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.remove_item(db, me.id, line_id)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


# ==========================================
# Coupon
# ==========================================

@router.post("/coupon")
async def apply_coupon(body: ApplyCouponRequest, db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.apply_coupon(db, me.id, body.code)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


@router.delete("/coupon")
async def remove_coupon(db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals = cart_service.remove_coupon(db, me.id)
    db.commit()
    return {"success": True, "data": cart_to_dict(cart, totals)}


# ==========================================
# Pre-checkout
# ==========================================

@router.post("/validate")
async def validate_cart(db: Session = Depends(get_db), me=Depends(require_customer)):
    cart, totals, problems = cart_service.validate_cart(db, me.id)
    db.commit()
    if problems:
        return JSONResponse(status_code=400, content={
            "success": False,
            "error": "cart_invalid",
            "message": "Cart validation failed.",
            "errors": problems,
        })
    return {"success": True, "data": cart_to_dict(cart, totals)}
