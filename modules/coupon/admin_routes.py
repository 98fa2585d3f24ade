"""
Coupon Admin Routes
=====================
List, create, update and deactivate coupons.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import as_utc, format_money
from modules.auth.deps import require_admin
from modules.cart.engine import DiscountType
from modules.coupon.models import Coupon
from modules.coupon.service import coupon_service

router = APIRouter(prefix="/api/admin/coupons", tags=["coupon-admin"])


# ==========================================
# Schemas
# ==========================================

class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20)
    description: Optional[str] = Field(None, max_length=200)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    max_discount_amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_order_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    expires_at: Optional[datetime] = None
    is_active: bool = True


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=20)
    description: Optional[str] = Field(None, max_length=200)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    max_discount_amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_order_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None


def coupon_to_dict(c: Coupon) -> dict:
    expires_at = as_utc(c.expires_at)
    return {
        "id": c.id,
        "code": c.code,
        "description": c.description,
        "discount_type": c.discount_type,
        "discount_value": format_money(c.discount_value),
        "discount_display": c.discount_display,
        "max_discount_amount": format_money(c.max_discount_amount),
        "min_order_amount": format_money(c.min_order_amount),
        "expires_at": expires_at.isoformat() if expires_at else None,
        "is_active": c.is_active,
    }


def _values(body: BaseModel, partial: bool = False) -> dict:
    data = body.model_dump(exclude_unset=partial)
    if "discount_type" in data and data["discount_type"] is not None:
        data["discount_type"] = DiscountType(data["discount_type"]).value
    return data


# ==========================================
# Endpoints
# ==========================================

@router.get("")
async def admin_list_coupons(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    coupons = coupon_service.list_coupons(db, active_only=active_only)
    return {"success": True, "data": [coupon_to_dict(c) for c in coupons]}


@router.get("/{coupon_id}")
async def admin_coupon_detail(coupon_id: int, db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "data": coupon_to_dict(coupon_service.get_coupon(db, coupon_id))}


@router.post("", status_code=201)
async def admin_create_coupon(body: CouponCreate, db: Session = Depends(get_db), user=Depends(require_admin)):
    coupon = coupon_service.create_coupon(db, _values(body))
    db.commit()
    db.refresh(coupon)
    return {"success": True, "data": coupon_to_dict(coupon)}


@router.put("/{coupon_id}")
async def admin_update_coupon(
    coupon_id: int,
    body: CouponUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    coupon = coupon_service.update_coupon(db, coupon_id, _values(body, partial=True))
    db.commit()
    db.refresh(coupon)
    return {"success": True, "data": coupon_to_dict(coupon)}


@router.delete("/{coupon_id}")
async def admin_deactivate_coupon(coupon_id: int, db: Session = Depends(get_db), user=Depends(require_admin)):
    coupon = coupon_service.deactivate_coupon(db, coupon_id)
    db.commit()
    db.refresh(coupon)
    return {"success": True, "data": coupon_to_dict(coupon)}
