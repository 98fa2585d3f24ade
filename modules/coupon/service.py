"""
Coupon Service
================
Coupon store lookup for the cart engine, plus admin management.
Validation rules themselves live in the cart engine (apply_coupon).
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from common.exceptions import DuplicateError, NotFoundError, QuickBiteError
from common.helpers import to_money
from modules.coupon.models import Coupon
from modules.cart.engine import (
    CouponInfo, DiscountType, normalize_coupon_code,
    COUPON_CODE_MIN_LENGTH, COUPON_CODE_MAX_LENGTH,
)

logger = logging.getLogger("quickbite.coupon")


class CouponService:

    # ------------------------------------------
    # Lookup (used by the cart engine)
    # ------------------------------------------

    def lookup(self, db: Session, code: str) -> Optional[CouponInfo]:
        coupon = db.query(Coupon).filter(Coupon.code == normalize_coupon_code(code)).first()
        if not coupon:
            return None
        return CouponInfo(
            code=coupon.code,
            discount_type=DiscountType(coupon.discount_type),
            discount_value=Decimal(coupon.discount_value),
            expires_at=coupon.expires_at,
            is_active=bool(coupon.is_active),
            max_discount=to_money(coupon.max_discount_amount) if coupon.max_discount_amount is not None else None,
            min_order_amount=to_money(coupon.min_order_amount or 0),
        )

    # ------------------------------------------
    # Admin
    # ------------------------------------------

    def list_coupons(self, db: Session, active_only: bool = False) -> List[Coupon]:
        q = db.query(Coupon).order_by(desc(Coupon.id))
        if active_only:
            q = q.filter(Coupon.is_active == True)
        return q.all()

    def get_coupon(self, db: Session, coupon_id: int) -> Coupon:
        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise NotFoundError("Coupon not found.")
        return coupon

    def create_coupon(self, db: Session, data: Dict[str, Any]) -> Coupon:
        data = dict(data)
        data["code"] = self._clean_code(data["code"])
        if db.query(Coupon.id).filter(Coupon.code == data["code"]).first():
            raise DuplicateError(f"Coupon code {data['code']} already exists.")
        self._check_terms(data)

        coupon = Coupon(**data)
        db.add(coupon)
        db.flush()
        logger.info("Coupon %s created (%s %s)", coupon.code, coupon.discount_type, coupon.discount_value)
        return coupon

    def update_coupon(self, db: Session, coupon_id: int, data: Dict[str, Any]) -> Coupon:
        coupon = self.get_coupon(db, coupon_id)
        data = dict(data)
        if "code" in data:
            data["code"] = self._clean_code(data["code"])
            clash = db.query(Coupon.id).filter(Coupon.code == data["code"], Coupon.id != coupon.id).first()
            if clash:
                raise DuplicateError(f"Coupon code {data['code']} already exists.")

        merged = {
            "discount_type": data.get("discount_type", coupon.discount_type),
            "discount_value": data.get("discount_value", coupon.discount_value),
        }
        self._check_terms(merged)

        for key, value in data.items():
            setattr(coupon, key, value)
        db.flush()
        logger.info("Coupon %s updated: %s", coupon.code, ", ".join(sorted(data)))
        return coupon

    def deactivate_coupon(self, db: Session, coupon_id: int) -> Coupon:
        coupon = self.get_coupon(db, coupon_id)
        coupon.is_active = False
        db.flush()
        logger.info("Coupon %s deactivated", coupon.code)
        return coupon

    # ------------------------------------------
    # Private helpers
    # ------------------------------------------

    def _clean_code(self, code: str) -> str:
        code = normalize_coupon_code(code)
        if not (COUPON_CODE_MIN_LENGTH <= len(code) <= COUPON_CODE_MAX_LENGTH):
            raise QuickBiteError(
                f"Coupon code must be {COUPON_CODE_MIN_LENGTH}-{COUPON_CODE_MAX_LENGTH} characters."
            )
        return code

    def _check_terms(self, data: Dict[str, Any]):
        value = Decimal(str(data["discount_value"]))
        if value <= 0:
            raise QuickBiteError("Discount value must be positive.")
        if DiscountType(data["discount_type"]) == DiscountType.PERCENTAGE and value > 100:
            raise QuickBiteError("Percentage discount cannot exceed 100.")


# Singleton
coupon_service = CouponService()
