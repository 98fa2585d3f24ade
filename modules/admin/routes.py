"""
Admin Settings Routes
=======================
Read and update the pricing settings (tax rate, delivery fee,
free-delivery threshold, minimum order amount).
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.admin.service import settings_service

router = APIRouter(prefix="/api/admin/settings", tags=["admin-settings"])


class PricingSettingsUpdate(BaseModel):
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    free_delivery_threshold: Optional[Decimal] = Field(None, ge=0)
    minimum_order_amount: Optional[Decimal] = Field(None, ge=0)


def _serialize(values: dict) -> dict:
    return {key: str(value) for key, value in values.items()}


@router.get("")
async def get_settings(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "data": _serialize(settings_service.pricing_settings(db))}


@router.put("")
async def update_settings(
    body: PricingSettingsUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    updates = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    values = settings_service.update_pricing(db, updates)
    db.commit()
    return {"success": True, "data": _serialize(values)}
