"""
Order Module - Admin Routes
==============================
Order management for admin: list, detail, stats, status updates.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import settings
from config.database import get_db
from common.helpers import format_money, paginate
from modules.auth.deps import require_admin
from modules.order.lifecycle import OrderStatus
from modules.order.routes import order_summary, order_to_dict
from modules.order.service import order_service

router = APIRouter(prefix="/api/admin/orders", tags=["order-admin"])


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=200)


@router.get("")
async def admin_orders(
    status: Optional[OrderStatus] = Query(None),
    restaurant_id: Optional[int] = Query(None),
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    page, limit, offset = paginate(page, limit, settings.MAX_PAGE_SIZE)
    orders, total = order_service.get_all_orders(
        db,
        status=status.value if status else None,
        restaurant_id=restaurant_id,
        offset=offset,
        limit=limit,
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


@router.get("/stats")
async def admin_order_stats(db: Session = Depends(get_db), user=Depends(require_admin)):
    stats = order_service.get_stats(db)
    stats["total_revenue"] = format_money(stats["total_revenue"])
    stats["average_order_value"] = format_money(stats["average_order_value"])
    return {"success": True, "data": stats}


@router.get("/{order_id}")
async def admin_order_detail(order_id: int, db: Session = Depends(get_db), user=Depends(require_admin)):
    order = order_service.get_order(db, order_id)
    return {"success": True, "data": order_to_dict(order)}


@router.put("/{order_id}/status")
async def admin_update_status(
    order_id: int,
    body: StatusUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    """Advance one stage, or cancel when the target is `cancelled`."""
    order = order_service.advance_status(db, order_id, body.status, body.note)
    db.commit()
    db.refresh(order)
    return {"success": True, "data": order_to_dict(order)}
