"""
Catalog Module - Admin Routes
================================
Restaurant and menu item management. DELETE is a soft deactivation.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.catalog.models import MenuCategory, SpiceLevel, PriceRange
from modules.catalog.service import catalog_service
from modules.catalog.routes import restaurant_to_dict, menu_item_to_dict

router = APIRouter(prefix="/api/admin", tags=["catalog-admin"])


# ==========================================
# Schemas
# ==========================================

class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    cuisine: str = Field(..., min_length=1, max_length=50)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1, max_length=10)
    country: str = "USA"
    phone: str = Field(..., min_length=1, max_length=20)
    email: str = Field(..., min_length=3, max_length=120)
    price_range: PriceRange = PriceRange.MODERATE
    delivery_time: str = "30-45 mins"
    is_active: bool = True


class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    cuisine: Optional[str] = Field(None, min_length=1, max_length=50)
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, max_length=10)
    country: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=120)
    price_range: Optional[PriceRange] = None
    delivery_time: Optional[str] = None
    is_active: Optional[bool] = None


class MenuItemCreate(BaseModel):
    restaurant_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=300)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: MenuCategory = MenuCategory.OTHER
    is_available: bool = True
    preparation_time: int = Field(15, ge=1)
    spice_level: SpiceLevel = SpiceLevel.NONE
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False


class MenuItemUpdate(BaseModel):
    restaurant_id: Optional[int] = Field(None, gt=0)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=300)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[MenuCategory] = None
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=1)
    spice_level: Optional[SpiceLevel] = None
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None


def _clean(model: BaseModel, partial: bool = False) -> dict:
    """Dump a schema to column values (enums as their plain values)."""
    data = model.model_dump(exclude_unset=partial)
    if partial:
        data = {k: v for k, v in data.items() if v is not None}
    return {k: (v.value if hasattr(v, "value") else v) for k, v in data.items()}


# ==========================================
# Restaurants
# ==========================================

@router.get("/restaurants")
async def admin_list_restaurants(db: Session = Depends(get_db), user=Depends(require_admin)):
    rows, total = catalog_service.list_restaurants(db, include_inactive=True, limit=1000)
    return {"success": True, "data": [restaurant_to_dict(r) for r in rows]}


@router.post("/restaurants", status_code=201)
async def admin_create_restaurant(
    body: RestaurantCreate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    restaurant = catalog_service.create_restaurant(db, _clean(body))
    db.commit()
    db.refresh(restaurant)
    return {"success": True, "data": restaurant_to_dict(restaurant)}


@router.put("/restaurants/{restaurant_id}")
async def admin_update_restaurant(
    restaurant_id: int,
    body: RestaurantUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    restaurant = catalog_service.update_restaurant(db, restaurant_id, _clean(body, partial=True))
    db.commit()
    db.refresh(restaurant)
    return {"success": True, "data": restaurant_to_dict(restaurant)}


@router.delete("/restaurants/{restaurant_id}")
async def admin_deactivate_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    restaurant = catalog_service.deactivate_restaurant(db, restaurant_id)
    db.commit()
    db.refresh(restaurant)
    return {"success": True, "data": restaurant_to_dict(restaurant)}


# ==========================================
# Menu Items
# ==========================================

@router.post("/menu-items", status_code=201)
async def admin_create_menu_item(
    body: MenuItemCreate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    item = catalog_service.create_menu_item(db, _clean(body))
    db.commit()
    db.refresh(item)
    return {"success": True, "data": menu_item_to_dict(item)}


@router.put("/menu-items/{menu_item_id}")
async def admin_update_menu_item(
    menu_item_id: int,
    body: MenuItemUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    item = catalog_service.update_menu_item(db, menu_item_id, _clean(body, partial=True))
    db.commit()
    db.refresh(item)
    return {"success": True, "data": menu_item_to_dict(item)}


@router.delete("/menu-items/{menu_item_id}")
async def admin_deactivate_menu_item(
    menu_item_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    item = catalog_service.deactivate_menu_item(db, menu_item_id)
    db.commit()
    db.refresh(item)
    return {"success": True, "data": menu_item_to_dict(item)}
