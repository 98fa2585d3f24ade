"""
Catalog Routes - Public
=========================
Restaurant browsing and menus. No authentication required.

Endpoints:
  GET  /api/restaurants                 - Active restaurants (search, filters, paginated)
  GET  /api/restaurants/{id}            - Restaurant detail
  GET  /api/restaurants/{id}/menu       - Available menu items (optional category)
  GET  /api/menu-items/categories       - Fixed list of menu categories
  GET  /api/menu-items/{id}             - Menu item detail
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import settings
from config.database import get_db
from common.helpers import format_money, paginate
from modules.catalog.models import MenuCategory, Restaurant, MenuItem
from modules.catalog.service import catalog_service

router = APIRouter(prefix="/api", tags=["catalog"])


# ==========================================
# Serializers
# ==========================================

def restaurant_to_dict(r: Restaurant) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "cuisine": r.cuisine,
        "address": {
            "street": r.street,
            "city": r.city,
            "state": r.state,
            "zip_code": r.zip_code,
            "country": r.country,
        },
        "phone": r.phone,
        "email": r.email,
        "price_range": r.price_range,
        "delivery_time": r.delivery_time,
        "is_active": r.is_active,
    }


def menu_item_to_dict(m: MenuItem) -> dict:
    return {
        "id": m.id,
        "restaurant_id": m.restaurant_id,
        "name": m.name,
        "description": m.description,
        "price": format_money(m.price),
        "category": m.category,
        "is_available": m.is_available,
        "preparation_time": m.preparation_time,
        "spice_level": m.spice_level,
        "is_vegetarian": m.is_vegetarian,
        "is_vegan": m.is_vegan,
        "is_gluten_free": m.is_gluten_free,
    }


# ==========================================
# Restaurants
# ==========================================

@router.get("/restaurants")
async def list_restaurants(
    search: Optional[str] = Query(None),
    cuisine: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    page, limit, offset = paginate(page, limit, settings.MAX_PAGE_SIZE)
    rows, total = catalog_service.list_restaurants(
        db, search=search, cuisine=cuisine, city=city, offset=offset, limit=limit,
    )
    return {
        "success": True,
        "data": {
            "items": [restaurant_to_dict(r) for r in rows],
            "page": page,
            "limit": limit,
            "total": total,
        },
    }


@router.get("/restaurants/{restaurant_id}")
async def restaurant_detail(restaurant_id: int, db: Session = Depends(get_db)):
    restaurant = catalog_service.get_restaurant(db, restaurant_id)
    return {"success": True, "data": restaurant_to_dict(restaurant)}


@router.get("/restaurants/{restaurant_id}/menu")
async def restaurant_menu(
    restaurant_id: int,
    category: Optional[MenuCategory] = Query(None),
    db: Session = Depends(get_db),
):
    items = catalog_service.get_menu(db, restaurant_id, category=category.value if category else None)
    return {"success": True, "data": [menu_item_to_dict(m) for m in items]}


# ==========================================
# Menu Items
# ==========================================

@router.get("/menu-items/categories")
async def menu_categories():
    return {"success": True, "data": [c.value for c in MenuCategory]}


@router.get("/menu-items/{menu_item_id}")
async def menu_item_detail(menu_item_id: int, db: Session = Depends(get_db)):
    item = catalog_service.get_menu_item(db, menu_item_id)
    return {"success": True, "data": menu_item_to_dict(item)}
