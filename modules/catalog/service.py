"""
Catalog Module - Service Layer
================================
Restaurant and menu queries, admin CRUD, and the menu lookup the cart engine uses.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError
from common.helpers import to_money
from modules.catalog.models import Restaurant, MenuItem
from modules.cart.engine import MenuItemInfo

logger = logging.getLogger("quickbite.catalog")


class CatalogService:

    # ==========================================
    # Restaurants
    # ==========================================

    def list_restaurants(
        self,
        db: Session,
        search: Optional[str] = None,
        cuisine: Optional[str] = None,
        city: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
        include_inactive: bool = False,
    ) -> Tuple[List[Restaurant], int]:
        q = db.query(Restaurant)
        if not include_inactive:
            q = q.filter(Restaurant.is_active == True)
        if search:
            like = f"%{search.strip()}%"
            q = q.filter(or_(Restaurant.name.ilike(like), Restaurant.cuisine.ilike(like)))
        if cuisine:
            q = q.filter(Restaurant.cuisine.ilike(cuisine.strip()))
        if city:
            q = q.filter(Restaurant.city.ilike(f"%{city.strip()}%"))

        total = q.count()
        rows = q.order_by(Restaurant.name, Restaurant.id).offset(offset).limit(limit).all()
        return rows, total

    def get_restaurant(self, db: Session, restaurant_id: int, include_inactive: bool = False) -> Restaurant:
        q = db.query(Restaurant).filter(Restaurant.id == restaurant_id)
        if not include_inactive:
            q = q.filter(Restaurant.is_active == True)
        restaurant = q.first()
        if not restaurant:
            raise NotFoundError("Restaurant not found.")
        return restaurant

    def create_restaurant(self, db: Session, data: Dict[str, Any]) -> Restaurant:
        restaurant = Restaurant(**data)
        db.add(restaurant)
        db.flush()
        logger.info("Restaurant #%s created: %s", restaurant.id, restaurant.name)
        return restaurant

    def update_restaurant(self, db: Session, restaurant_id: int, data: Dict[str, Any]) -> Restaurant:
        restaurant = self.get_restaurant(db, restaurant_id, include_inactive=True)
        for key, value in data.items():
            setattr(restaurant, key, value)
        db.flush()
        logger.info("Restaurant #%s updated: %s", restaurant.id, ", ".join(sorted(data)))
        return restaurant

    def deactivate_restaurant(self, db: Session, restaurant_id: int) -> Restaurant:
        """Soft delete: past orders keep pointing at the row."""
        restaurant = self.get_restaurant(db, restaurant_id, include_inactive=True)
        restaurant.is_active = False
        db.flush()
        logger.info("Restaurant #%s deactivated", restaurant.id)
        return restaurant

    # ==========================================
    # Menu Items
    # ==========================================

    def get_menu(
        self,
        db: Session,
        restaurant_id: int,
        category: Optional[str] = None,
        include_unavailable: bool = False,
    ) -> List[MenuItem]:
        self.get_restaurant(db, restaurant_id)
        q = db.query(MenuItem).filter(MenuItem.restaurant_id == restaurant_id)
        if not include_unavailable:
            q = q.filter(MenuItem.is_available == True)
        if category:
            q = q.filter(MenuItem.category == category)
        return q.order_by(MenuItem.category, MenuItem.name).all()

    def get_menu_item(self, db: Session, menu_item_id: int) -> MenuItem:
        item = (
            db.query(MenuItem)
            .options(joinedload(MenuItem.restaurant))
            .filter(MenuItem.id == menu_item_id)
            .first()
        )
        if not item:
            raise NotFoundError("Menu item not found.")
        return item

    def create_menu_item(self, db: Session, data: Dict[str, Any]) -> MenuItem:
        self.get_restaurant(db, data["restaurant_id"], include_inactive=True)
        item = MenuItem(**data)
        db.add(item)
        db.flush()
        logger.info("Menu item #%s created for restaurant #%s: %s", item.id, item.restaurant_id, item.name)
        return item

    def update_menu_item(self, db: Session, menu_item_id: int, data: Dict[str, Any]) -> MenuItem:
        item = self.get_menu_item(db, menu_item_id)
        if "restaurant_id" in data:
            self.get_restaurant(db, data["restaurant_id"], include_inactive=True)
        for key, value in data.items():
            setattr(item, key, value)
        db.flush()
        logger.info("Menu item #%s updated: %s", item.id, ", ".join(sorted(data)))
        return item

    def deactivate_menu_item(self, db: Session, menu_item_id: int) -> MenuItem:
        item = self.get_menu_item(db, menu_item_id)
        item.is_available = False
        db.flush()
        logger.info("Menu item #%s marked unavailable", item.id)
        return item

    # ==========================================
    # Engine lookup
    # ==========================================

    def menu_item_info(self, db: Session, menu_item_id: int) -> Optional[MenuItemInfo]:
        """Menu lookup for the cart engine. Returns None when the item does not exist."""
        item = (
            db.query(MenuItem)
            .options(joinedload(MenuItem.restaurant))
            .filter(MenuItem.id == menu_item_id)
            .first()
        )
        if not item:
            return None
        return MenuItemInfo(
            id=item.id,
            name=item.name,
            price=to_money(item.price),
            is_available=item.is_orderable,
            restaurant_id=item.restaurant_id,
        )


# Singleton
catalog_service = CatalogService()
