"""
QuickBite - Application Entry Point
=====================================
FastAPI app initialization, middleware, and router registration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from config.database import Base, engine
from common.exceptions import QuickBiteError

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("quickbite.app")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.admin.models import SystemSetting  # noqa: F401
from modules.catalog.models import Restaurant, MenuItem  # noqa: F401
from modules.coupon.models import Coupon  # noqa: F401
from modules.cart.models import Cart, CartItem  # noqa: F401
from modules.order.models import Order, OrderItem, OrderStatusLog  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.catalog.routes import router as catalog_router
from modules.catalog.admin_routes import router as catalog_admin_router
from modules.cart.routes import router as cart_router
from modules.order.routes import router as order_router
from modules.order.admin_routes import router as order_admin_router
from modules.coupon.admin_routes import router as coupon_admin_router
from modules.admin.routes import router as admin_settings_router


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info("QuickBite API started")
    yield
    logger.info("QuickBite API stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="QuickBite",
    description="Food ordering API: restaurants, cart, checkout and order tracking",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# Exception handler: business errors → JSON envelope
# ==========================================
@app.exception_handler(QuickBiteError)
async def business_error_handler(request: Request, exc: QuickBiteError):
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        {"success": False, "error": exc.code, "message": exc.message},
        status_code=exc.status_code,
    )


# ==========================================
# Register Routers
# ==========================================
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(order_admin_router)
app.include_router(coupon_admin_router)
app.include_router(admin_settings_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
