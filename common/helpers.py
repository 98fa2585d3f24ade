"""
QuickBite - Shared Helpers
===========================
Pure utility functions with NO database or module dependencies.
"""

import secrets
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_money(value) -> Decimal:
    """Coerce to Decimal and round to cents (half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> Optional[str]:
    """Serialize a money value as a two-place decimal string ("24.60")."""
    if value is None:
        return None
    return str(to_money(value))


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def paginate(page: int, limit: int, max_limit: int) -> tuple:
    """Clamp page/limit query params. Returns (page, limit, offset)."""
    page = max(page or 1, 1)
    limit = min(max(limit or 1, 1), max_limit)
    return page, limit, (page - 1) * limit


# ==========================================
# Order Number Generator
# ==========================================

_ORDER_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"  # no O/0/I/1/L


def generate_order_number(created_at: Optional[datetime] = None) -> str:
    """Human-readable order number, e.g. ORD-241017-7KQ2MX."""
    stamp = (created_at or now_utc()).strftime("%y%m%d")
    suffix = "".join(secrets.choice(_ORDER_ALPHABET) for _ in range(6))
    return f"ORD-{stamp}-{suffix}"
