"""
Admin Module - Settings Service
=================================
Key-value system settings. Pricing knobs stored here override the .env defaults.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict

from sqlalchemy.orm import Session

from config import settings
from common.exceptions import QuickBiteError
from modules.admin.models import SystemSetting
from modules.cart.engine import PricingPolicy

logger = logging.getLogger("quickbite.admin")


# key -> (env default, description)
PRICING_SETTINGS = {
    "tax_rate": (settings.TAX_RATE, "Sales tax rate applied to the subtotal (0.08 = 8%)"),
    "delivery_fee": (settings.DELIVERY_FEE, "Flat delivery fee in dollars"),
    "free_delivery_threshold": (settings.FREE_DELIVERY_THRESHOLD, "Subtotal above which delivery is free"),
    "minimum_order_amount": (settings.MINIMUM_ORDER_AMOUNT, "Minimum grand total accepted at checkout"),
}


class SettingsService:

    def get_setting(self, db: Session, key: str, default: str = "") -> str:
        setting = db.query(SystemSetting).filter(SystemSetting.key == key).first()
        return setting.value if setting else default

    def get_decimal(self, db: Session, key: str, default: Decimal) -> Decimal:
        """Fetch a setting and parse it as Decimal, falling back to `default` on bad data."""
        raw = self.get_setting(db, key, str(default))
        try:
            return Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            logger.warning("Ignoring malformed setting %s=%r", key, raw)
            return default

    def pricing_settings(self, db: Session) -> Dict[str, Decimal]:
        return {key: self.get_decimal(db, key, default) for key, (default, _) in PRICING_SETTINGS.items()}

    def pricing_policy(self, db: Session) -> PricingPolicy:
        values = self.pricing_settings(db)
        return PricingPolicy(
            tax_rate=values["tax_rate"],
            delivery_fee=values["delivery_fee"],
            free_delivery_threshold=values["free_delivery_threshold"],
        )

    def minimum_order_amount(self, db: Session) -> Decimal:
        default = PRICING_SETTINGS["minimum_order_amount"][0]
        return self.get_decimal(db, "minimum_order_amount", default)

    def update_pricing(self, db: Session, updates: Dict[str, Decimal]) -> Dict[str, Decimal]:
        for key, value in updates.items():
            if key not in PRICING_SETTINGS:
                raise QuickBiteError(f"Unknown setting: {key}")
            if value < 0:
                raise QuickBiteError(f"{key} cannot be negative.")
            if key == "tax_rate" and value > 1:
                raise QuickBiteError("tax_rate is a fraction between 0 and 1 (0.08 = 8%).")

            setting = db.query(SystemSetting).filter(SystemSetting.key == key).first()
            if setting:
                setting.value = str(value)
            else:
                db.add(SystemSetting(key=key, value=str(value), description=PRICING_SETTINGS[key][1]))
            logger.info("Setting %s updated to %s", key, value)

        db.flush()
        return self.pricing_settings(db)


# Singleton
settings_service = SettingsService()
