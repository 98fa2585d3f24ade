"""
Admin Module - Models
======================
SystemSetting: Key-value system configuration (pricing knobs tuned by admins).
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from config.database import Base


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    description = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Setting {self.key}={self.value}>"
