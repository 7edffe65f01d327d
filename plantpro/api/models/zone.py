from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime
from sqlalchemy.sql import func

from plantpro.api.core.database import Base, JSONType


class Zone(Base):
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    area_hectares = Column(Numeric(10, 2), nullable=False)
    coordinates = Column(JSONType)
    soil_data = Column(JSONType)
    # Zones are deactivated, never removed
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Zone {self.name}>"
