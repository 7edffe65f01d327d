from sqlalchemy import Column, String, Integer, Numeric, Date, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from plantpro.api.core.database import Base, JSONType
from plantpro.api.models.enums import PlantStatus


class PlantLot(Base):
    __tablename__ = "plant_lots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lot_number = Column(String(50), unique=True, nullable=False)
    qr_code = Column(String(255), unique=True, nullable=False)
    plant_count = Column(Integer, nullable=False)
    planted_date = Column(Date, nullable=False, index=True)
    expected_harvest_date = Column(Date)
    actual_harvest_date = Column(Date)
    status = Column(String(20), nullable=False, default=PlantStatus.SEEDLING.value, index=True)
    current_yield = Column(Numeric(10, 2))
    location = Column(JSONType)
    notes = Column(Text)
    last_scanned_at = Column(DateTime(timezone=True), index=True)
    species_id = Column(Integer, ForeignKey("plant_species.id", ondelete="RESTRICT"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="RESTRICT"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<PlantLot {self.lot_number}>"
