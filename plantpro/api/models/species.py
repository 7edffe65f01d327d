from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime
from sqlalchemy.sql import func

from plantpro.api.core.database import Base, JSONType


class PlantSpecies(Base):
    __tablename__ = "plant_species"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    scientific_name = Column(String(200), nullable=False)
    description = Column(Text)
    growth_period_days = Column(Integer, nullable=False)
    harvest_period_days = Column(Integer, nullable=False)
    expected_yield_per_plant = Column(Numeric(5, 2), nullable=False)
    yield_unit = Column(String(20), nullable=False)
    optimal_conditions = Column(JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<PlantSpecies {self.name}>"
