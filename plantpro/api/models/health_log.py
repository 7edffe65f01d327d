from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from plantpro.api.core.database import Base, JSONType
from plantpro.api.models.enums import AnalysisStatus


class HealthLog(Base):
    __tablename__ = "health_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plant_lot_id = Column(Integer, ForeignKey("plant_lots.id", ondelete="CASCADE"), nullable=False, index=True)
    recorded_by_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    health_status = Column(String(20), nullable=False)
    notes = Column(Text)
    images = Column(JSONType)
    metrics = Column(JSONType)
    analysis_status = Column(String(20), nullable=False, default=AnalysisStatus.PENDING.value, index=True)
    # healthScore (0-100), diseaseDetected, diseaseType, confidence,
    # recommendations, detectedIssues[{type, severity, confidence}]
    ai_analysis = Column(JSONType)
    ai_raw_response = Column(Text)
    latitude = Column(Numeric(10, 6))
    longitude = Column(Numeric(10, 6))
    recorded_at = Column(DateTime(timezone=True), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<HealthLog {self.id} - {self.health_status}>"
