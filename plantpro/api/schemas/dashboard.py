from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Literal
from datetime import date, datetime

from plantpro.api.config import settings

SortOrder = Literal["ASC", "DESC"]


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# Filters

class DashboardFilters(CamelModel):
    """Plant-lot analytics filters, sorting and pagination"""
    zone_id: Optional[int] = None
    species: Optional[str] = None
    status: Optional[str] = None
    assigned_to_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.REPORT_MAX_ROWS)
    sort_by: str = "plantedDate"
    sort_order: SortOrder = "DESC"


class ReportGenerationRequest(DashboardFilters):
    """Schema for report generation requests"""
    # Checked by the report service so unknown formats map to 400
    format: str
    title: Optional[str] = Field(None, max_length=200)
    include_health_logs: bool = False
    include_analytics: bool = False


# Summary

class HealthMetrics(CamelModel):
    total_health_logs: int
    average_health_score: int
    disease_detection_rate: float
    recent_issues: int


class ProductionMetrics(CamelModel):
    total_yield: float
    ready_for_harvest: int
    recently_planted: int
    overdue_lots: int


class UserActivity(CamelModel):
    active_field_staff: int
    recent_scans: int
    last_week_activity: int


class SystemHealth(CamelModel):
    ai_analysis_success: float
    pending_analysis: int
    system_errors: int


class DashboardSummary(CamelModel):
    """Point-in-time summary across all entities"""
    total_plant_lots: int
    total_active_zones: int
    total_users: int
    total_species: int
    health_metrics: HealthMetrics
    production_metrics: ProductionMetrics
    user_activity: UserActivity
    system_health: SystemHealth


class QuickStats(CamelModel):
    total_plant_lots: int
    ready_for_harvest: int
    average_health_score: int
    recent_issues: int
    active_field_staff: int
    system_health: int


class SystemAlert(CamelModel):
    type: Literal["error", "warning", "info"]
    title: str
    message: str
    priority: Literal["high", "medium", "low"]
    timestamp: datetime


class SystemAlerts(CamelModel):
    alerts: list[SystemAlert]
    count: int
    last_updated: datetime


# Plant lot analytics

class UserRef(CamelModel):
    id: int
    first_name: str
    last_name: str


class ZoneRef(CamelModel):
    id: int
    name: str


class PlantLotAnalytics(CamelModel):
    """One plant lot enriched with its aggregated health signal"""
    id: int
    lot_number: str
    species: str
    status: str
    planted_date: date
    expected_harvest_date: Optional[date] = None
    current_yield: float = 0
    health_score: Optional[int] = None
    disease_detected: bool = False
    last_health_check: Optional[datetime] = None
    assigned_to: Optional[UserRef] = None
    zone: Optional[ZoneRef] = None


class PlantLotAnalyticsPage(CamelModel):
    """Schema for paginated plant lot analytics"""
    data: list[PlantLotAnalytics]
    total: int
    page: int
    limit: int
    total_pages: int


# Zones

class SpeciesCount(CamelModel):
    name: str
    count: int


class ZoneAnalytics(CamelModel):
    zone_id: int
    zone_name: str
    total_lots: int
    active_lots: int
    total_yield: float
    average_health_score: int
    species: list[SpeciesCount]
    recent_activity: int


# Trends

class DailyProduction(CamelModel):
    date: date
    planted: int
    harvested: int
    yield_: float = Field(0, alias="yield")


class WeeklyProduction(CamelModel):
    week: str
    planted: int
    harvested: int
    yield_: float = Field(0, alias="yield")


class MonthlyProduction(CamelModel):
    month: str
    planted: int
    harvested: int
    yield_: float = Field(0, alias="yield")


class ProductionTrends(CamelModel):
    daily: list[DailyProduction]
    weekly: list[WeeklyProduction]
    monthly: list[MonthlyProduction]


class HealthScorePoint(CamelModel):
    date: date
    average_score: int


class DiseaseIncidencePoint(CamelModel):
    date: date
    count: int
    rate: float


class CommonIssue(CamelModel):
    issue: str
    count: int
    trend: Literal["increasing", "decreasing", "stable"]


class HealthTrends(CamelModel):
    health_score_trend: list[HealthScorePoint]
    disease_incidence: list[DiseaseIncidencePoint]
    common_issues: list[CommonIssue]
