from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Optional
from datetime import date

from plantpro.api.config import settings
from plantpro.api.core.database import get_session_factory
from plantpro.api.core.security import CurrentUser, require_roles
from plantpro.api.models.enums import UserRole
from plantpro.api.schemas.dashboard import (
    DashboardFilters,
    DashboardSummary,
    HealthTrends,
    PlantLotAnalyticsPage,
    ProductionTrends,
    QuickStats,
    ReportGenerationRequest,
    SortOrder,
    SystemAlerts,
    ZoneAnalytics,
)
from plantpro.api.services.dashboard import DashboardService
from plantpro.api.services.report import REPORT_FORMATS, ReportService

router = APIRouter()

# Role gates
all_roles = require_roles(UserRole.MANAGER, UserRole.ANALYTICS, UserRole.FIELD_STAFF)
analysts = require_roles(UserRole.MANAGER, UserRole.ANALYTICS)


def get_dashboard_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)
) -> DashboardService:
    return DashboardService(session_factory)


def get_report_service(
    dashboard: DashboardService = Depends(get_dashboard_service)
) -> ReportService:
    return ReportService(dashboard)


def trend_days(
    days: int = Query(
        settings.DEFAULT_TREND_DAYS,
        ge=1,
        le=settings.MAX_TREND_DAYS,
        description="Size of the trailing window in days"
    )
) -> int:
    return days


@router.get("/summary", response_model=DashboardSummary)
async def get_dashboard_summary(
    user: CurrentUser = Depends(all_roles),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Point-in-time summary of the plantation.

    Counts of lots, zones, users and species together with health,
    production, team activity and analysis pipeline metrics.
    """
    return await service.get_dashboard_summary()


@router.get("/plant-lots", response_model=PlantLotAnalyticsPage)
async def get_plant_lot_analytics(
    zone_id: Optional[int] = Query(None, alias="zoneId", description="Filter by zone ID"),
    species: Optional[str] = Query(None, description="Case-sensitive substring of the species name"),
    status: Optional[str] = Query(None, description="Filter by plant status"),
    assigned_to_id: Optional[int] = Query(None, alias="assignedToId", description="Filter by assignee ID"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Planted on or after this date"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Planted on or before this date"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Number of items per page"
    ),
    sort_by: str = Query("plantedDate", alias="sortBy", description="Plant lot field or healthScore"),
    sort_order: SortOrder = Query("DESC", alias="sortOrder"),
    user: CurrentUser = Depends(all_roles),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Plant lots with their aggregated health signal.

    - **healthScore**: rounded mean of the lot's signal scores, null without signals
    - **diseaseDetected**: true when any signal for the lot reported disease
    - **lastHealthCheck**: most recent health log time
    """
    filters = DashboardFilters(
        zone_id=zone_id,
        species=species,
        status=status,
        assigned_to_id=assigned_to_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order
    )
    return await service.get_plant_lot_analytics(filters)


@router.get("/zones", response_model=list[ZoneAnalytics])
async def get_zone_analytics(
    user: CurrentUser = Depends(all_roles),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Analytics for every active zone"""
    return await service.get_zone_analytics()


@router.get("/production-trends", response_model=ProductionTrends)
async def get_production_trends(
    days: int = Depends(trend_days),
    user: CurrentUser = Depends(analysts),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Lots planted and harvested per day, ISO week and month"""
    return await service.get_production_trends(days)


@router.get("/health-trends", response_model=HealthTrends)
async def get_health_trends(
    days: int = Depends(trend_days),
    user: CurrentUser = Depends(analysts),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Daily health score, disease incidence and most common issues"""
    return await service.get_health_trends(days)


@router.get("/quick-stats", response_model=QuickStats)
async def get_quick_stats(
    user: CurrentUser = Depends(all_roles),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.get_quick_stats()


@router.get("/alerts", response_model=SystemAlerts)
async def get_system_alerts(
    user: CurrentUser = Depends(analysts),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Operator alerts derived from the current summary"""
    return await service.get_system_alerts()


@router.post(
    "/reports/generate",
    response_class=Response,
    responses={
        200: {
            "description": "Report file as an attachment",
            "content": {fmt.media_type: {} for fmt in REPORT_FORMATS.values()},
        },
        400: {"description": "Unsupported report format or sort field"},
    }
)
async def generate_report(
    request: ReportGenerationRequest,
    user: CurrentUser = Depends(analysts),
    service: ReportService = Depends(get_report_service)
):
    """
    Generate a downloadable report.

    - **format**: excel, csv, json or pdf (printable HTML)
    - **includeHealthLogs**: add health trends to excel and json reports
    - **includeAnalytics**: add production trends to excel and json reports
    """
    return await service.generate_report(request)
