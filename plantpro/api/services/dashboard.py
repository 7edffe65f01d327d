"""
Dashboard analytics service

Runs the aggregation and analytics queries against the relational store and
hands their results to the pure functions in ``plantpro.analytics``.
Independent queries are issued concurrently, each on its own session, and
joined before any result is combined.
"""

import asyncio
from datetime import timedelta
from typing import Any

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plantpro.analytics import metrics, trends
from plantpro.analytics.query_builder import (
    build_plant_lot_analytics_query,
    disease_flag_expr,
    health_score_expr,
    row_to_analytics,
)
from plantpro.api.models import (
    AnalysisStatus,
    HealthLog,
    PlantLot,
    PlantSpecies,
    PlantStatus,
    User,
    UserRole,
    Zone,
)
from plantpro.api.models.enums import INACTIVE_PLANT_STATUSES
from plantpro.api.schemas.dashboard import (
    DashboardFilters,
    DashboardSummary,
    HealthTrends,
    PlantLotAnalyticsPage,
    ProductionTrends,
    QuickStats,
    SystemAlerts,
    ZoneAnalytics,
)
from plantpro.utils.logger import get_logger
from plantpro.utils.time import days_ago, ensure_utc, utcnow

logger = get_logger(__name__)


async def settle(*aws):
    """
    Run awaitables concurrently and wait for every one of them to finish

    The first failure is re-raised only after all queries have settled, so
    no session is left running behind a failed request.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class DashboardService:
    """Aggregation engine and analytics query execution"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # Query helpers -------------------------------------------------------

    async def _scalar(self, statement: Select) -> Any:
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return result.scalar()

    async def _count(self, statement: Select) -> int:
        return int(await self._scalar(statement) or 0)

    async def _rows(self, statement: Select) -> list:
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return list(result.all())

    # Summary -------------------------------------------------------------

    async def get_dashboard_summary(self) -> DashboardSummary:
        """Point-in-time summary across lots, zones, users and health logs"""
        try:
            summary = await self._build_summary()
            return DashboardSummary.model_validate(summary)
        except Exception as e:
            logger.error(f"Failed to get dashboard summary: {e}")
            raise

    async def _build_summary(self) -> dict:
        now = utcnow()
        today = now.date()
        week_ago = days_ago(7, now=now)
        payload_present = HealthLog.ai_analysis.is_not(None)

        (
            total_plant_lots,
            total_active_users,
            total_active_zones,
            total_health_logs,
            logs_last_week,
            harvesting_lots,
            recently_planted,
            total_species,
            payload_row,
            total_yield,
            overdue_lots,
            active_field_staff,
            recent_scans,
            analysis_rows,
        ) = await settle(
            self._count(select(func.count(PlantLot.id))),
            self._count(select(func.count(User.id)).where(User.is_active.is_(True))),
            self._count(select(func.count(Zone.id)).where(Zone.is_active.is_(True))),
            self._count(select(func.count(HealthLog.id))),
            self._count(
                select(func.count(HealthLog.id)).where(
                    HealthLog.recorded_at >= week_ago,
                    HealthLog.recorded_at <= now
                )
            ),
            self._count(
                select(func.count(PlantLot.id)).where(PlantLot.status == PlantStatus.HARVESTING.value)
            ),
            self._count(
                select(func.count(PlantLot.id)).where(
                    PlantLot.planted_date >= today - timedelta(days=30),
                    PlantLot.planted_date <= today
                )
            ),
            self._count(select(func.count(distinct(PlantLot.species_id)))),
            self._rows(
                select(
                    func.count(HealthLog.id),
                    func.coalesce(func.sum(disease_flag_expr), 0),
                    func.avg(health_score_expr),
                ).where(payload_present)
            ),
            self._scalar(select(func.coalesce(func.sum(PlantLot.current_yield), 0))),
            # Expected harvest strictly in the past while still growing
            self._count(
                select(func.count(PlantLot.id)).where(
                    PlantLot.expected_harvest_date < today,
                    PlantLot.status == PlantStatus.GROWING.value
                )
            ),
            self._count(
                select(func.count(User.id)).where(
                    User.role == UserRole.FIELD_STAFF.value,
                    User.is_active.is_(True)
                )
            ),
            self._count(
                select(func.count(PlantLot.id)).where(
                    PlantLot.last_scanned_at >= days_ago(1, now=now),
                    PlantLot.last_scanned_at <= now
                )
            ),
            self._rows(
                select(HealthLog.analysis_status, func.count(HealthLog.id))
                .group_by(HealthLog.analysis_status)
            ),
        )

        logs_with_payload, diseased_payloads, average_payload_score = payload_row[0]
        analysis_counts = {status: int(count) for status, count in analysis_rows}

        inputs = metrics.SummaryInputs(
            total_plant_lots=total_plant_lots,
            total_active_zones=total_active_zones,
            total_active_users=total_active_users,
            total_species=total_species,
            total_health_logs=total_health_logs,
            logs_last_week=logs_last_week,
            logs_with_payload=int(logs_with_payload or 0),
            diseased_payloads=int(diseased_payloads or 0),
            average_payload_score=float(average_payload_score) if average_payload_score is not None else None,
            total_yield=float(total_yield or 0),
            harvesting_lots=harvesting_lots,
            recently_planted=recently_planted,
            overdue_lots=overdue_lots,
            active_field_staff=active_field_staff,
            recent_scans=recent_scans,
            completed_analyses=analysis_counts.get(AnalysisStatus.COMPLETED.value, 0),
            failed_analyses=analysis_counts.get(AnalysisStatus.FAILED.value, 0),
            pending_analyses=analysis_counts.get(AnalysisStatus.PENDING.value, 0),
        )
        return metrics.build_summary(inputs)

    async def get_quick_stats(self) -> QuickStats:
        summary = (await self.get_dashboard_summary()).model_dump()
        return QuickStats.model_validate(metrics.quick_stats(summary))

    async def get_system_alerts(self) -> SystemAlerts:
        now = utcnow()
        summary = (await self.get_dashboard_summary()).model_dump()
        alerts = metrics.build_alerts(summary, now)
        return SystemAlerts.model_validate({
            "alerts": alerts,
            "count": len(alerts),
            "last_updated": now,
        })

    # Plant lot analytics -------------------------------------------------

    async def get_plant_lot_analytics(self, filters: DashboardFilters) -> PlantLotAnalyticsPage:
        """
        Filtered, sorted, paginated plant lots with their health signal

        The count and the page come from statements sharing one predicate
        list, so ``total`` never diverges from the rows.
        """
        try:
            statements = build_plant_lot_analytics_query(filters)
            total, rows = await settle(
                self._count(statements.count),
                self._rows(statements.rows),
            )

            data = []
            for row in rows:
                item = row_to_analytics(row)
                item["last_health_check"] = ensure_utc(item["last_health_check"])
                data.append(item)

            return PlantLotAnalyticsPage.model_validate({
                "data": data,
                "total": total,
                "page": filters.page,
                "limit": filters.limit,
                "total_pages": metrics.total_pages(total, filters.limit),
            })
        except Exception as e:
            logger.error(f"Failed to get plant lot analytics: {e}")
            raise

    # Zones ---------------------------------------------------------------

    async def get_zone_analytics(self) -> list[ZoneAnalytics]:
        """Per active zone: lot counts, yield, health, species mix, activity"""
        try:
            week_ago = days_ago(7)
            active_zone = Zone.is_active.is_(True)
            inactive_statuses = [status.value for status in INACTIVE_PLANT_STATUSES]

            lot_stats, health_stats, species_rows, activity_rows = await settle(
                self._rows(
                    select(
                        Zone.id,
                        Zone.name,
                        func.count(PlantLot.id),
                        func.count(PlantLot.id).filter(PlantLot.status.not_in(inactive_statuses)),
                        func.coalesce(func.sum(PlantLot.current_yield), 0),
                    )
                    .select_from(Zone)
                    .outerjoin(PlantLot, PlantLot.zone_id == Zone.id)
                    .where(active_zone)
                    .group_by(Zone.id, Zone.name)
                    .order_by(Zone.name)
                ),
                self._rows(
                    select(PlantLot.zone_id, func.avg(health_score_expr))
                    .join(HealthLog, HealthLog.plant_lot_id == PlantLot.id)
                    .group_by(PlantLot.zone_id)
                ),
                self._rows(
                    select(PlantLot.zone_id, PlantSpecies.name, func.count(PlantLot.id))
                    .join(PlantSpecies, PlantLot.species_id == PlantSpecies.id)
                    .group_by(PlantLot.zone_id, PlantSpecies.name)
                    .order_by(PlantLot.zone_id, PlantSpecies.name)
                ),
                self._rows(
                    select(PlantLot.zone_id, func.count(HealthLog.id))
                    .join(HealthLog, HealthLog.plant_lot_id == PlantLot.id)
                    .where(HealthLog.recorded_at >= week_ago)
                    .group_by(PlantLot.zone_id)
                ),
            )

            zones = metrics.assemble_zone_analytics(lot_stats, health_stats, species_rows, activity_rows)
            return [ZoneAnalytics.model_validate(zone) for zone in zones]
        except Exception as e:
            logger.error(f"Failed to get zone analytics: {e}")
            raise

    # Trends --------------------------------------------------------------

    async def get_production_trends(self, days: int = 30) -> ProductionTrends:
        """Lots planted and harvested per day over the last ``days`` days"""
        try:
            start = days_ago(days).date()

            planted_rows, harvested_rows = await settle(
                self._rows(
                    select(PlantLot.planted_date, func.count(PlantLot.id))
                    .where(PlantLot.planted_date >= start)
                    .group_by(PlantLot.planted_date)
                ),
                self._rows(
                    select(
                        PlantLot.actual_harvest_date,
                        func.count(PlantLot.id),
                        func.coalesce(func.sum(PlantLot.current_yield), 0),
                    )
                    .where(PlantLot.actual_harvest_date >= start)
                    .group_by(PlantLot.actual_harvest_date)
                ),
            )

            return ProductionTrends.model_validate(
                trends.build_production_trends(planted_rows, harvested_rows)
            )
        except Exception as e:
            logger.error(f"Failed to get production trends: {e}")
            raise

    async def get_health_trends(self, days: int = 30) -> HealthTrends:
        """Daily health score, disease incidence and recurring issues"""
        try:
            now = utcnow()
            start = days_ago(days, now=now)
            day = func.date(HealthLog.recorded_at)

            daily_rows, observations = await settle(
                self._rows(
                    select(
                        day,
                        func.avg(health_score_expr),
                        func.count(HealthLog.id),
                        func.coalesce(func.sum(disease_flag_expr), 0),
                    )
                    .where(HealthLog.recorded_at >= start)
                    .group_by(day)
                ),
                self._rows(
                    select(HealthLog.recorded_at, HealthLog.ai_analysis)
                    .where(
                        HealthLog.recorded_at >= start,
                        HealthLog.ai_analysis.is_not(None)
                    )
                ),
            )

            score_trend, incidence = trends.build_health_series(daily_rows)
            midpoint = start + (now - start) / 2
            common_issues = trends.rank_common_issues(
                ((ensure_utc(recorded_at), payload) for recorded_at, payload in observations),
                midpoint
            )

            return HealthTrends.model_validate({
                "health_score_trend": score_trend,
                "disease_incidence": incidence,
                "common_issues": common_issues,
            })
        except Exception as e:
            logger.error(f"Failed to get health trends: {e}")
            raise
