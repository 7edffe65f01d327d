"""
Report generation service

Gathers the analytics a report format needs, hands them to the matching
renderer and wraps the bytes in an attachment response.
"""

from dataclasses import dataclass
from typing import Callable

from fastapi import Response

from plantpro.api.config import settings
from plantpro.api.core.exceptions import BadRequestError
from plantpro.api.schemas.dashboard import DashboardFilters, ReportGenerationRequest
from plantpro.api.services.dashboard import DashboardService, settle
from plantpro.reports import renderers
from plantpro.reports.renderers import ReportData
from plantpro.utils.logger import get_logger
from plantpro.utils.time import utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReportFormat:
    extension: str
    media_type: str
    render: Callable[[ReportData], bytes]
    # Whether the format shows the summary / zone and trend sections
    with_summary: bool = True
    with_context: bool = True


REPORT_FORMATS = {
    "excel": ReportFormat(
        extension="xlsx",
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        render=renderers.render_workbook
    ),
    "csv": ReportFormat(
        extension="csv",
        media_type="text/csv",
        render=renderers.render_csv,
        with_summary=False,
        with_context=False
    ),
    "json": ReportFormat(
        extension="json",
        media_type="application/json",
        render=renderers.render_json
    ),
    # Printable HTML until a real PDF encoder is wired in
    "pdf": ReportFormat(
        extension="html",
        media_type="text/html",
        render=renderers.render_html,
        with_context=False
    ),
}


def report_filename(report: ReportData, report_format: ReportFormat) -> str:
    return f"plantation-report-{report.generated_at.date().isoformat()}.{report_format.extension}"


class ReportService:
    """Dispatches report requests to the renderer for their format"""

    def __init__(self, dashboard: DashboardService):
        self.dashboard = dashboard

    async def collect(self, request: ReportGenerationRequest, report_format: ReportFormat) -> ReportData:
        """Run every analytics query the format needs concurrently"""
        filters = DashboardFilters.model_validate(
            request.model_dump(include=set(DashboardFilters.model_fields))
        )
        wanted = {"plant_lots": self.dashboard.get_plant_lot_analytics(filters)}

        if report_format.with_summary:
            wanted["summary"] = self.dashboard.get_dashboard_summary()
        if report_format.with_context:
            wanted["zone_analytics"] = self.dashboard.get_zone_analytics()
            if request.include_health_logs:
                wanted["health_trends"] = self.dashboard.get_health_trends(settings.REPORT_TREND_DAYS)
            if request.include_analytics:
                wanted["production_trends"] = self.dashboard.get_production_trends(settings.REPORT_TREND_DAYS)

        results = dict(zip(wanted, await settle(*wanted.values())))

        return ReportData(
            generated_at=utcnow(),
            title=request.title,
            filters=request.model_dump(by_alias=True, mode="json"),
            **results
        )

    async def generate_report(self, request: ReportGenerationRequest) -> Response:
        """
        Render the requested report as a downloadable attachment

        Raises:
            BadRequestError: for an unsupported format, before any query runs
        """
        report_format = REPORT_FORMATS.get(request.format)
        if report_format is None:
            raise BadRequestError(f"Unsupported report format: {request.format}")

        try:
            report = await self.collect(request, report_format)
            content = report_format.render(report)
        except Exception as e:
            logger.error(f"Failed to generate {request.format} report: {e}")
            raise

        filename = report_filename(report, report_format)
        logger.info(
            f"Generated {request.format} report {filename} "
            f"({report.plant_lots.total} lots, {len(content)} bytes)"
        )

        return Response(
            content=content,
            media_type=report_format.media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )
