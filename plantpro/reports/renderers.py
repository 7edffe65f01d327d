"""
Report encoders

Each renderer turns one ``ReportData`` snapshot into the bytes of a
downloadable document. They never touch the database; the report service
gathers the data and builds the HTTP response.
"""

import csv
import io
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

import pandas as pd
from jinja2 import Environment, PackageLoader, select_autoescape
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from plantpro.api.schemas.dashboard import (
    DashboardSummary,
    HealthTrends,
    PlantLotAnalytics,
    PlantLotAnalyticsPage,
    ProductionTrends,
    ZoneAnalytics,
)

DEFAULT_TITLE = "Plantation Report"
DEFAULT_HTML_TITLE = "Plantation Management Report"
NOT_AVAILABLE = "N/A"
UNASSIGNED = "Unassigned"

PLANT_LOT_COLUMNS = [
    "Lot Number",
    "Species",
    "Status",
    "Planted Date",
    "Expected Harvest",
    "Current Yield",
    "Health Score",
    "Disease Detected",
    "Zone",
    "Assigned To",
]
PLANT_LOT_WIDTHS = [15, 20, 15, 15, 18, 15, 15, 18, 20, 25]

ZONE_COLUMNS = ["Zone Name", "Total Lots", "Active Lots", "Total Yield", "Avg Health Score", "Recent Activity"]
ZONE_WIDTHS = [20, 15, 15, 15, 18, 18]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", start_color="FFE6E6FA", end_color="FFE6E6FA")

_templates = Environment(
    loader=PackageLoader("plantpro.reports", "templates"),
    autoescape=select_autoescape(["html"])
)


@dataclass
class ReportData:
    """Everything a report can show, gathered once per request"""
    generated_at: datetime
    plant_lots: PlantLotAnalyticsPage
    filters: dict = field(default_factory=dict)
    title: Optional[str] = None
    summary: Optional[DashboardSummary] = None
    zone_analytics: list[ZoneAnalytics] = field(default_factory=list)
    health_trends: Optional[HealthTrends] = None
    production_trends: Optional[ProductionTrends] = None


def plain_number(value: float) -> Union[int, float]:
    """Whole numbers as int so 10.0 renders as 10 in every format"""
    number = float(value)
    return int(number) if number.is_integer() else number


def plant_lot_row(lot: PlantLotAnalytics) -> list[Any]:
    """Project one analytics row onto ``PLANT_LOT_COLUMNS``"""
    if lot.assigned_to is not None:
        assignee = f"{lot.assigned_to.first_name} {lot.assigned_to.last_name}"
    else:
        assignee = UNASSIGNED

    return [
        lot.lot_number,
        lot.species,
        lot.status,
        lot.planted_date.isoformat(),
        lot.expected_harvest_date.isoformat() if lot.expected_harvest_date else NOT_AVAILABLE,
        plain_number(lot.current_yield or 0),
        lot.health_score if lot.health_score is not None else NOT_AVAILABLE,
        "Yes" if lot.disease_detected else "No",
        lot.zone.name if lot.zone is not None else NOT_AVAILABLE,
        assignee,
    ]


def plant_lot_rows(page: PlantLotAnalyticsPage) -> list[list[Any]]:
    return [plant_lot_row(lot) for lot in page.data]


def plant_lot_frame(page: PlantLotAnalyticsPage) -> pd.DataFrame:
    # object dtype keeps whole yields as ints next to fractional ones
    return pd.DataFrame(plant_lot_rows(page), columns=PLANT_LOT_COLUMNS, dtype=object)


def summary_rows(summary: DashboardSummary) -> list[tuple[str, Any]]:
    """Metric/value pairs for the workbook Summary sheet"""
    return [
        ("Total Plant Lots", summary.total_plant_lots),
        ("Total Active Zones", summary.total_active_zones),
        ("Total Users", summary.total_users),
        ("Total Species", summary.total_species),
        ("Average Health Score", summary.health_metrics.average_health_score),
        ("Disease Detection Rate", f"{summary.health_metrics.disease_detection_rate * 100:.2f}%"),
        ("Total Yield", summary.production_metrics.total_yield),
        ("Ready for Harvest", summary.production_metrics.ready_for_harvest),
        ("Recently Planted", summary.production_metrics.recently_planted),
        ("Active Field Staff", summary.user_activity.active_field_staff),
    ]


# CSV

def render_csv(data: ReportData) -> bytes:
    """Plant lots only, every field quoted"""
    frame = plant_lot_frame(data.plant_lots)
    content = frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return content.encode("utf-8")


# Excel

def _write_sheet(writer: pd.ExcelWriter, name: str, frame: pd.DataFrame, widths: list[int]) -> None:
    frame.to_excel(writer, sheet_name=name, index=False)
    worksheet = writer.sheets[name]

    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    for index, width in enumerate(widths, start=1):
        worksheet.column_dimensions[get_column_letter(index)].width = width


def render_workbook(data: ReportData) -> bytes:
    """
    xlsx workbook with Summary, Plant Lots and Zone Analytics sheets

    Health Trends and Production Trends sheets are added only when those
    trends were requested and contain at least one day.
    """
    buffer = io.BytesIO()

    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        summary = summary_rows(data.summary) if data.summary is not None else []
        _write_sheet(writer, "Summary", pd.DataFrame(summary, columns=["Metric", "Value"]), [30, 20])

        _write_sheet(
            writer,
            "Plant Lots",
            plant_lot_frame(data.plant_lots),
            PLANT_LOT_WIDTHS
        )

        zones = [
            [
                zone.zone_name,
                zone.total_lots,
                zone.active_lots,
                zone.total_yield,
                zone.average_health_score,
                zone.recent_activity,
            ]
            for zone in data.zone_analytics
        ]
        _write_sheet(writer, "Zone Analytics", pd.DataFrame(zones, columns=ZONE_COLUMNS), ZONE_WIDTHS)

        if data.health_trends is not None and data.health_trends.health_score_trend:
            scores = [
                [point.date.isoformat(), point.average_score]
                for point in data.health_trends.health_score_trend
            ]
            _write_sheet(
                writer,
                "Health Trends",
                pd.DataFrame(scores, columns=["Date", "Average Health Score"]),
                [15, 20]
            )

        if data.production_trends is not None and data.production_trends.daily:
            daily = [
                [day.date.isoformat(), day.planted, day.harvested, day.yield_]
                for day in data.production_trends.daily
            ]
            _write_sheet(
                writer,
                "Production Trends",
                pd.DataFrame(daily, columns=["Date", "Planted", "Harvested", "Yield"]),
                [15, 15, 15, 15]
            )

    return buffer.getvalue()


# JSON

def render_json(data: ReportData) -> bytes:
    document = {
        "metadata": {
            "title": data.title or DEFAULT_TITLE,
            "generatedAt": data.generated_at.isoformat(),
            "filters": data.filters,
        },
        "summary": data.summary.model_dump(by_alias=True, mode="json") if data.summary else None,
        "plantLots": data.plant_lots.model_dump(by_alias=True, mode="json"),
        "zoneAnalytics": [zone.model_dump(by_alias=True, mode="json") for zone in data.zone_analytics],
    }
    if data.health_trends is not None:
        document["healthTrends"] = data.health_trends.model_dump(by_alias=True, mode="json")
    if data.production_trends is not None:
        document["productionTrends"] = data.production_trends.model_dump(by_alias=True, mode="json")

    return json.dumps(document, indent=2).encode("utf-8")


# HTML

def render_html(data: ReportData) -> bytes:
    """Printable HTML document standing in for a PDF export"""
    template = _templates.get_template("report.html")
    content = template.render(
        title=data.title or DEFAULT_HTML_TITLE,
        generated_on=data.generated_at.date().isoformat(),
        summary=data.summary,
        columns=PLANT_LOT_COLUMNS,
        rows=plant_lot_rows(data.plant_lots),
    )
    return content.encode("utf-8")
