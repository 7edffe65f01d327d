"""
Plant-lot analytics statement composition

The row statement and the count statement are built from one predicate list,
so ``total`` always describes exactly the rows being paginated.
"""

from dataclasses import dataclass

from sqlalchemy import Select, case, func, select

from plantpro.analytics.metrics import rounded_score
from plantpro.api.core.exceptions import BadRequestError
from plantpro.api.models import HealthLog, PlantLot, PlantSpecies, User, Zone
from plantpro.api.schemas.dashboard import DashboardFilters

# JSON paths into the health-signal payload
health_score_expr = HealthLog.ai_analysis["healthScore"].as_float()
disease_flag_expr = case(
    (HealthLog.ai_analysis["diseaseDetected"].as_boolean().is_(True), 1),
    else_=0
)

HEALTH_SCORE_SORT_KEY = "healthScore"

# API sort keys (camelCase) -> plant lot columns
SORTABLE_COLUMNS = {
    "id": PlantLot.id,
    "lotNumber": PlantLot.lot_number,
    "qrCode": PlantLot.qr_code,
    "plantCount": PlantLot.plant_count,
    "plantedDate": PlantLot.planted_date,
    "expectedHarvestDate": PlantLot.expected_harvest_date,
    "actualHarvestDate": PlantLot.actual_harvest_date,
    "status": PlantLot.status,
    "currentYield": PlantLot.current_yield,
    "notes": PlantLot.notes,
    "lastScannedAt": PlantLot.last_scanned_at,
    "speciesId": PlantLot.species_id,
    "zoneId": PlantLot.zone_id,
    "assignedToId": PlantLot.assigned_to_id,
    "createdAt": PlantLot.created_at,
    "updatedAt": PlantLot.updated_at,
}


def build_filter_predicates(filters: DashboardFilters) -> list:
    """Translate the optional filters into AND-ed predicates"""
    predicates = []
    if filters.zone_id is not None:
        predicates.append(PlantLot.zone_id == filters.zone_id)
    if filters.species:
        # Case-sensitive substring match on the species name
        predicates.append(PlantSpecies.name.contains(filters.species, autoescape=True))
    if filters.status:
        predicates.append(PlantLot.status == filters.status)
    if filters.assigned_to_id is not None:
        predicates.append(PlantLot.assigned_to_id == filters.assigned_to_id)
    if filters.start_date:
        predicates.append(PlantLot.planted_date >= filters.start_date)
    if filters.end_date:
        predicates.append(PlantLot.planted_date <= filters.end_date)
    return predicates


def resolve_sort_column(sort_by: str):
    """
    Map an API sort key onto a plant lot column

    Snake_case column names are accepted as well as the camelCase keys.

    Raises:
        BadRequestError: for anything that is not a plant lot column
    """
    if sort_by in SORTABLE_COLUMNS:
        return SORTABLE_COLUMNS[sort_by]
    column = PlantLot.__table__.columns.get(sort_by)
    if column is None:
        raise BadRequestError(f"Unsupported sort field: {sort_by}")
    return getattr(PlantLot, column.key)


@dataclass(frozen=True)
class AnalyticsStatements:
    rows: Select
    count: Select


def build_plant_lot_analytics_query(filters: DashboardFilters) -> AnalyticsStatements:
    """
    Compose the paginated row statement and its matching count statement
    """
    predicates = build_filter_predicates(filters)

    avg_health_score = func.avg(health_score_expr).label("avg_health_score")
    disease_detected = func.max(disease_flag_expr).label("disease_detected")
    last_health_check = func.max(HealthLog.recorded_at).label("last_health_check")

    rows = (
        select(
            PlantLot.id,
            PlantLot.lot_number,
            PlantSpecies.name.label("species"),
            PlantLot.status,
            PlantLot.planted_date,
            PlantLot.expected_harvest_date,
            PlantLot.current_yield,
            Zone.id.label("zone_id"),
            Zone.name.label("zone_name"),
            User.id.label("assignee_id"),
            User.first_name.label("assignee_first_name"),
            User.last_name.label("assignee_last_name"),
            avg_health_score,
            disease_detected,
            last_health_check,
        )
        .select_from(PlantLot)
        .join(PlantSpecies, PlantLot.species_id == PlantSpecies.id)
        .outerjoin(Zone, PlantLot.zone_id == Zone.id)
        .outerjoin(User, PlantLot.assigned_to_id == User.id)
        .outerjoin(HealthLog, HealthLog.plant_lot_id == PlantLot.id)
        .where(*predicates)
        .group_by(PlantLot.id, PlantSpecies.id, Zone.id, User.id)
    )

    descending = filters.sort_order == "DESC"
    if filters.sort_by == HEALTH_SCORE_SORT_KEY:
        order = avg_health_score.desc() if descending else avg_health_score.asc()
        order = order.nulls_last()
    else:
        column = resolve_sort_column(filters.sort_by)
        order = column.desc() if descending else column.asc()

    offset = (filters.page - 1) * filters.limit
    rows = rows.order_by(order, PlantLot.id.asc()).offset(offset).limit(filters.limit)

    # Same joins that can filter (species) and the same predicates, no health
    # log join so every lot is counted once
    count = (
        select(func.count(PlantLot.id))
        .select_from(PlantLot)
        .join(PlantSpecies, PlantLot.species_id == PlantSpecies.id)
        .where(*predicates)
    )

    return AnalyticsStatements(rows=rows, count=count)


def row_to_analytics(row) -> dict:
    """Shape one result row of the analytics statement"""
    assigned_to = None
    if row.assignee_id is not None:
        assigned_to = {
            "id": row.assignee_id,
            "first_name": row.assignee_first_name,
            "last_name": row.assignee_last_name,
        }
    zone = None
    if row.zone_id is not None:
        zone = {"id": row.zone_id, "name": row.zone_name}

    return {
        "id": row.id,
        "lot_number": row.lot_number,
        "species": row.species,
        "status": row.status,
        "planted_date": row.planted_date,
        "expected_harvest_date": row.expected_harvest_date,
        "current_yield": float(row.current_yield or 0),
        "health_score": rounded_score(row.avg_health_score),
        "disease_detected": bool(row.disease_detected),
        "last_health_check": row.last_health_check,
        "assigned_to": assigned_to,
        "zone": zone,
    }
