"""
Pure summary-metric arithmetic

Everything here works on explicit query results (counts, sums, averages)
so the dashboard summary is deterministic for a given set of inputs and can
be tested without a database.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Alert thresholds
FAILED_ANALYSIS_ALERT_THRESHOLD = 5
DISEASE_RATE_ALERT_THRESHOLD = 0.2


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, not 2)"""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is 0"""
    if not denominator:
        return 0.0
    return numerator / denominator


def rounded_score(average: Optional[float]) -> Optional[int]:
    """Rounded health score, None when no numeric score was available"""
    if average is None:
        return None
    return round_half_up(float(average))


def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit) for limit > 0"""
    if limit <= 0:
        raise ValueError("limit must be positive")
    return math.ceil(total / limit)


@dataclass(frozen=True)
class SummaryInputs:
    """Raw results of the dashboard summary queries"""
    total_plant_lots: int
    total_active_zones: int
    total_active_users: int
    total_species: int
    total_health_logs: int
    logs_last_week: int
    logs_with_payload: int
    diseased_payloads: int
    average_payload_score: Optional[float]
    total_yield: float
    harvesting_lots: int
    recently_planted: int
    overdue_lots: int
    active_field_staff: int
    recent_scans: int
    completed_analyses: int
    failed_analyses: int
    pending_analyses: int


def health_metrics(inputs: SummaryInputs) -> dict:
    """
    Health block of the summary

    averageHealthScore and diseaseDetectionRate are both 0 when no log carries
    a signal payload.
    """
    if inputs.logs_with_payload == 0:
        average_score = 0
        detection_rate = 0.0
    else:
        average_score = rounded_score(inputs.average_payload_score) or 0
        detection_rate = min(1.0, safe_ratio(inputs.diseased_payloads, inputs.logs_with_payload))

    return {
        "total_health_logs": inputs.total_health_logs,
        "average_health_score": average_score,
        "disease_detection_rate": detection_rate,
        "recent_issues": inputs.logs_last_week,
    }


def system_health(inputs: SummaryInputs) -> dict:
    """Share of finished analyses that completed, plus backlog and failures"""
    finished = inputs.completed_analyses + inputs.failed_analyses
    return {
        "ai_analysis_success": safe_ratio(inputs.completed_analyses, finished),
        "pending_analysis": inputs.pending_analyses,
        "system_errors": inputs.failed_analyses,
    }


def build_summary(inputs: SummaryInputs) -> dict:
    """Assemble the nested dashboard summary from the query results"""
    return {
        "total_plant_lots": inputs.total_plant_lots,
        "total_active_zones": inputs.total_active_zones,
        "total_users": inputs.total_active_users,
        "total_species": inputs.total_species,
        "health_metrics": health_metrics(inputs),
        "production_metrics": {
            "total_yield": float(inputs.total_yield or 0),
            "ready_for_harvest": inputs.harvesting_lots,
            "recently_planted": inputs.recently_planted,
            "overdue_lots": inputs.overdue_lots,
        },
        "user_activity": {
            "active_field_staff": inputs.active_field_staff,
            "recent_scans": inputs.recent_scans,
            "last_week_activity": inputs.logs_last_week,
        },
        "system_health": system_health(inputs),
    }


def quick_stats(summary: dict) -> dict:
    """Compact projection of a built summary for widgets"""
    return {
        "total_plant_lots": summary["total_plant_lots"],
        "ready_for_harvest": summary["production_metrics"]["ready_for_harvest"],
        "average_health_score": summary["health_metrics"]["average_health_score"],
        "recent_issues": summary["health_metrics"]["recent_issues"],
        "active_field_staff": summary["user_activity"]["active_field_staff"],
        "system_health": summary["system_health"]["system_errors"],
    }


def build_alerts(summary: dict, now: datetime) -> list[dict]:
    """Derive operator alerts from a built summary"""
    alerts = []

    system_errors = summary["system_health"]["system_errors"]
    if system_errors > FAILED_ANALYSIS_ALERT_THRESHOLD:
        alerts.append({
            "type": "error",
            "title": "High AI Analysis Failure Rate",
            "message": f"{system_errors} failed analyses detected",
            "priority": "high",
            "timestamp": now,
        })

    overdue = summary["production_metrics"]["overdue_lots"]
    if overdue > 0:
        alerts.append({
            "type": "warning",
            "title": "Overdue Harvests",
            "message": f"{overdue} lots past expected harvest date",
            "priority": "high",
            "timestamp": now,
        })

    disease_rate = summary["health_metrics"]["disease_detection_rate"]
    if disease_rate > DISEASE_RATE_ALERT_THRESHOLD:
        alerts.append({
            "type": "error",
            "title": "High Disease Detection Rate",
            "message": f"{disease_rate * 100:.1f}% disease detection rate",
            "priority": "high",
            "timestamp": now,
        })

    return alerts


def assemble_zone_analytics(lot_stats, health_stats, species_rows, activity_rows) -> list[dict]:
    """
    Join the per-zone query results into zone analytics rows

    Args:
        lot_stats: (zone id, zone name, total lots, active lots, total yield)
            for every active zone, in display order
        health_stats: (zone id, average health score or None)
        species_rows: (zone id, species name, lot count)
        activity_rows: (zone id, health logs in the last 7 days)
    """
    average_scores = {zone_id: score for zone_id, score in health_stats}
    recent_activity = {zone_id: int(count) for zone_id, count in activity_rows}
    species: dict[int, list[dict]] = {}
    for zone_id, name, count in species_rows:
        species.setdefault(zone_id, []).append({"name": name, "count": int(count)})

    zones = []
    for zone_id, zone_name, total_lots, active_lots, total_yield in lot_stats:
        zones.append({
            "zone_id": zone_id,
            "zone_name": zone_name,
            "total_lots": int(total_lots or 0),
            "active_lots": int(active_lots or 0),
            "total_yield": float(total_yield or 0),
            "average_health_score": rounded_score(average_scores.get(zone_id)) or 0,
            "species": species.get(zone_id, []),
            "recent_activity": recent_activity.get(zone_id, 0),
        })
    return zones
