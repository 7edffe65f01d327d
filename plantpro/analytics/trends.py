"""
Pure trend shaping for production and health time series

The dashboard service runs the grouped queries; the functions here merge,
roll up and rank their rows.
"""

from collections import Counter
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

from plantpro.analytics.metrics import round_half_up, safe_ratio
from plantpro.utils.time import as_date

# Number of issue types reported in commonIssues
COMMON_ISSUES_LIMIT = 10


def iso_week_label(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_label(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def merge_daily_production(
    planted_rows: Iterable[tuple[Any, int]],
    harvested_rows: Iterable[tuple[Any, int, Optional[float]]]
) -> list[dict]:
    """
    Merge per-day planting counts and per-day harvest counts/yields

    Args:
        planted_rows: (day, lots planted that day)
        harvested_rows: (day, lots harvested that day, yield harvested that day)

    Returns:
        Daily rows sorted by date, zero-filled where only one side has data
    """
    days: dict[date, dict] = {}

    def bucket(day: date) -> dict:
        return days.setdefault(day, {"date": day, "planted": 0, "harvested": 0, "yield": 0.0})

    for day, planted in planted_rows:
        bucket(as_date(day))["planted"] += int(planted or 0)

    for day, harvested, harvest_yield in harvested_rows:
        row = bucket(as_date(day))
        row["harvested"] += int(harvested or 0)
        row["yield"] += float(harvest_yield or 0)

    return [days[day] for day in sorted(days)]


def rollup_production(
    daily: list[dict],
    label: Callable[[date], str],
    key: str
) -> list[dict]:
    """Sum daily production rows into coarser buckets keyed by ``label(day)``"""
    buckets: dict[str, dict] = {}
    for row in daily:
        name = label(row["date"])
        bucket = buckets.setdefault(name, {key: name, "planted": 0, "harvested": 0, "yield": 0.0})
        bucket["planted"] += row["planted"]
        bucket["harvested"] += row["harvested"]
        bucket["yield"] += row["yield"]
    return [buckets[name] for name in sorted(buckets)]


def build_production_trends(planted_rows, harvested_rows) -> dict:
    daily = merge_daily_production(planted_rows, harvested_rows)
    return {
        "daily": daily,
        "weekly": rollup_production(daily, iso_week_label, "week"),
        "monthly": rollup_production(daily, month_label, "month"),
    }


def build_health_series(rows: Iterable[tuple[Any, Optional[float], int, int]]) -> tuple[list[dict], list[dict]]:
    """
    Shape per-day health rows into the score trend and disease incidence

    Args:
        rows: (day, average score or None, logs that day, diseased logs that day)
    """
    score_trend = []
    incidence = []
    for day, average_score, total_logs, diseased in sorted(rows, key=lambda r: as_date(r[0])):
        day = as_date(day)
        score_trend.append({
            "date": day,
            "average_score": round_half_up(float(average_score)) if average_score is not None else 0,
        })
        diseased = int(diseased or 0)
        incidence.append({
            "date": day,
            "count": diseased,
            "rate": safe_ratio(diseased, int(total_logs or 0)),
        })
    return score_trend, incidence


def _issue_types(payload: Optional[dict]) -> list[str]:
    if not isinstance(payload, dict):
        return []
    issues = payload.get("detectedIssues") or []
    types = []
    for issue in issues:
        if isinstance(issue, dict) and issue.get("type"):
            types.append(str(issue["type"]))
    return types


def rank_common_issues(
    observations: Iterable[tuple[datetime, Optional[dict]]],
    midpoint: datetime,
    limit: int = COMMON_ISSUES_LIMIT
) -> list[dict]:
    """
    Rank detected issue types by frequency over the window

    ``trend`` compares occurrences after ``midpoint`` with those before it.
    Ties in frequency are ordered by issue name.
    """
    earlier: Counter = Counter()
    later: Counter = Counter()

    for recorded_at, payload in observations:
        target = later if recorded_at is not None and recorded_at >= midpoint else earlier
        target.update(_issue_types(payload))

    totals = earlier + later
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:limit]

    result = []
    for issue, count in ranked:
        if later[issue] > earlier[issue]:
            trend = "increasing"
        elif later[issue] < earlier[issue]:
            trend = "decreasing"
        else:
            trend = "stable"
        result.append({"issue": issue, "count": count, "trend": trend})
    return result
