# =====================================
# backend/services/analytics.py - Analytics Aggregator
# =====================================
"""
Rollups over a user's activities.

Everything here is a pure function over plain dict rows
(`{"category", "duration", "date", ...}`) so it can be tested without a
database. Dates are plain YYYY-MM-DD strings; no timezone math happens here.
"""
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Set, Tuple
import calendar

from models.schemas import DATE_FORMAT, parse_day, round_half_up

NO_ACTIVITY = "No activities"


class AggregationError(ValueError):
    """Raised when a rollup cannot be computed (e.g. malformed dates)"""


class RangeTooLargeError(AggregationError):
    """Raised when a requested range spans more days than allowed"""


def _to_day(value: str) -> date:
    try:
        return parse_day(value).date()
    except (TypeError, ValueError) as e:
        raise AggregationError(f"Invalid date '{value}': expected YYYY-MM-DD") from e


def _ratio_percent(part: float, whole: float) -> float:
    return 100 * part / whole if whole > 0 else 0


def check_range(start_date: str, end_date: str, max_days: int) -> None:
    """Rejects ranges longer than max_days, counted inclusively"""
    span = (_to_day(end_date) - _to_day(start_date)).days + 1
    if span > max_days:
        raise RangeTooLargeError(f"Date range cannot exceed {max_days} days")


def day_series(start_date: str, end_date: str) -> List[str]:
    """Every calendar day from start to end inclusive; empty if start > end"""
    current, last = _to_day(start_date), _to_day(end_date)
    days = []
    while current <= last:
        days.append(current.strftime(DATE_FORMAT))
        current += timedelta(days=1)
    return days


def productivity_score(activities: Iterable[Dict], productive: Set[str]) -> Tuple[int, int, int]:
    """Returns (score, productive_minutes, total_minutes)"""
    total = 0
    productive_minutes = 0
    for activity in activities:
        total += activity["duration"]
        if activity["category"] in productive:
            productive_minutes += activity["duration"]
    return round_half_up(_ratio_percent(productive_minutes, total)), productive_minutes, total


def build_rollup(activities: Iterable[Dict], start_date: str, end_date: str, productive: Set[str]) -> Dict:
    """
    Aggregates activities over [start_date, end_date].

    - dailyData has one entry per calendar day, zero days included
    - categoryData is sorted by minutes, descending (ties keep first-seen order)
    - mostProductiveDay is the earliest day holding the maximum, or
      NO_ACTIVITY when nothing was logged in range
    """
    daily = OrderedDict(
        (day, {"date": day, "minutes": 0, "activities": 0})
        for day in day_series(start_date, end_date)
    )

    in_range = [a for a in activities if a["date"] in daily]

    categories: Dict[str, int] = OrderedDict()
    for activity in in_range:
        bucket = daily[activity["date"]]
        bucket["minutes"] += activity["duration"]
        bucket["activities"] += 1
        categories[activity["category"]] = categories.get(activity["category"], 0) + activity["duration"]

    score, _, total_minutes = productivity_score(in_range, productive)

    category_data = sorted(
        (
            {
                "category": category,
                "minutes": minutes,
                "percentage": _ratio_percent(minutes, total_minutes),
            }
            for category, minutes in categories.items()
        ),
        key=lambda item: item["minutes"],
        reverse=True,
    )

    daily_data = list(daily.values())

    best = None
    for day in daily_data:
        if day["minutes"] > 0 and (best is None or day["minutes"] > best["minutes"]):
            best = day

    return {
        "totalMinutes": total_minutes,
        "totalActivities": len(in_range),
        "dailyData": daily_data,
        "categoryData": category_data,
        "productivityScore": score,
        "averageDailyTime": round_half_up(total_minutes / len(daily_data)) if daily_data else 0,
        "mostProductiveDay": best["date"] if best else NO_ACTIVITY,
    }


# =====================================
# Presets
# =====================================

def weekly_range(today: date) -> Tuple[str, str]:
    """Monday through Sunday of the ISO week containing today"""
    monday = today - timedelta(days=today.weekday())
    sunday = monday + timedelta(days=6)
    return monday.strftime(DATE_FORMAT), sunday.strftime(DATE_FORMAT)


def monthly_range(today: date) -> Tuple[str, str]:
    """First through last calendar day of today's month"""
    last_day = calendar.monthrange(today.year, today.month)[1]
    first = today.replace(day=1)
    last = today.replace(day=last_day)
    return first.strftime(DATE_FORMAT), last.strftime(DATE_FORMAT)


# =====================================
# Daily summaries
# =====================================

def category_totals(activities: Iterable[Dict]) -> List[Dict]:
    """Per-category {category, duration, count} in first-seen order"""
    totals: Dict[str, Dict] = OrderedDict()
    for activity in activities:
        entry = totals.setdefault(
            activity["category"],
            {"category": activity["category"], "duration": 0, "count": 0},
        )
        entry["duration"] += activity["duration"]
        entry["count"] += 1
    return list(totals.values())


def day_summary(activities: List[Dict]) -> Dict:
    """Summary block returned next to a day's activity list"""
    total_minutes = sum(a["duration"] for a in activities)
    return {
        "totalActivities": len(activities),
        "totalMinutes": total_minutes,
        "totalHours": f"{total_minutes / 60:.1f}",
        "categoryBreakdown": category_totals(activities),
    }


def today_summary(activities: List[Dict], productive: Set[str]) -> Dict:
    """Dashboard rollup for a single day"""
    score, productive_minutes, total_minutes = productivity_score(activities, productive)
    totals = sorted(category_totals(activities), key=lambda item: item["duration"], reverse=True)
    return {
        "totalMinutes": total_minutes,
        "totalActivities": len(activities),
        "categoryTotals": totals,
        "productivityScore": score,
        "productiveMinutes": productive_minutes,
    }
