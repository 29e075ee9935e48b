"""
khanut/services/fallbacks.py
Default dashboard numbers served when the backend cannot be reached.
Each call returns a fresh dict, so callers may mutate what they get.
"""

from khanut.core.config import CURRENT_SERIES, PREVIOUS_SERIES


def fallback_analytics() -> dict:
    return {
        "revenue": {
            "total":     12580.75,
            "today":     450.25,
            "thisWeek":  2340.5,
            "thisMonth": 8750.3,
        },
        "orders": {
            "total":     156,
            "today":     8,
            "thisWeek":  42,
            "thisMonth": 124,
            "pending":   12,
            "completed": 144,
        },
        "customers": {
            "total":     89,
            "new":       12,
            "returning": 77,
        },
        "appointments": {
            "total":     78,
            "today":     5,
            "thisWeek":  23,
            "upcoming":  15,
            "completed": 63,
        },
    }


# period → (labels, current label, current data, previous label, previous data)
_REVENUE_SERIES: dict[str, tuple] = {
    "today": (
        ["00:00", "03:00", "06:00", "09:00", "12:00", "15:00", "18:00", "21:00"],
        "Today",      [50, 120, 180, 250, 300, 280, 220, 150],
        "Yesterday",  [30, 100, 160, 220, 280, 250, 200, 130],
    ),
    "week": (
        ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
        "This Week",  [300, 450, 380, 520, 480, 600, 580],
        "Last Week",  [250, 400, 350, 480, 450, 550, 520],
    ),
    "month": (
        ["Week 1", "Week 2", "Week 3", "Week 4"],
        "This Month", [1800, 2200, 2400, 2600],
        "Last Month", [1600, 2000, 2200, 2400],
    ),
    "year": (
        ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
        "This Year",  [5000, 6000, 7000, 8000, 9000, 10000, 11000, 12000, 13000, 14000, 15000, 16000],
        "Last Year",  [4500, 5500, 6500, 7500, 8500, 9500, 10500, 11500, 12500, 13500, 14500, 15500],
    ),
}


def fallback_revenue_chart(period: str) -> dict:
    """Two-series revenue chart. Unknown periods get the yearly chart."""
    labels, cur_label, cur, prev_label, prev = _REVENUE_SERIES.get(period, _REVENUE_SERIES["year"])
    return {
        "labels": list(labels),
        "datasets": [
            {"label": cur_label,  "data": list(cur),  **CURRENT_SERIES},
            {"label": prev_label, "data": list(prev), **PREVIOUS_SERIES},
        ],
    }


def fallback_customers() -> dict:
    return {
        "total":     89,
        "new":       12,
        "returning": 77,
        "sources": [
            {"name": "Direct",   "value": 35},
            {"name": "Search",   "value": 22},
            {"name": "Social",   "value": 18},
            {"name": "Referral", "value": 14},
        ],
        "retention": [
            {"month": "Jan", "new": 12, "returning": 8},
            {"month": "Feb", "new": 15, "returning": 10},
            {"month": "Mar", "new": 18, "returning": 12},
            {"month": "Apr", "new": 14, "returning": 15},
            {"month": "May", "new": 10, "returning": 18},
            {"month": "Jun", "new": 8,  "returning": 20},
        ],
    }


def fallback_performance() -> dict:
    return {
        "revenue":   {"total": 12580.75, "target": 15000, "growth": 5},
        "orders":    {"total": 156,      "target": 200,   "growth": 8},
        "customers": {"total": 89,       "target": 120,   "growth": 12},
    }
