"""
khanut/services/dashboard.py
═══════════════════════════════════════════════════════════════════════════════
Dashboard widgets, fetched fresh on every call (no cache):

  get_dashboard_stats        → /stats                      raw stats dict
  get_revenue_data           → /revenue?period=            line chart
  get_service_distribution   → /services                   doughnut chart
  get_recent_orders          → /recent-orders?limit=       order rows
  get_upcoming_appointments  → /upcoming-appointments      appointment rows

A failed request returns None; the widget shows its empty state.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from khanut.core.config import (
    EAT, REVENUE_LINE, SERVICE_COLORS, analytics_path, check_date_range,
)
from khanut.core.errors import FetchError
from khanut.core.http_client import api_client, get_json

log = logging.getLogger("dashboard")


async def _get(
    client: Optional[httpx.AsyncClient],
    business_id: str,
    endpoint: str,
    token: Optional[str],
    params: Optional[dict] = None,
) -> Any:
    try:
        return await get_json(client or api_client(), analytics_path(business_id, endpoint),
                              token=token, params=params)
    except FetchError as ex:
        log.error(f"Failed to fetch {endpoint} for {business_id}: {ex}")
        return None


# ── Formatters ────────────────────────────────────────────────────────────────

def format_revenue_chart(data: Any) -> Optional[dict]:
    if not isinstance(data, dict) or not isinstance(data.get("data"), list) or not data["data"]:
        return None
    points = [p for p in data["data"] if isinstance(p, dict)]
    return {
        "labels": [p.get("date") for p in points],
        "datasets": [{
            "label":   "Revenue",
            "data":    [p.get("revenue") for p in points],
            **REVENUE_LINE,
            "tension": 0.2,
        }],
    }


def format_service_chart(data: Any) -> Optional[dict]:
    if not isinstance(data, dict) or not isinstance(data.get("serviceDistribution"), dict):
        return None
    dist = data["serviceDistribution"]
    return {
        "labels": ["Appointments", "Products", "In-Person Services"],
        "datasets": [{
            "label": "Service Distribution",
            "data": [
                dist.get("appointment") or 0,
                dist.get("product") or 0,
                dist.get("in_person") or 0,
            ],
            "backgroundColor": list(SERVICE_COLORS["backgroundColor"]),
            "borderColor":     list(SERVICE_COLORS["borderColor"]),
            "borderWidth": 1,
        }],
    }


def format_recent_orders(data: Any) -> list[dict]:
    if not isinstance(data, dict) or not data.get("recentOrders"):
        return []
    return [
        {
            "id":       o.get("id"),
            "customer": o.get("customerName"),
            "date":     o.get("date"),
            "amount":   o.get("amount"),
            "status":   o.get("status"),
        }
        for o in data["recentOrders"] if isinstance(o, dict)
    ]


def _appointment_start(date_str: str, time_str: Optional[str]) -> str:
    """'2024-03-16', '14:30' → '2024-03-16T14:30:00+03:00' (Addis Ababa local)."""
    try:
        t = (time_str or "09:00").strip()
        if len(t) == 5:
            t += ":00"
        naive = datetime.strptime(f"{date_str.strip()} {t}", "%Y-%m-%d %H:%M:%S")
    except (AttributeError, ValueError):
        return date_str if isinstance(date_str, str) else ""
    return EAT.localize(naive).isoformat()


def format_upcoming_appointments(data: Any) -> list[dict]:
    if not isinstance(data, dict) or not data.get("upcomingAppointments"):
        return []
    return [
        {
            "id":       a.get("id"),
            "customer": a.get("customerName"),
            "service":  a.get("serviceName"),
            "date":     _appointment_start(a.get("date"), a.get("time")),
            "duration": a.get("duration") or 1,
        }
        for a in data["upcomingAppointments"] if isinstance(a, dict)
    ]


# ── Widgets ───────────────────────────────────────────────────────────────────

async def get_dashboard_stats(
    business_id: str, token: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
) -> Optional[dict]:
    return await _get(client, business_id, "stats", token)


async def get_revenue_data(
    business_id: str,
    period: str = "week",
    token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[dict]:
    check_date_range(period)
    data = await _get(client, business_id, "revenue", token, {"period": period})
    return format_revenue_chart(data)


async def get_service_distribution(
    business_id: str, token: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
) -> Optional[dict]:
    data = await _get(client, business_id, "services", token)
    return format_service_chart(data)


async def get_recent_orders(
    business_id: str,
    limit: int = 5,
    token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[list[dict]]:
    data = await _get(client, business_id, "recent_orders", token, {"limit": limit})
    if data is None:
        return None
    return format_recent_orders(data)


async def get_upcoming_appointments(
    business_id: str,
    limit: int = 5,
    token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[list[dict]]:
    data = await _get(client, business_id, "upcoming_appointments", token, {"limit": limit})
    if data is None:
        return None
    return format_upcoming_appointments(data)
