"""
khanut/routers/analytics.py
═══════════════════════════════════════════════════════════════════════════════
Endpoints:
  GET /business/{id}/analytics?range=month         → cached analytics
  GET /business/{id}/analytics/revenue?period=week → cached revenue chart
  GET /business/{id}/analytics/customers           → cached customer analytics
  GET /business/{id}/analytics/performance         → cached performance metrics

  GET /business/{id}/dashboard/stats                  → raw stats (502 on failure)
  GET /business/{id}/dashboard/revenue?period=week    → revenue line chart
  GET /business/{id}/dashboard/services               → service distribution
  GET /business/{id}/dashboard/recent-orders?limit=5  → recent order rows
  GET /business/{id}/dashboard/upcoming-appointments  → appointment rows

Cached endpoints always answer 200 with {"data", "source"}; source is
"fallback" when the backend could not be reached.
The caller's Authorization header is forwarded to the backend.
═══════════════════════════════════════════════════════════════════════════════
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Header, HTTPException, Query, Request

from khanut.core.errors import FetchResult
from khanut.services import dashboard
from khanut.services.business_analytics import BusinessAnalyticsService

router = APIRouter(prefix="/business/{business_id}", tags=["analytics"])

_RANGE = "^(today|week|month|year)$"


def _service(request: Request) -> BusinessAnalyticsService:
    return request.app.state.analytics


def _client(request: Request) -> Optional[httpx.AsyncClient]:
    return getattr(request.app.state, "http_client", None)


def _token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return authorization.strip() or None


def _payload(result: FetchResult) -> dict:
    return {"data": result.data, "source": result.source}


# ── Cached analytics ─────────────────────────────────────────────────────────

@router.get("/analytics")
async def business_analytics(
    business_id: str,
    request: Request,
    date_range: str = Query("month", alias="range", pattern=_RANGE),
    authorization: Optional[str] = Header(None),
):
    result = await _service(request).get_business_analytics(business_id, date_range, _token(authorization))
    return _payload(result)


@router.get("/analytics/revenue")
async def revenue_chart(
    business_id: str,
    request: Request,
    period: str = Query("week", pattern=_RANGE),
    authorization: Optional[str] = Header(None),
):
    result = await _service(request).get_revenue_chart_data(business_id, period, _token(authorization))
    return _payload(result)


@router.get("/analytics/customers")
async def customer_analytics(
    business_id: str,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    result = await _service(request).get_customer_analytics(business_id, _token(authorization))
    return _payload(result)


@router.get("/analytics/performance")
async def performance_metrics(
    business_id: str,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    result = await _service(request).get_performance_metrics(business_id, _token(authorization))
    return _payload(result)


# ── Uncached dashboard widgets ───────────────────────────────────────────────

@router.get("/dashboard/stats")
async def dashboard_stats(
    business_id: str,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    stats = await dashboard.get_dashboard_stats(business_id, _token(authorization), _client(request))
    if stats is None:
        raise HTTPException(502, detail="Dashboard stats unavailable")
    return stats


@router.get("/dashboard/revenue")
async def dashboard_revenue(
    business_id: str,
    request: Request,
    period: str = Query("week", pattern=_RANGE),
    authorization: Optional[str] = Header(None),
):
    return await dashboard.get_revenue_data(business_id, period, _token(authorization), _client(request))


@router.get("/dashboard/services")
async def dashboard_services(
    business_id: str,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    return await dashboard.get_service_distribution(business_id, _token(authorization), _client(request))


@router.get("/dashboard/recent-orders")
async def dashboard_recent_orders(
    business_id: str,
    request: Request,
    limit: int = Query(5, ge=1, le=100),
    authorization: Optional[str] = Header(None),
):
    return await dashboard.get_recent_orders(business_id, limit, _token(authorization), _client(request)) or []


@router.get("/dashboard/upcoming-appointments")
async def dashboard_upcoming(
    business_id: str,
    request: Request,
    limit: int = Query(5, ge=1, le=100),
    authorization: Optional[str] = Header(None),
):
    return await dashboard.get_upcoming_appointments(
        business_id, limit, _token(authorization), _client(request),
    ) or []
