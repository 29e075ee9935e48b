"""
khanut/services/business_analytics.py
═══════════════════════════════════════════════════════════════════════════════
Cached analytics for the business dashboard.

Every call follows the same path:
  resolve business id → cache → backend → (cache it) → FetchResult
and degrades to the defaults in fallbacks.py when the backend fails.

Cache keys:
  analytics_{id}_{range}    comprehensive / aggregated analytics
  revenue_{id}_{period}     revenue chart
  customers_{id}            customer analytics
  performance_{id}          performance vs targets

getBusinessAnalytics fallback chain:
  1. /comprehensive?period=…                          → source "live"
  2. /stats + /recent-orders + /upcoming-appointments → source "aggregate"
  3. fallback_analytics()                             → source "fallback"

Two callers missing the same key both fetch and both put; the later put wins.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from typing import Any, Awaitable, Callable, Optional

import httpx

from khanut.core.cache import TTLCache, cache_key
from khanut.core.config import CACHE_TTL_MS, analytics_path, check_date_range
from khanut.core.errors import AGGREGATE, CACHE, FALLBACK, LIVE, FetchError, FetchResult
from khanut.core.http_client import api_client, get_json
from khanut.services.business_resolver import BusinessResolver
from khanut.services.fallbacks import (
    fallback_analytics,
    fallback_customers,
    fallback_performance,
    fallback_revenue_chart,
)

log = logging.getLogger("analytics")

AGGREGATE_LIMIT = 10
NEW_CUSTOMER_SHARE = 0.2


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _number(value: Any) -> float:
    """Counts from the backend as numbers; numeric strings are accepted, anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            n = float(value)
        except ValueError:
            return 0
        if not math.isfinite(n):
            return 0
        return int(n) if n.is_integer() else n
    return 0


def _as_list(payload: Any, field: str) -> Optional[list]:
    """Endpoints answer either with a bare list or with {field: [...]}."""
    if payload is None:
        return None
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(field), list):
        return payload[field]
    return None


def aggregate_analytics(
    stats: Optional[dict],
    recent_orders: Optional[list],
    upcoming: Optional[list],
) -> dict:
    """Build the comprehensive analytics shape from the individual endpoints.
    Anything missing counts as zero; today/thisWeek are not available."""
    stats  = stats if isinstance(stats, dict) else {}
    orders = [o for o in recent_orders or [] if isinstance(o, dict)]
    appts  = upcoming or []

    revenue      = _number(stats.get("totalRevenue"))
    total_orders = _number(stats.get("totalOrders"))
    customers    = _number(stats.get("totalCustomers"))
    appointments = _number(stats.get("totalAppointments"))

    return {
        "revenue": {
            "total":     revenue,
            "today":     0,
            "thisWeek":  0,
            "thisMonth": revenue,
        },
        "orders": {
            "total":     total_orders,
            "today":     0,
            "thisWeek":  0,
            "thisMonth": total_orders,
            "pending":   sum(1 for o in orders if o.get("status") == "pending"),
            "completed": sum(1 for o in orders if o.get("status") == "completed"),
        },
        "customers": {
            "total":     customers,
            "new":       _round_half_up(customers * NEW_CUSTOMER_SHARE),
            "returning": _round_half_up(customers * (1 - NEW_CUSTOMER_SHARE)),
        },
        "appointments": {
            "total":     appointments,
            "today":     0,
            "thisWeek":  0,
            "upcoming":  len(appts),
            "completed": appointments - len(appts),
        },
    }


class BusinessAnalyticsService:
    def __init__(
        self,
        cache: TTLCache,
        client: Optional[httpx.AsyncClient] = None,
        resolver: Optional[BusinessResolver] = None,
        ttl_ms: int = CACHE_TTL_MS,
    ):
        self.cache    = cache
        self._client  = client
        self.resolver = resolver or BusinessResolver(client)
        self.ttl_ms   = ttl_ms

    def _http(self) -> httpx.AsyncClient:
        return self._client or api_client()

    # ── Shared cache-or-fetch path ───────────────────────────────────────────

    async def _cached(
        self,
        label: str,
        key_for: Callable[[str], str],
        url_business_id: str,
        token: Optional[str],
        fetch: Callable[[str], Awaitable[FetchResult]],
        fallback: Callable[[], Any],
    ) -> FetchResult:
        try:
            business_id = await self.resolver.resolve(url_business_id, token)
            key = key_for(business_id)
            cached = self.cache.get(key)
            if cached is not None:
                log.info(f"Using cached {label} data for {business_id}")
                return FetchResult(cached, CACHE)

            result = await fetch(business_id)
            self.cache.put(key, result.data, self.ttl_ms)
            return result
        except (FetchError, httpx.HTTPError) as ex:
            log.warning(f"{label} unavailable for {url_business_id}, serving fallback: {ex}")
            return FetchResult(fallback(), FALLBACK, ex)
        except Exception as ex:
            log.error(f"{label} failed for {url_business_id}, serving fallback: {ex}")
            return FetchResult(fallback(), FALLBACK, ex)

    async def _try_get(self, path: str, token: Optional[str], params: Optional[dict] = None) -> Any:
        """GET that reports failure as None (used while aggregating)."""
        try:
            return await get_json(self._http(), path, token=token, params=params)
        except FetchError as ex:
            if ex.status_code == 404:
                log.info(f"{path} not available on backend")
            else:
                log.warning(f"Aggregate fetch failed: {ex}")
            return None

    # ── Public API ───────────────────────────────────────────────────────────

    async def get_business_analytics(
        self,
        business_id: str,
        date_range: str = "month",
        token: Optional[str] = None,
    ) -> FetchResult:
        async def fetch(bid: str) -> FetchResult:
            try:
                data = await get_json(
                    self._http(), analytics_path(bid, "comprehensive"),
                    token=token, params={"period": date_range},
                )
                if data is not None:
                    return FetchResult(data, LIVE)
            except FetchError as ex:
                log.warning(f"Comprehensive analytics unavailable, aggregating: {ex}")

            limit  = {"limit": AGGREGATE_LIMIT}
            stats  = await self._try_get(analytics_path(bid, "stats"), token)
            orders = await self._try_get(analytics_path(bid, "recent_orders"), token, limit)
            appts  = await self._try_get(analytics_path(bid, "upcoming_appointments"), token, limit)
            data = aggregate_analytics(
                stats if isinstance(stats, dict) else None,
                _as_list(orders, "recentOrders"),
                _as_list(appts, "upcomingAppointments"),
            )
            return FetchResult(data, AGGREGATE)

        try:
            check_date_range(date_range)
        except ValueError as ex:
            log.warning(f"Analytics request rejected: {ex}")
            return FetchResult(fallback_analytics(), FALLBACK, ex)

        return await self._cached(
            "analytics",
            lambda bid: cache_key("analytics", bid, date_range),
            business_id, token, fetch, fallback_analytics,
        )

    async def get_revenue_chart_data(
        self,
        business_id: str,
        period: str = "week",
        token: Optional[str] = None,
    ) -> FetchResult:
        async def fetch(bid: str) -> FetchResult:
            data = await get_json(
                self._http(), analytics_path(bid, "revenue"),
                token=token, params={"period": period},
            )
            return FetchResult(self._require(data, "revenue"), LIVE)

        try:
            check_date_range(period)
        except ValueError as ex:
            log.warning(f"Revenue request rejected: {ex}")
            return FetchResult(fallback_revenue_chart(period), FALLBACK, ex)

        return await self._cached(
            "revenue",
            lambda bid: cache_key("revenue", bid, period),
            business_id, token, fetch, lambda: fallback_revenue_chart(period),
        )

    async def get_customer_analytics(self, business_id: str, token: Optional[str] = None) -> FetchResult:
        async def fetch(bid: str) -> FetchResult:
            data = await get_json(self._http(), analytics_path(bid, "customers"), token=token)
            return FetchResult(self._require(data, "customers"), LIVE)

        return await self._cached(
            "customer",
            lambda bid: cache_key("customers", bid),
            business_id, token, fetch, fallback_customers,
        )

    async def get_performance_metrics(self, business_id: str, token: Optional[str] = None) -> FetchResult:
        async def fetch(bid: str) -> FetchResult:
            data = await get_json(self._http(), analytics_path(bid, "performance"), token=token)
            return FetchResult(self._require(data, "performance"), LIVE)

        return await self._cached(
            "performance",
            lambda bid: cache_key("performance", bid),
            business_id, token, fetch, fallback_performance,
        )

    @staticmethod
    def _require(data: Any, label: str) -> Any:
        if data is None:
            raise FetchError(label, "empty response body")
        return data
