import asyncio

import httpx

from khanut.core.cache import TTLCache
from khanut.core.errors import FetchError
from khanut.services.business_analytics import BusinessAnalyticsService, aggregate_analytics
from khanut.services.fallbacks import (
    fallback_analytics,
    fallback_customers,
    fallback_performance,
    fallback_revenue_chart,
)

BASE = "/api/analytics/business/biz1"


def _service(backend, clock, ttl_ms=1000):
    return BusinessAnalyticsService(TTLCache(clock=clock), client=backend.client(), ttl_ms=ttl_ms)


def test_comprehensive_analytics_is_fetched_then_cached(backend, clock):
    payload = {"revenue": {"total": 1}, "orders": {}, "customers": {}, "appointments": {}}
    backend.add(f"{BASE}/comprehensive", payload)
    svc = _service(backend, clock)

    async def _inner():
        first = await svc.get_business_analytics("biz1", "week")
        second = await svc.get_business_analytics("biz1", "week")
        return first, second

    first, second = asyncio.run(_inner())
    assert first.source == "live" and first.data == payload
    assert second.source == "cache" and second.data == payload
    assert backend.paths() == [f"{BASE}/comprehensive"]
    assert backend.calls[0].url.params["period"] == "week"
    assert svc.cache.get("analytics_biz1_week") == payload


def test_analytics_aggregates_individual_endpoints(backend, clock):
    backend.add(f"{BASE}/stats", {
        "totalRevenue": 5000, "totalOrders": 10,
        "totalCustomers": 13, "totalAppointments": 7,
    })
    backend.add(f"{BASE}/recent-orders", [
        {"id": "o1", "status": "pending"},
        {"id": "o2", "status": "completed"},
        {"id": "o3", "status": "completed"},
    ])
    backend.add(f"{BASE}/upcoming-appointments", {"upcomingAppointments": [{"id": "a1"}, {"id": "a2"}]})
    svc = _service(backend, clock)

    result = asyncio.run(svc.get_business_analytics("biz1"))

    assert result.source == "aggregate"
    assert result.data == {
        "revenue": {"total": 5000, "today": 0, "thisWeek": 0, "thisMonth": 5000},
        "orders": {"total": 10, "today": 0, "thisWeek": 0, "thisMonth": 10, "pending": 1, "completed": 2},
        "customers": {"total": 13, "new": 3, "returning": 10},
        "appointments": {"total": 7, "today": 0, "thisWeek": 0, "upcoming": 2, "completed": 5},
    }
    by_path = {r.url.path: r for r in backend.calls}
    assert by_path[f"{BASE}/recent-orders"].url.params["limit"] == "10"
    assert by_path[f"{BASE}/upcoming-appointments"].url.params["limit"] == "10"
    assert svc.cache.get("analytics_biz1_month") == result.data


def test_analytics_with_unreachable_backend_aggregates_zeros(backend, clock):
    for endpoint in ("comprehensive", "stats", "recent-orders", "upcoming-appointments"):
        backend.fail(f"{BASE}/{endpoint}")
    svc = _service(backend, clock)

    result = asyncio.run(svc.get_business_analytics("biz1", "month"))

    assert result.source == "aggregate"
    assert result.data["revenue"]["total"] == 0
    assert result.data["customers"] == {"total": 0, "new": 0, "returning": 0}
    assert result.data["appointments"]["completed"] == 0


def test_analytics_unknown_range_serves_fallback_without_requests(backend, clock):
    svc = _service(backend, clock)
    result = asyncio.run(svc.get_business_analytics("biz1", "decade"))
    assert result.is_fallback
    assert isinstance(result.error, ValueError)
    assert result.data == fallback_analytics()
    assert backend.calls == []


def test_revenue_http_error_falls_back_and_is_not_cached(backend, clock):
    backend.add(f"{BASE}/revenue", {"message": "boom"}, status=500)
    svc = _service(backend, clock)

    async def _inner():
        return [await svc.get_revenue_chart_data("biz1", "month") for _ in range(2)]

    first, second = asyncio.run(_inner())
    assert first.is_fallback and not first.ok
    assert isinstance(first.error, FetchError) and first.error.status_code == 500
    assert first.data == fallback_revenue_chart("month")
    assert second.is_fallback
    assert len(backend.calls) == 2
    assert len(svc.cache) == 0


def test_revenue_refetched_after_ttl(backend, clock):
    chart = {"labels": ["Mon"], "datasets": []}
    backend.add(f"{BASE}/revenue", chart)
    svc = _service(backend, clock, ttl_ms=1000)

    async def _inner():
        a = await svc.get_revenue_chart_data("biz1", "week")
        clock.advance(500)
        b = await svc.get_revenue_chart_data("biz1", "week")
        clock.advance(1000)
        c = await svc.get_revenue_chart_data("biz1", "week")
        return a, b, c

    a, b, c = asyncio.run(_inner())
    assert (a.source, b.source, c.source) == ("live", "cache", "live")
    assert len(backend.calls) == 2


def test_periods_are_cached_separately(backend, clock):
    backend.add(f"{BASE}/revenue", {"labels": [], "datasets": []})
    svc = _service(backend, clock)

    async def _inner():
        await svc.get_revenue_chart_data("biz1", "week")
        await svc.get_revenue_chart_data("biz1", "year")

    asyncio.run(_inner())
    assert set(svc.cache.summary()) == {"revenue_biz1_week", "revenue_biz1_year"}


def test_customers_malformed_json_falls_back(backend, clock):
    backend.add(f"{BASE}/customers", "<html>oops</html>")
    svc = _service(backend, clock)
    result = asyncio.run(svc.get_customer_analytics("biz1"))
    assert result.is_fallback
    assert result.data == fallback_customers()
    assert "malformed" in str(result.error)


def test_customers_connection_error_falls_back(backend, clock):
    backend.fail(f"{BASE}/customers", httpx.ReadTimeout("timed out"))
    svc = _service(backend, clock)
    result = asyncio.run(svc.get_customer_analytics("biz1"))
    assert result.is_fallback
    assert result.data["sources"][0] == {"name": "Direct", "value": 35}


def test_performance_live_uses_key_without_period(backend, clock):
    perf = {"revenue": {"total": 10, "target": 20, "growth": 1}}
    backend.add(f"{BASE}/performance", perf)
    svc = _service(backend, clock)
    result = asyncio.run(svc.get_performance_metrics("biz1"))
    assert result.source == "live" and result.ok
    assert svc.cache.get("performance_biz1") == perf


def test_performance_fallback(backend, clock):
    svc = _service(backend, clock)
    result = asyncio.run(svc.get_performance_metrics("biz1"))
    assert result.is_fallback
    assert result.data == fallback_performance()


def test_token_resolves_business_id_and_is_forwarded(backend, clock):
    backend.add("/api/business/status", {"businessId": "real-biz"})
    backend.add("/api/analytics/business/real-biz/performance", {"orders": {"total": 3}})
    svc = _service(backend, clock)

    result = asyncio.run(svc.get_performance_metrics("url-biz", token="tok-1"))

    assert result.source == "live"
    assert svc.cache.get("performance_real-biz") == {"orders": {"total": 3}}
    perf_call = backend.calls[-1]
    assert perf_call.url.path == "/api/analytics/business/real-biz/performance"
    assert perf_call.headers["Authorization"] == "Bearer tok-1"


def test_aggregate_rounds_half_up():
    data = aggregate_analytics({"totalCustomers": 12.5}, None, None)
    assert data["customers"]["new"] == 3
    data = aggregate_analytics({"totalCustomers": 13}, None, None)
    assert data["customers"] == {"total": 13, "new": 3, "returning": 10}


def test_aggregate_counts_order_statuses_and_missing_stats():
    data = aggregate_analytics(None, [{"status": "pending"}, {"status": "cancelled"}], [{"id": "a"}])
    assert data["orders"]["pending"] == 1
    assert data["orders"]["completed"] == 0
    assert data["appointments"] == {"total": 0, "today": 0, "thisWeek": 0, "upcoming": 1, "completed": -1}


def test_analytics_with_string_counts_still_aggregates(backend, clock):
    backend.add(f"{BASE}/stats", {"totalCustomers": "13", "totalAppointments": "7", "totalRevenue": "n/a"})
    backend.add(f"{BASE}/upcoming-appointments", ["a1", {"id": "a2"}])
    backend.add(f"{BASE}/recent-orders", {"recentOrders": ["junk", {"status": "pending"}]})
    svc = _service(backend, clock)

    result = asyncio.run(svc.get_business_analytics("biz1"))

    assert result.source == "aggregate"
    assert result.data["customers"] == {"total": 13, "new": 3, "returning": 10}
    assert result.data["appointments"]["completed"] == 5
    assert result.data["revenue"]["total"] == 0
    assert result.data["orders"]["pending"] == 1


def test_unexpected_error_serves_fallback(backend, clock, monkeypatch):
    from khanut.services import business_analytics

    def broken(*args):
        raise TypeError("unsupported operand")

    monkeypatch.setattr(business_analytics, "aggregate_analytics", broken)
    svc = _service(backend, clock)

    result = asyncio.run(svc.get_business_analytics("biz1"))

    assert result.is_fallback
    assert isinstance(result.error, TypeError)
    assert result.data == fallback_analytics()
    assert len(svc.cache) == 0
