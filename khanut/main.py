"""
khanut/main.py  ── Khanut Analytics Backend
Startup: builds the analytics cache and services, launches the cache sweeper.
Shutdown: cancels the sweeper and waits for it, then closes HTTP clients.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from khanut.core.cache import TTLCache
from khanut.core.config import API_URL, CACHE_TTL_MS, ENV, LOG_LEVEL, SWEEP_INTERVAL_S
from khanut.core.http_client import close_all
from khanut.core.scheduler import run_sweeper
from khanut.routers import analytics, tracking
from khanut.services.business_analytics import BusinessAnalyticsService
from khanut.services.business_resolver import BusinessResolver

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Khanut analytics backend v{VERSION} starting ({ENV}, backend {API_URL})")
    cache = TTLCache()
    app.state.cache = cache
    app.state.analytics = BusinessAnalyticsService(cache, resolver=BusinessResolver())
    sweeper = asyncio.create_task(run_sweeper(cache, SWEEP_INTERVAL_S))
    yield
    log.info("Shutting down...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    await close_all()


app = FastAPI(
    title="Khanut Analytics API",
    description=(
        "Dashboard analytics for Khanut businesses. "
        "Responses from the Khanut backend are cached for "
        f"{CACHE_TTL_MS // 1000}s per business and period; "
        "dashboards fall back to default figures when the backend is unreachable."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(analytics.router)
app.include_router(tracking.router)


@app.get("/", tags=["meta"])
async def root():
    return {
        "status":  "online",
        "version": VERSION,
        "backend": API_URL,
        "endpoints": {
            "analytics":             "/business/{id}/analytics?range={today|week|month|year}",
            "revenue":               "/business/{id}/analytics/revenue?period={today|week|month|year}",
            "customers":             "/business/{id}/analytics/customers",
            "performance":           "/business/{id}/analytics/performance",
            "stats":                 "/business/{id}/dashboard/stats",
            "revenue_chart":         "/business/{id}/dashboard/revenue?period=",
            "services":              "/business/{id}/dashboard/services",
            "recent_orders":         "/business/{id}/dashboard/recent-orders?limit=",
            "upcoming_appointments": "/business/{id}/dashboard/upcoming-appointments?limit=",
            "track_business_view":   "POST /track/business-view",
            "track_service_view":    "POST /track/service-view",
            "track_event":           "POST /track/event",
            "health":                "/health",
            "docs":                  "/docs",
        },
    }


@app.get("/health", tags=["meta"])
async def health(request: Request):
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        return {"status": "warming_up", "cache_entries": 0, "cache_keys": {}}
    return {
        "status":        "healthy",
        "cache_entries": len(cache),
        "cache_keys":    cache.summary(),
    }
