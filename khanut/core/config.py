"""
khanut/core/config.py  ── Khanut Analytics Backend
═══════════════════════════════════════════════════════════════════════════════
All settings come from environment variables, read once at import time.

  KHANUT_API_URL          →  base URL of the Khanut REST backend
  KHANUT_ENV              →  "development" (log events) | "production" (post events), else dropped
  KHANUT_CACHE_TTL_MS     →  analytics cache lifetime, default 5 minutes
  KHANUT_SWEEP_INTERVAL_S →  how often expired cache entries are swept
  KHANUT_HTTP_TIMEOUT_S   →  upstream request timeout
  KHANUT_LOG_LEVEL        →  root log level
═══════════════════════════════════════════════════════════════════════════════
"""

import os
import pytz

EAT = pytz.timezone("Africa/Addis_Ababa")

# ── Backend ──────────────────────────────────────────────────────────────────
API_URL = os.environ.get("KHANUT_API_URL", "http://localhost:4000").rstrip("/")
ENV     = os.environ.get("KHANUT_ENV", "development").lower()
IS_PRODUCTION = ENV == "production"

HTTP_TIMEOUT_S = float(os.environ.get("KHANUT_HTTP_TIMEOUT_S", "15"))
LOG_LEVEL      = os.environ.get("KHANUT_LOG_LEVEL", "INFO").upper()

# ── Cache ────────────────────────────────────────────────────────────────────
DEFAULT_TTL_MS   = 5 * 60 * 1000
CACHE_TTL_MS     = int(os.environ.get("KHANUT_CACHE_TTL_MS", str(DEFAULT_TTL_MS)))
SWEEP_INTERVAL_S = int(os.environ.get("KHANUT_SWEEP_INTERVAL_S", "600"))

# ── Endpoints ────────────────────────────────────────────────────────────────
ANALYTICS_BASE   = "/api/analytics/business/{business_id}"
BUSINESS_STATUS  = "/api/business/status"
BUSINESS_LOOKUP  = "/api/businesses/{business_id}"
TRACK_VIEW       = "/api/analytics/view"
TRACK_EVENT      = "/api/analytics/event"

ANALYTICS_ENDPOINTS: dict[str, str] = {
    "comprehensive":         "comprehensive",
    "stats":                 "stats",
    "revenue":               "revenue",
    "customers":             "customers",
    "performance":           "performance",
    "services":              "services",
    "recent_orders":         "recent-orders",
    "upcoming_appointments": "upcoming-appointments",
}

DATE_RANGES = ("today", "week", "month", "year")

# ── Chart styling (matches the dashboard front end) ─────────────────────────
REVENUE_LINE = {
    "borderColor":     "rgb(99, 102, 241)",
    "backgroundColor": "rgba(99, 102, 241, 0.5)",
}
SERVICE_COLORS = {
    "backgroundColor": [
        "rgba(99, 102, 241, 0.7)",
        "rgba(16, 185, 129, 0.7)",
        "rgba(249, 115, 22, 0.7)",
    ],
    "borderColor": [
        "rgb(99, 102, 241)",
        "rgb(16, 185, 129)",
        "rgb(249, 115, 22)",
    ],
}
CURRENT_SERIES  = {"borderColor": "hsl(24, 100%, 50%)",  "backgroundColor": "hsla(24, 100%, 50%, 0.5)"}
PREVIOUS_SERIES = {"borderColor": "hsl(210, 100%, 50%)", "backgroundColor": "hsla(210, 100%, 50%, 0.5)"}


def analytics_path(business_id: str, endpoint: str) -> str:
    """'abc123', 'recent_orders' → '/api/analytics/business/abc123/recent-orders'"""
    return f"{ANALYTICS_BASE.format(business_id=business_id)}/{ANALYTICS_ENDPOINTS[endpoint]}"


def check_date_range(value: str) -> str:
    if value not in DATE_RANGES:
        raise ValueError(f"Unknown date range '{value}' (expected one of {', '.join(DATE_RANGES)})")
    return value
