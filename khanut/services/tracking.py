"""
khanut/services/tracking.py
Customer interaction events (profile views, service views, anything else).
Production → POST to the backend. Development → log only. Anything else → dropped.
Tracking must never break a page: failures are logged, not raised.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from khanut.core import config
from khanut.core.errors import FetchError
from khanut.core.http_client import api_client, post_json

log = logging.getLogger("tracking")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def _send(
    path: str,
    body: dict,
    client: Optional[httpx.AsyncClient],
    token: Optional[str] = None,
) -> bool:
    if not config.IS_PRODUCTION:
        if config.ENV == "development":
            log.info(f"Analytics: {body.get('eventType')} {body}")
        return False
    try:
        await post_json(client or api_client(), path, {**body, "timestamp": _now_iso()}, token=token)
        return True
    except FetchError as ex:
        log.error(f"Failed to track {body.get('eventType')}: {ex}")
        return False


async def track_business_view(
    business_id: str,
    customer_id: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    token: Optional[str] = None,
) -> bool:
    return await _send(config.TRACK_VIEW, {
        "businessId": business_id,
        "customerId": customer_id,
        "eventType":  "business_view",
    }, client, token)


async def track_service_view(
    service_id: str,
    business_id: str,
    customer_id: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    token: Optional[str] = None,
) -> bool:
    return await _send(config.TRACK_VIEW, {
        "serviceId":  service_id,
        "businessId": business_id,
        "customerId": customer_id,
        "eventType":  "service_view",
    }, client, token)


async def track_interaction(
    event_type: str,
    data: dict,
    client: Optional[httpx.AsyncClient] = None,
    token: Optional[str] = None,
) -> bool:
    return await _send(config.TRACK_EVENT, {"eventType": event_type, "data": data}, client, token)
