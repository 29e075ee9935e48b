"""
khanut/routers/tracking.py
═══════════════════════════════════════════════════════════════════════════════
Endpoints:
  POST /track/business-view   {businessId, customerId?}            → {"sent"}
  POST /track/service-view    {serviceId, businessId, customerId?} → {"sent"}
  POST /track/event           {eventType, data}                    → {"sent"}

Always 200: "sent" is false outside production or when the backend refused
the event. The caller's Authorization header is forwarded.
═══════════════════════════════════════════════════════════════════════════════
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, Request
from pydantic import BaseModel, Field

from khanut.routers.analytics import _client, _token
from khanut.services import tracking

router = APIRouter(prefix="/track", tags=["tracking"])


# ── Schemas ──────────────────────────────────────────────────────────────────

class BusinessViewReq(BaseModel):
    businessId: str = Field(..., min_length=1)
    customerId: Optional[str] = None


class ServiceViewReq(BaseModel):
    serviceId:  str = Field(..., min_length=1)
    businessId: str = Field(..., min_length=1)
    customerId: Optional[str] = None


class EventReq(BaseModel):
    eventType: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


# ── Routes ───────────────────────────────────────────────────────────────────

@router.post("/business-view")
async def business_view(
    req: BusinessViewReq,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    sent = await tracking.track_business_view(
        req.businessId, req.customerId, _client(request), _token(authorization),
    )
    return {"sent": sent}


@router.post("/service-view")
async def service_view(
    req: ServiceViewReq,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    sent = await tracking.track_service_view(
        req.serviceId, req.businessId, req.customerId, _client(request), _token(authorization),
    )
    return {"sent": sent}


@router.post("/event")
async def event(
    req: EventReq,
    request: Request,
    authorization: Optional[str] = Header(None),
):
    sent = await tracking.track_interaction(req.eventType, req.data, _client(request), _token(authorization))
    return {"sent": sent}
