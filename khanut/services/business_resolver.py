"""
khanut/services/business_resolver.py
═══════════════════════════════════════════════════════════════════════════════
The business id in a dashboard URL is not always the id the backend uses for
the signed-in owner. Resolution order:

  1. no token                           → URL id
  2. GET /api/business/status           → its businessId (remembered per token)
  3. id remembered for this token       → that id
  4. GET /api/businesses/{url id}       → URL id (verified or not)

Remembered ids are kept for the MAX_REMEMBERED most recent tokens.

Never raises; the URL id is always a usable answer.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import threading
from collections import OrderedDict
from typing import Optional

import httpx

from khanut.core.config import BUSINESS_LOOKUP, BUSINESS_STATUS
from khanut.core.errors import FetchError
from khanut.core.http_client import api_client, get_json

log = logging.getLogger("resolver")

MAX_REMEMBERED = 1024


class BusinessResolver:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._known: OrderedDict[str, str] = OrderedDict()   # token → business id, oldest first
        self._lock = threading.Lock()

    def _http(self) -> httpx.AsyncClient:
        return self._client or api_client()

    def remembered(self, token: str) -> Optional[str]:
        with self._lock:
            business_id = self._known.get(token)
            if business_id is not None:
                self._known.move_to_end(token)
            return business_id

    def _remember(self, token: str, business_id: str) -> None:
        with self._lock:
            self._known[token] = business_id
            self._known.move_to_end(token)
            while len(self._known) > MAX_REMEMBERED:
                self._known.popitem(last=False)

    async def resolve(self, url_business_id: str, token: Optional[str] = None) -> str:
        if not token:
            log.debug(f"No auth token, using URL business id {url_business_id}")
            return url_business_id

        try:
            status = await get_json(self._http(), BUSINESS_STATUS, token=token)
            business_id = status.get("businessId") if isinstance(status, dict) else None
            if business_id:
                if business_id != url_business_id:
                    log.info(f"Status API business id {business_id} differs from URL id {url_business_id}")
                self._remember(token, business_id)
                return business_id
        except FetchError as ex:
            log.warning(f"Business status lookup failed: {ex}")

        stored = self.remembered(token)
        if stored:
            log.info(f"Using remembered business id {stored}")
            return stored

        try:
            await get_json(self._http(), BUSINESS_LOOKUP.format(business_id=url_business_id), token=token)
            log.info(f"Verified URL business id {url_business_id}")
        except FetchError as ex:
            log.warning(f"Could not verify URL business id {url_business_id}: {ex}")
        return url_business_id
