"""
khanut/core/http_client.py
Shared async httpx client for the Khanut REST backend.
  • api_client()  → lazily (re)created client bound to KHANUT_API_URL
  • get_json()    → GET + JSON decode, every failure raised as FetchError
  • post_json()   → POST a JSON body, same error contract
"""

import logging
from typing import Any, Optional

import httpx

from khanut.core.config import API_URL, HTTP_TIMEOUT_S
from khanut.core.errors import FetchError

log = logging.getLogger("http")

_api_client: httpx.AsyncClient | None = None

_LIMITS  = httpx.Limits(max_connections=20, max_keepalive_connections=10)
_TIMEOUT = httpx.Timeout(HTTP_TIMEOUT_S, connect=5.0)
_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def api_client() -> httpx.AsyncClient:
    global _api_client
    if _api_client is None or _api_client.is_closed:
        _api_client = httpx.AsyncClient(
            base_url=API_URL,
            headers=_HEADERS,
            timeout=_TIMEOUT,
            follow_redirects=True,
            limits=_LIMITS,
        )
    return _api_client


def auth_headers(token: Optional[str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


async def get_json(
    client: httpx.AsyncClient,
    path: str,
    token: Optional[str] = None,
    params: Optional[dict] = None,
) -> Any:
    try:
        resp = await client.get(path, params=params, headers=auth_headers(token))
    except httpx.HTTPError as ex:
        raise FetchError(path, f"request failed: {ex}") from ex
    return _decode(resp, path)


async def post_json(
    client: httpx.AsyncClient,
    path: str,
    body: dict,
    token: Optional[str] = None,
) -> Any:
    try:
        resp = await client.post(path, json=body, headers=auth_headers(token))
    except httpx.HTTPError as ex:
        raise FetchError(path, f"request failed: {ex}") from ex
    return _decode(resp, path)


def _decode(resp: httpx.Response, path: str) -> Any:
    if not resp.is_success:
        raise FetchError(path, f"HTTP {resp.status_code}", status_code=resp.status_code)
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as ex:
        raise FetchError(path, "malformed JSON", status_code=resp.status_code) from ex


async def close_all() -> None:
    if _api_client and not _api_client.is_closed:
        await _api_client.aclose()
