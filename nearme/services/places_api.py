"""Async client for the nearme proxy server (the places provider of the search core)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from nearme.models.schemas import Category, PlaceRecord
from nearme.services.errors import InvalidRequest, NetworkError, ProviderError, UnknownError

logger = logging.getLogger(__name__)

# Error codes the proxy uses for rejected parameters
INVALID_REQUEST_CODES = {"Missing required parameters", "Invalid parameters", "INVALID_REQUEST", "Missing placeId"}


class PlacesApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Places API timeout on %s: %s", path, e)
            raise NetworkError("Request timed out. Check your connection and try again.") from e
        except httpx.TransportError as e:
            logger.warning("Places API connection error on %s: %s", path, e)
            raise NetworkError(f"Cannot connect to server. Make sure your server is running on {self.base_url}") from e

        try:
            body = resp.json()
        except ValueError as e:
            logger.error("Places API returned non-JSON body (status %s)", resp.status_code)
            raise UnknownError("Unexpected response from server") from e
        if not isinstance(body, dict):
            raise UnknownError("Unexpected response from server")

        if resp.status_code == 400 and body.get("error") in INVALID_REQUEST_CODES:
            raise InvalidRequest(body.get("message") or body.get("error"))
        if resp.status_code >= 400 or not body.get("success"):
            logger.warning("Places API error on %s: status=%s error=%s", path, resp.status_code, body.get("error"))
            raise ProviderError(body.get("message") or ProviderError.default_message)
        return body

    async def search_nearby(
        self,
        lat: float,
        lng: float,
        radius: int = 1500,
        category: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> List[PlaceRecord]:
        params: Dict[str, Any] = {"lat": lat, "lng": lng, "radius": radius}
        if category:
            params["type"] = category
        if keyword:
            params["keyword"] = keyword
        body = await self._get("/places/nearby", params=params)
        try:
            return [PlaceRecord(**p) for p in body.get("data") or []]
        except (TypeError, ValidationError) as e:
            raise UnknownError("Unexpected place data from server") from e

    async def get_details(self, place_id: str) -> PlaceRecord:
        body = await self._get(f"/places/details/{place_id}")
        try:
            return PlaceRecord(**body["data"])
        except (KeyError, TypeError, ValidationError) as e:
            raise UnknownError("Unexpected place data from server") from e

    async def list_categories(self) -> List[Category]:
        body = await self._get("/places/categories")
        try:
            return [Category(**c) for c in body.get("data") or []]
        except (TypeError, ValidationError) as e:
            raise UnknownError("Unexpected category data from server") from e

    async def aclose(self) -> None:
        await self._client.aclose()
