from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from nearme.models.schemas import Coordinates
from nearme.services.errors import LocationUnavailable, PermissionDenied

logger = logging.getLogger(__name__)


class StaticGeolocationProvider:
    """Reports a fixed position, e.g. from CLI flags or configuration."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        permission_granted: bool = True,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.permission_granted = permission_granted

    async def get_current_location(self) -> Coordinates:
        if not self.permission_granted:
            raise PermissionDenied()
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable()
        try:
            return Coordinates(latitude=self.latitude, longitude=self.longitude)
        except ValidationError as e:
            raise LocationUnavailable(f"Invalid coordinates: {self.latitude}, {self.longitude}") from e


class IpGeolocationProvider:
    """Approximate position from the public IP address (ipapi.co style JSON)."""

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def get_current_location(self) -> Coordinates:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                headers = {"User-Agent": "nearme/1.0"}
                resp = await client.get(self.url, headers=headers)
                resp.raise_for_status()
                data = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("IP geolocation failed: %s", e)
                raise LocationUnavailable() from e

        if not isinstance(data, dict):
            raise LocationUnavailable()
        lat = data.get("latitude", data.get("lat"))
        lng = data.get("longitude", data.get("lon"))
        if lat is None or lng is None:
            logger.warning("IP geolocation response has no coordinates: %s", data.get("reason") or data)
            raise LocationUnavailable()
        try:
            return Coordinates(latitude=float(lat), longitude=float(lng))
        except (TypeError, ValueError, ValidationError) as e:
            raise LocationUnavailable() from e
