from __future__ import annotations

import logging
from typing import List, Optional, Dict, Any

import httpx

from nearme.models.schemas import Coordinates, PlaceRecord

logger = logging.getLogger(__name__)

PLACES_BASE = "https://places.googleapis.com/v1"

_PLACE_FIELDS = [
    "id",
    "displayName",
    "location",
    "rating",
    "userRatingCount",
    "types",
    "currentOpeningHours.openNow",
    "photos",
    "shortFormattedAddress",
    "formattedAddress",
]
SEARCH_FIELD_MASK = ",".join(f"places.{f}" for f in _PLACE_FIELDS)
DETAILS_FIELD_MASK = ",".join(_PLACE_FIELDS + ["nationalPhoneNumber", "internationalPhoneNumber", "websiteUri"])

# Places API (v1) error statuses -> codes the proxy reports to clients
UPSTREAM_STATUS_CODES = {
    "RESOURCE_EXHAUSTED": "OVER_QUERY_LIMIT",
    "PERMISSION_DENIED": "REQUEST_DENIED",
    "UNAUTHENTICATED": "REQUEST_DENIED",
    "INVALID_ARGUMENT": "INVALID_REQUEST",
    "NOT_FOUND": "NOT_FOUND",
}

ERROR_MESSAGES = {
    "OVER_QUERY_LIMIT": "API quota exceeded",
    "REQUEST_DENIED": "API request denied",
    "INVALID_REQUEST": "Invalid request parameters",
    "NOT_FOUND": "Place not found",
    "UNKNOWN_ERROR": "Unknown error occurred",
    "API_ERROR": "Failed to fetch places data",
}


class PlacesUpstreamError(Exception):
    def __init__(self, code: str, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Failed to fetch places")
        super().__init__(f"{self.code}: {self.message}")


def _map_place_to_record(place: Dict[str, Any]) -> Optional[PlaceRecord]:
    loc = place.get("location") or {}
    if loc.get("latitude") is None or loc.get("longitude") is None:
        return None
    display_name = place.get("displayName", {})
    photos = place.get("photos") or []
    opening = place.get("currentOpeningHours") or {}
    return PlaceRecord(
        id=place.get("id"),
        name=(display_name.get("text") if isinstance(display_name, dict) else display_name) or "",
        location=Coordinates(latitude=loc["latitude"], longitude=loc["longitude"]),
        rating=place.get("rating"),
        userRatingsTotal=place.get("userRatingCount"),
        types=place.get("types", []) or [],
        openNow=opening.get("openNow"),
        photoRef=photos[0].get("name") if photos else None,
        phone=place.get("nationalPhoneNumber") or place.get("internationalPhoneNumber"),
        website=place.get("websiteUri"),
        address=place.get("shortFormattedAddress") or place.get("formattedAddress"),
    )


def _circle(lat: float, lng: float, radius_meters: float) -> Dict[str, Any]:
    return {
        "circle": {
            "center": {"latitude": lat, "longitude": lng},
            "radius": float(radius_meters),
        }
    }


class PlacesClient:
    """Google Places API (v1) client used by the proxy server."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _request(
        self,
        method: str,
        path: str,
        field_mask: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
        }
        if json_body is not None:
            headers["Content-Type"] = "application/json"
        url = f"{PLACES_BASE}/{path}"
        try:
            resp = await self._client.request(method, url, headers=headers, json=json_body)
        except httpx.HTTPError as e:
            logger.error("Google Places API error: %s", e)
            raise PlacesUpstreamError("API_ERROR") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
                detail = body.get("error", {}) if isinstance(body, dict) else {}
            except ValueError:
                detail = {"message": resp.text}
            status = detail.get("status") if isinstance(detail, dict) else None
            code = UPSTREAM_STATUS_CODES.get(status or "", "UNKNOWN_ERROR")
            logger.warning("Places API error %s (%s): %s", resp.status_code, status, detail)
            raise PlacesUpstreamError(code)
        try:
            return resp.json()
        except ValueError as e:
            raise PlacesUpstreamError("UNKNOWN_ERROR") from e

    async def search_nearby(
        self,
        lat: float,
        lng: float,
        radius_meters: int,
        place_type: Optional[str] = None,
        keyword: Optional[str] = None,
        max_result_count: int = 20,
    ) -> List[PlaceRecord]:
        """
        Nearby search around (lat, lng). A keyword switches to text search biased
        to the same circle, since nearby search has no free-text parameter.
        Zero matches is an empty list, not an error.
        """
        if keyword:
            body: Dict[str, Any] = {
                "textQuery": keyword,
                "locationBias": _circle(lat, lng, radius_meters),
                "maxResultCount": max_result_count,
            }
            if place_type:
                body["includedType"] = place_type
            data = await self._request("POST", "places:searchText", SEARCH_FIELD_MASK, body)
        else:
            body = {
                "maxResultCount": max_result_count,
                "locationRestriction": _circle(lat, lng, radius_meters),
            }
            if place_type:
                body["includedTypes"] = [place_type]
            data = await self._request("POST", "places:searchNearby", SEARCH_FIELD_MASK, body)

        places = data.get("places", []) or []
        results = [r for r in (_map_place_to_record(p) for p in places) if r is not None]
        logger.debug(
            "search_nearby lat=%.6f lng=%.6f radius=%s type=%s keyword=%s got %d results",
            lat, lng, radius_meters, place_type, keyword, len(results),
        )
        return results

    async def get_place_details(self, place_id: str) -> PlaceRecord:
        data = await self._request("GET", f"places/{place_id}", DETAILS_FIELD_MASK)
        record = _map_place_to_record(data)
        if record is None:
            raise PlacesUpstreamError("NOT_FOUND")
        return record

    async def aclose(self) -> None:
        await self._client.aclose()
