import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nearme.config import configure_logging, settings
from nearme.models.schemas import (
    CategoriesResponse,
    DetailsResponse,
    ErrorResponse,
    HealthResponse,
    LatLng,
    NearbyResponse,
)
from nearme.services.places_client import PlacesClient, PlacesUpstreamError
from nearme.utils.categories import load_categories_or_fallback

logger = logging.getLogger(__name__)

MAX_RADIUS_METERS = 50000

_places_client: Optional[PlacesClient] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _places_client
    yield
    if _places_client is not None:
        await _places_client.aclose()
        _places_client = None


# Initialize FastAPI app
app = FastAPI(title="nearme places proxy", version="1.0.0", lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load categories once; falls back to the built-in list
CATEGORIES = load_categories_or_fallback(settings.CATEGORIES_FILE)

if not settings.PLACES_API_KEY:
    logger.warning("GOOGLE_PLACES_API_KEY not found in environment variables")


def get_places_client() -> PlacesClient:
    global _places_client
    if not settings.PLACES_API_KEY:
        raise HTTPException(status_code=500, detail="Google Places API key not configured")
    if _places_client is None:
        _places_client = PlacesClient(settings.PLACES_API_KEY, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return _places_client


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(exclude_none=True),
    )


def _parse_coordinate(raw: str, limit: float) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


# Error handling


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Route not found", "path": request.url.path},
        )
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return _error(500, "Something went wrong!")


# Routes


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())


@app.get("/places/nearby", response_model=NearbyResponse)
async def get_nearby_places(
    lat: Optional[str] = Query(default=None),
    lng: Optional[str] = Query(default=None),
    radius: str = Query(default="1500"),
    type: Optional[str] = Query(default=None),
    keyword: Optional[str] = Query(default=None),
    client: PlacesClient = Depends(get_places_client),
):
    """Places around lat/lng, optionally narrowed by type and keyword"""
    if not lat or not lng:
        return _error(400, "Missing required parameters", "Latitude and longitude are required")

    latitude = _parse_coordinate(lat, 90)
    longitude = _parse_coordinate(lng, 180)
    if latitude is None or longitude is None:
        return _error(400, "Invalid parameters", "Latitude and longitude must be valid numbers")

    try:
        search_radius = int(radius)
    except ValueError:
        return _error(400, "Invalid parameters", "Radius must be a whole number of meters")
    if not 1 <= search_radius <= MAX_RADIUS_METERS:
        return _error(400, "Invalid parameters", f"Radius must be between 1 and {MAX_RADIUS_METERS} meters")

    try:
        places = await client.search_nearby(
            latitude,
            longitude,
            search_radius,
            place_type=type or None,
            keyword=(keyword or "").strip() or None,
        )
    except PlacesUpstreamError as e:
        return _error(400, e.code, e.message)

    return NearbyResponse(
        data=places,
        count=len(places),
        location=LatLng(lat=latitude, lng=longitude),
        radius=search_radius,
    )


@app.get("/places/details/{place_id}", response_model=DetailsResponse)
async def get_place_details(place_id: str, client: PlacesClient = Depends(get_places_client)):
    """Full record for one place"""
    if not place_id.strip():
        return _error(400, "Missing placeId")
    try:
        place = await client.get_place_details(place_id)
    except PlacesUpstreamError as e:
        return _error(400, e.code, e.message)
    return DetailsResponse(data=place)


@app.get("/places/categories", response_model=CategoriesResponse)
async def get_categories():
    """Categories the client can filter by"""
    return CategoriesResponse(data=CATEGORIES)


def run() -> None:
    import uvicorn

    configure_logging()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
