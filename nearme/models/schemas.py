from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from nearme.utils.distance import format_distance


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    category: Optional[str] = Field(default=None, description="Provider search-type token, e.g. 'cafe'")

    @field_validator("category")
    @classmethod
    def blank_category_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class Category(BaseModel):
    id: str
    name: str
    icon: str
    type: str


class PlaceRecord(BaseModel):
    """A place as returned by the places provider. Never mutated after parsing."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: Coordinates
    rating: Optional[float] = None
    userRatingsTotal: Optional[int] = None
    types: List[str] = Field(default_factory=list)
    openNow: Optional[bool] = None
    photoRef: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None


class PlaceResult(PlaceRecord):
    distanceMeters: float

    @computed_field  # type: ignore[misc]
    @property
    def distanceLabel(self) -> str:
        return format_distance(self.distanceMeters)


class SearchResultSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    places: List[PlaceResult] = Field(default_factory=list)
    fetched_at: Optional[datetime] = None
    filters: SearchFilters = Field(default_factory=SearchFilters)
    origin_location: Optional[Coordinates] = None

    def __len__(self) -> int:
        return len(self.places)


class ErrorKind(str, Enum):
    PERMISSION_DENIED = "PermissionDenied"
    LOCATION_UNAVAILABLE = "LocationUnavailable"
    NETWORK_ERROR = "NetworkError"
    INVALID_REQUEST = "InvalidRequest"
    PROVIDER_ERROR = "ProviderError"
    UNKNOWN_ERROR = "UnknownError"


class SearchStatus(str, Enum):
    IDLE = "idle"
    LOCATING_DEVICE = "locating_device"
    SEARCHING = "searching"
    READY = "ready"
    FAILED = "failed"


class SearchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str


class SearchState(BaseModel):
    """Snapshot of everything a consumer may render. Replaced, never edited."""

    model_config = ConfigDict(frozen=True)

    location: Optional[Coordinates] = None
    filters: SearchFilters = Field(default_factory=SearchFilters)
    results: SearchResultSet = Field(default_factory=SearchResultSet)
    status: SearchStatus = SearchStatus.IDLE
    error: Optional[SearchFailure] = None
    categories: List[Category] = Field(default_factory=list)


# HTTP envelopes served by the proxy


class LatLng(BaseModel):
    lat: float
    lng: float


class NearbyResponse(BaseModel):
    success: bool = True
    data: List[PlaceRecord]
    count: int
    location: LatLng
    radius: int


class DetailsResponse(BaseModel):
    success: bool = True
    data: PlaceRecord


class CategoriesResponse(BaseModel):
    success: bool = True
    data: List[Category]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Server is running"
    timestamp: str
