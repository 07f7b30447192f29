"""
Normalized error kinds for everything the search core talks to.

Providers translate transport and upstream failures into one of these before
the orchestrator sees them; the message is meant to be shown to the user as is.
"""
from __future__ import annotations

from nearme.models.schemas import ErrorKind, SearchFailure


class NearmeError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_failure(self) -> SearchFailure:
        return SearchFailure(kind=self.kind, message=self.message)


class PermissionDenied(NearmeError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Location permission is denied. Please enable location access for this app in Settings."


class LocationUnavailable(NearmeError):
    kind = ErrorKind.LOCATION_UNAVAILABLE
    default_message = "Unable to get your location. Make sure location services are turned on and try again."


class NetworkError(NearmeError):
    kind = ErrorKind.NETWORK_ERROR
    default_message = "Failed to load places. Check your connection."


class InvalidRequest(NearmeError):
    kind = ErrorKind.INVALID_REQUEST
    default_message = "Invalid request parameters"


class ProviderError(NearmeError):
    kind = ErrorKind.PROVIDER_ERROR
    default_message = "Failed to fetch places"


class UnknownError(NearmeError):
    kind = ErrorKind.UNKNOWN_ERROR
