"""
Search orchestration for the "places near me" view.

SearchOrchestrator owns the device location, the search filters and the
derived result set. Every change is published as a new SearchState snapshot,
so map and list consumers always render the same, fully-formed data.

Two counters keep out-of-order responses from landing: each search and each
location fetch takes the next sequence number when it starts, and its result
is applied only if no newer one has started since. A search that lands after
a newer location fetch started still replaces the results, but leaves status
and error to that fetch.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Protocol

from nearme.models.schemas import (
    Category,
    Coordinates,
    PlaceRecord,
    PlaceResult,
    SearchFilters,
    SearchResultSet,
    SearchState,
    SearchStatus,
)
from nearme.services.errors import InvalidRequest, NearmeError, UnknownError
from nearme.services.state_store import Listener, StateStore
from nearme.utils.categories import FALLBACK_CATEGORIES, category_types
from nearme.utils.debounce import Debouncer
from nearme.utils.distance import calculate_distance
from nearme.utils.filters import keyword_for, resolve_filters

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 1500
DEFAULT_DEBOUNCE_SECONDS = 0.5


class PlacesProvider(Protocol):
    async def search_nearby(
        self,
        lat: float,
        lng: float,
        radius: int = ...,
        category: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> List[PlaceRecord]: ...

    async def list_categories(self) -> List[Category]: ...


class GeolocationProvider(Protocol):
    async def get_current_location(self) -> Coordinates: ...


def augment_place(record: PlaceRecord, origin: Coordinates) -> PlaceResult:
    distance = calculate_distance(
        origin.latitude, origin.longitude,
        record.location.latitude, record.location.longitude,
    )
    return PlaceResult(**record.model_dump(include=set(PlaceRecord.model_fields)), distanceMeters=distance)


def build_result_set(
    records: Iterable[PlaceRecord],
    origin: Coordinates,
    filters: SearchFilters,
    fetched_at: Optional[datetime] = None,
) -> SearchResultSet:
    return SearchResultSet(
        places=[augment_place(r, origin) for r in records],
        fetched_at=fetched_at or datetime.now(timezone.utc),
        filters=filters,
        origin_location=origin,
    )


def relocate_results(results: SearchResultSet, origin: Coordinates) -> SearchResultSet:
    """Recompute distances of an existing result set against a new origin."""
    return build_result_set(
        results.places,
        origin,
        results.filters,
        fetched_at=results.fetched_at,
    )


class SearchOrchestrator:
    def __init__(
        self,
        places: PlacesProvider,
        geolocation: GeolocationProvider,
        radius: int = DEFAULT_RADIUS_METERS,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self.places = places
        self.geolocation = geolocation
        self.radius = radius
        self.store = StateStore(SearchState())
        self._debouncer = Debouncer(debounce_seconds)
        self._search_seq = 0
        self._location_seq = 0

    @property
    def state(self) -> SearchState:
        return self.store.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    async def initialize(self) -> None:
        # Categories never hold up or fail the location/search path
        await asyncio.gather(self._load_categories(), self._locate_then_search())

    async def refresh_location(self) -> None:
        await self._locate_then_search()

    def set_query(self, text: str) -> None:
        self.store.update(filters=self.state.filters.model_copy(update={"query": text}))
        self._schedule_search()

    def set_category(self, category_type: Optional[str]) -> None:
        category_type = category_type or None
        if category_type is not None and category_type not in self._known_category_types():
            raise InvalidRequest(f"Unknown category: {category_type}")
        self.store.update(filters=self.state.filters.model_copy(update={"category": category_type}))
        self._schedule_search()

    async def clear_filters(self) -> None:
        self.store.update(filters=SearchFilters())
        await self.search()

    async def search(self, category: Optional[str] = None, keyword: Optional[str] = None) -> None:
        origin = self.state.location
        if origin is None:
            logger.debug("search skipped: no location yet")
            return
        self._debouncer.cancel()

        filters = resolve_filters(self.state.filters, category, keyword)
        self._search_seq += 1
        seq = self._search_seq
        location_seq = self._location_seq
        # previous results stay visible while searching
        self.store.update(status=SearchStatus.SEARCHING, error=None)

        try:
            records = await self.places.search_nearby(
                origin.latitude,
                origin.longitude,
                self.radius,
                filters.category,
                keyword_for(filters),
            )
        except NearmeError as e:
            self._apply_search_failure(seq, location_seq, filters, origin, e)
            return
        except Exception as e:
            logger.exception("Unexpected error from places provider")
            self._apply_search_failure(seq, location_seq, filters, origin, UnknownError(str(e) or None))
            return

        if seq != self._search_seq:
            logger.debug("Discarding stale search #%d (latest #%d)", seq, self._search_seq)
            return
        results = build_result_set(records, origin, filters)
        if location_seq != self._location_seq:
            # a location fetch started after this search owns status and error
            self.store.update(results=results)
        else:
            self.store.update(results=results, status=SearchStatus.READY, error=None)
        logger.info("Search #%d: %d places (category=%s, keyword=%s)", seq, len(records), filters.category, keyword_for(filters))

    async def wait_idle(self) -> None:
        await self._debouncer.join()

    async def aclose(self) -> None:
        await self._debouncer.aclose()

    def _schedule_search(self) -> None:
        if self.state.location is None:
            return
        self._debouncer.schedule(self.search)

    def _apply_search_failure(
        self,
        seq: int,
        location_seq: int,
        filters: SearchFilters,
        origin: Coordinates,
        error: NearmeError,
    ) -> None:
        if seq != self._search_seq:
            logger.debug("Discarding stale search failure #%d: %s", seq, error.message)
            return
        logger.warning("Search #%d failed (%s): %s", seq, error.kind.value, error.message)
        results = SearchResultSet(filters=filters, origin_location=origin)
        if location_seq != self._location_seq:
            self.store.update(results=results)
            return
        self.store.update(results=results, status=SearchStatus.FAILED, error=error.to_failure())

    async def _locate_then_search(self) -> None:
        if await self._locate():
            await self.search()

    async def _locate(self) -> bool:
        self._location_seq += 1
        seq = self._location_seq
        self.store.update(status=SearchStatus.LOCATING_DEVICE, error=None)

        try:
            coords = await self.geolocation.get_current_location()
        except NearmeError as e:
            error: NearmeError = e
        except Exception as e:
            logger.exception("Unexpected error from geolocation provider")
            error = UnknownError(str(e) or None)
        else:
            if seq != self._location_seq:
                logger.debug("Discarding stale location fetch #%d", seq)
                return False
            results = self.state.results
            if results.places:
                results = relocate_results(results, coords)
            self.store.update(location=coords, results=results)
            return True

        if seq != self._location_seq:
            return False
        # location and results from before stay as they were
        logger.warning("Location fetch failed (%s): %s", error.kind.value, error.message)
        self.store.update(status=SearchStatus.FAILED, error=error.to_failure())
        return False

    async def _load_categories(self) -> None:
        try:
            categories = await self.places.list_categories()
        except Exception as e:
            logger.warning("Category fetch failed, using built-in list: %s", e)
            categories = []
        if not categories:
            categories = list(FALLBACK_CATEGORIES)

        current = self.state.filters
        if current.category and current.category not in category_types(categories):
            logger.info("Selected category %s is not offered, clearing it", current.category)
            self.store.update(categories=categories, filters=current.model_copy(update={"category": None}))
            self._schedule_search()
            return
        self.store.update(categories=categories)

    def _known_category_types(self) -> List[str]:
        return category_types(self.state.categories or FALLBACK_CATEGORIES)
