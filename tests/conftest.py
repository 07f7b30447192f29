import asyncio
import sys
from collections import deque
from pathlib import Path

import pytest

# Ensure the project root is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nearme.models.schemas import Category, Coordinates, PlaceRecord  # noqa: E402

HOME = Coordinates(latitude=37.7749, longitude=-122.4194)


def make_place(pid: str, lat: float, lng: float, **extra) -> PlaceRecord:
    return PlaceRecord(id=pid, name=extra.pop("name", f"Place {pid}"), location=Coordinates(latitude=lat, longitude=lng), **extra)


class FakePlaces:
    """
    Scripted places provider. Each search pops the next queued response: a list
    of records, an exception to raise, or a future to await first.
    """

    def __init__(self, default=None, categories=None, category_error=None):
        self.default = default if default is not None else []
        self.responses = deque()
        self.calls = []
        self.categories = categories
        self.category_error = category_error

    def queue(self, *responses):
        self.responses.extend(responses)

    async def search_nearby(self, lat, lng, radius=1500, category=None, keyword=None):
        self.calls.append({"lat": lat, "lng": lng, "radius": radius, "category": category, "keyword": keyword})
        resp = self.responses.popleft() if self.responses else self.default
        if isinstance(resp, asyncio.Future):
            resp = await resp
        if isinstance(resp, BaseException):
            raise resp
        return resp

    async def list_categories(self):
        if self.category_error is not None:
            raise self.category_error
        if isinstance(self.categories, asyncio.Future):
            return await self.categories
        if self.categories is None:
            return [
                Category(id="cafe", name="Cafés", icon="coffee", type="cafe"),
                Category(id="bar", name="Bars", icon="glass", type="bar"),
            ]
        return self.categories


class FakeGeolocation:
    def __init__(self, *results):
        self.results = deque(results)
        self.last = HOME
        self.calls = 0

    def queue(self, *results):
        self.results.extend(results)

    async def get_current_location(self):
        self.calls += 1
        result = self.results.popleft() if self.results else self.last
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, BaseException):
            raise result
        self.last = result
        return result


@pytest.fixture
def cafe():
    return make_place("cafe-1", 37.7760, -122.4180, name="Blue Bottle", types=["cafe"], rating=4.6)


@pytest.fixture
def park():
    return make_place("park-1", 37.7694, -122.4862, name="Golden Gate Park", types=["park"])
