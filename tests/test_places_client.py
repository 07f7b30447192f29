import json

import httpx
import pytest

from nearme.services.places_client import PlacesClient, PlacesUpstreamError

GOOGLE_PLACE = {
    "id": "ChIJ123",
    "displayName": {"text": "Blue Bottle Coffee", "languageCode": "en"},
    "location": {"latitude": 37.776, "longitude": -122.418},
    "rating": 4.6,
    "userRatingCount": 812,
    "types": ["cafe", "food", "point_of_interest"],
    "currentOpeningHours": {"openNow": True},
    "photos": [{"name": "places/ChIJ123/photos/AbC"}],
    "shortFormattedAddress": "66 Mint St, San Francisco",
    "formattedAddress": "66 Mint St, San Francisco, CA 94103, USA",
}


def _client(handler) -> PlacesClient:
    return PlacesClient("test-key", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_nearby_search_without_keyword_uses_search_nearby():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"places": [GOOGLE_PLACE]})

    client = _client(handler)
    places = await client.search_nearby(37.77, -122.41, 1500, place_type="cafe")
    await client.aclose()

    assert seen["url"].endswith("/v1/places:searchNearby")
    assert seen["headers"]["X-Goog-Api-Key"] == "test-key"
    assert "places.displayName" in seen["headers"]["X-Goog-FieldMask"]
    assert seen["body"]["includedTypes"] == ["cafe"]
    assert seen["body"]["locationRestriction"]["circle"]["radius"] == 1500.0

    place = places[0]
    assert place.id == "ChIJ123"
    assert place.name == "Blue Bottle Coffee"
    assert place.userRatingsTotal == 812
    assert place.openNow is True
    assert place.photoRef == "places/ChIJ123/photos/AbC"
    assert place.address == "66 Mint St, San Francisco"


@pytest.mark.asyncio
async def test_keyword_switches_to_text_search():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"places": [GOOGLE_PLACE]})

    await _client(handler).search_nearby(37.77, -122.41, 800, place_type="cafe", keyword="latte")

    assert seen["url"].endswith("/v1/places:searchText")
    assert seen["body"]["textQuery"] == "latte"
    assert seen["body"]["includedType"] == "cafe"
    assert seen["body"]["locationBias"]["circle"]["center"] == {"latitude": 37.77, "longitude": -122.41}


@pytest.mark.asyncio
async def test_no_places_is_empty_list():
    client = _client(lambda request: httpx.Response(200, json={}))
    assert await client.search_nearby(1.0, 2.0, 1500) == []


@pytest.mark.asyncio
async def test_places_without_location_are_skipped():
    broken = dict(GOOGLE_PLACE, id="nowhere")
    broken.pop("location")
    client = _client(lambda request: httpx.Response(200, json={"places": [broken, GOOGLE_PLACE]}))

    places = await client.search_nearby(1.0, 2.0, 1500)

    assert [p.id for p in places] == ["ChIJ123"]


@pytest.mark.parametrize(
    "status, code",
    [
        ("RESOURCE_EXHAUSTED", "OVER_QUERY_LIMIT"),
        ("PERMISSION_DENIED", "REQUEST_DENIED"),
        ("INVALID_ARGUMENT", "INVALID_REQUEST"),
        ("INTERNAL", "UNKNOWN_ERROR"),
    ],
)
@pytest.mark.asyncio
async def test_upstream_statuses_map_to_codes(status, code):
    def handler(request):
        return httpx.Response(400, json={"error": {"code": 400, "message": "nope", "status": status}})

    with pytest.raises(PlacesUpstreamError) as exc_info:
        await _client(handler).search_nearby(1.0, 2.0, 1500)
    assert exc_info.value.code == code


@pytest.mark.asyncio
async def test_transport_failure_is_api_error():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(PlacesUpstreamError) as exc_info:
        await _client(handler).search_nearby(1.0, 2.0, 1500)
    assert exc_info.value.code == "API_ERROR"
    assert exc_info.value.message == "Failed to fetch places data"


@pytest.mark.asyncio
async def test_place_details_include_contact_fields():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["mask"] = request.headers["X-Goog-FieldMask"]
        return httpx.Response(200, json=dict(GOOGLE_PLACE, nationalPhoneNumber="(415) 555-0100", websiteUri="https://bluebottle.example"))

    place = await _client(handler).get_place_details("ChIJ123")

    assert seen["method"] == "GET"
    assert seen["url"].endswith("/v1/places/ChIJ123")
    assert "websiteUri" in seen["mask"]
    assert place.phone == "(415) 555-0100"
    assert place.website == "https://bluebottle.example"


@pytest.mark.asyncio
async def test_unknown_place_is_not_found():
    def handler(request):
        return httpx.Response(404, json={"error": {"code": 404, "status": "NOT_FOUND"}})

    with pytest.raises(PlacesUpstreamError) as exc_info:
        await _client(handler).get_place_details("missing")
    assert exc_info.value.code == "NOT_FOUND"
