"""
Command-line front end: locate, search once through the proxy and print the list.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from nearme.config import configure_logging, settings
from nearme.models.schemas import SearchState, SearchStatus
from nearme.services.errors import NearmeError
from nearme.services.geolocation import IpGeolocationProvider, StaticGeolocationProvider
from nearme.services.places_api import PlacesApiClient
from nearme.services.search_orchestrator import SearchOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find places near you")
    parser.add_argument("--api-url", default=settings.API_URL, help="Base URL of the places proxy")
    parser.add_argument("--lat", type=float, default=None, help="Latitude (default: IP lookup)")
    parser.add_argument("--lng", type=float, default=None, help="Longitude (default: IP lookup)")
    parser.add_argument("--query", default="", help="Free-text search")
    parser.add_argument("--category", default=None, help="Category type, e.g. cafe")
    parser.add_argument("--radius", type=int, default=settings.SEARCH_RADIUS_METERS, help="Search radius in meters")
    parser.add_argument("--details", metavar="PLACE_ID", default=None, help="Print details for one place and exit")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level")
    return parser


def format_state(state: SearchState) -> List[str]:
    if state.status == SearchStatus.FAILED and state.error is not None:
        return [f"Error: {state.error.message}"]
    places = state.results.places
    if not places:
        return ["No places found"]
    lines = [f"Found {len(places)} places near you"]
    for place in places:
        rating = f"  ⭐ {place.rating}" if place.rating is not None else ""
        lines.append(f"- {place.name} ({place.distanceLabel}){rating}")
        if place.address:
            lines.append(f"    {place.address}")
    return lines


async def run(args: argparse.Namespace) -> int:
    places = PlacesApiClient(args.api_url, timeout=settings.API_TIMEOUT_SECONDS)
    try:
        if args.details:
            try:
                place = await places.get_details(args.details)
            except NearmeError as e:
                print(f"Error: {e.message}")
                return 1
            print(place.model_dump_json(indent=2, exclude_none=True))
            return 0

        if args.lat is not None or args.lng is not None:
            geolocation = StaticGeolocationProvider(args.lat, args.lng)
        else:
            geolocation = IpGeolocationProvider(settings.IP_GEOLOCATION_URL, timeout=settings.API_TIMEOUT_SECONDS)

        orchestrator = SearchOrchestrator(
            places,
            geolocation,
            radius=args.radius,
            debounce_seconds=settings.SEARCH_DEBOUNCE_SECONDS,
        )
        # Filters go in before the first search so it already uses them
        if args.query:
            orchestrator.set_query(args.query)
        try:
            if args.category:
                orchestrator.set_category(args.category)
        except NearmeError as e:
            print(f"Error: {e.message}")
            return 1
        await orchestrator.initialize()
        await orchestrator.wait_idle()
        await orchestrator.aclose()

        for line in format_state(orchestrator.state):
            print(line)
        return 1 if orchestrator.state.status == SearchStatus.FAILED else 0
    finally:
        await places.aclose()


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
