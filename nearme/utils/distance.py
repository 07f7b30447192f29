from __future__ import annotations

import math

EARTH_RADIUS_METERS = 6371 * 1000


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def format_distance(distance_meters: float) -> str:
    # both branches round half-up, not banker's rounding
    if distance_meters < 1000:
        return f"{int(math.floor(distance_meters + 0.5))}m away"
    tenths = math.floor(distance_meters / 100 + 0.5)
    return f"{tenths / 10:.1f}km away"
