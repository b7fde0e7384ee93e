"""Geolocation utilities for check-in verification.

Distances are great-circle distances computed with the Haversine formula
on a spherical Earth. Inputs are decimal degrees and are not range-checked
here; callers reject malformed coordinates with `is_valid_coordinates`
before measuring.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Calculate the great-circle distance between two points on Earth.

    Args:
        a: First point in decimal degrees
        b: Second point in decimal degrees

    Returns:
        Non-negative distance in meters. Symmetric in its arguments.

    Example:
        >>> round(distance_meters(Coordinates(0, 0), Coordinates(0, 1)))
        111195
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Clamp guards against h drifting past 1.0 for antipodal points
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))

    return EARTH_RADIUS_M * c


def is_within_radius(user: Coordinates, center: Coordinates, radius_meters: float) -> bool:
    """Check whether `user` lies within `radius_meters` of `center`. Inclusive."""
    return distance_meters(user, center) <= radius_meters


def is_valid_latitude(lat: float) -> bool:
    return -90 <= lat <= 90


def is_valid_longitude(lng: float) -> bool:
    return -180 <= lng <= 180


def is_valid_coordinates(coords: Coordinates) -> bool:
    return is_valid_latitude(coords.lat) and is_valid_longitude(coords.lng)


def format_distance(meters: float) -> str:
    """Human-readable distance, e.g. "50m" or "1.2km"."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
