import math

from fittrack.core.constants import EARTH_RADIUS_KM
from fittrack.schemas.activity import GeoPoint


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Return great-circle distance in kilometres between two WGS84 points.

    Uses the standard haversine formula; sufficient for per-point distances
    over a typical GPS activity track.
    """
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def route_distance_km(points) -> float:
    """Sum of haversine_km over consecutive pairs of `points`."""
    total = 0.0
    for prev, cur in zip(points, points[1:]):
        total += haversine_km(prev, cur)
    return total
