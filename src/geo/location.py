"""Fixed-point planar distance primitives.

Coordinates are stored as integers scaled by 10^6 so every comparison in
matching and path estimation is exact. Distances are squared planar
distances: monotonic with true planar distance, never square-rooted and
never geodesic.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

COORDINATE_SCALE = 1_000_000


class Location(NamedTuple):
    """Latitude/longitude pair in millionths of a degree."""

    lat: int
    lon: int

    @classmethod
    def from_degrees(cls, lat: float | str | Decimal, lon: float | str | Decimal) -> "Location":
        """Convert decimal degrees to fixed-point, rounding half away from zero."""
        return cls(_scale(lat), _scale(lon))

    def to_degrees(self) -> tuple[float, float]:
        return (self.lat / COORDINATE_SCALE, self.lon / COORDINATE_SCALE)


def _scale(value: float | str | Decimal) -> int:
    scaled = Decimal(str(value)) * COORDINATE_SCALE
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def squared_distance(a: Location, b: Location) -> int:
    """Sum of squared latitude and longitude deltas."""
    dlat = a.lat - b.lat
    dlon = a.lon - b.lon
    return dlat * dlat + dlon * dlon
