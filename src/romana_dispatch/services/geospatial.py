"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.domain import Coordinates, DeliveryAddress

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(origin: Coordinates, target: Coordinates) -> float:
    """Compute distance in meters between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(origin.lat), math.radians(target.lat)
    d_phi = math.radians(target.lat - origin.lat)
    d_lambda = math.radians(target.lng - origin.lng)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def path_distance_m(points: Sequence[Coordinates]) -> float:
    """Sum of straight-line legs along ``points`` in visiting order."""

    return sum(haversine_m(a, b) for a, b in zip(points, points[1:]))


def has_coordinates(address: DeliveryAddress | None) -> bool:
    return address is not None and address.latitude is not None and address.longitude is not None
