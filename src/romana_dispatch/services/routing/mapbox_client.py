"""HTTP client for the Mapbox trip optimization and token services."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

import httpx

from ...config import MAPBOX_MAX_TRIP_STOPS, settings
from ...models.domain import Coordinates

logger = logging.getLogger(__name__)


class OptimizationUnavailableError(RuntimeError):
    """Raised when the trip optimizer cannot produce an answer."""


@dataclass(slots=True)
class TripOptimization:
    visit_order: list[str]
    total_distance_m: float
    total_duration_s: float


def _coordinate_path(points: Sequence[Coordinates]) -> str:
    # Mapbox expects "lng,lat;lng,lat;..."
    return ";".join(f"{point.lng},{point.lat}" for point in points)


class MapboxClient:
    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.access_token = access_token or settings.mapbox_access_token
        if not self.access_token:
            raise ValueError("Mapbox access token is not configured.")
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.profile = profile or settings.mapbox_profile
        self.timeout = timeout if timeout is not None else settings.mapbox_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.mapbox_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.mapbox_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _get_json(self, path: str, params: dict[str, Any], *, retries: int) -> dict:
        """GET ``path`` and decode the JSON body, retrying transport failures ``retries`` times."""
        url = f"{self.base_url}{path}"
        query = {**params, "access_token": self.access_token}
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=query)
                    if response.status_code >= 500:
                        response.raise_for_status()
                    return response.json()
                except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as exc:
                    attempt += 1
                    if attempt > retries:
                        raise
                    wait_time = self.backoff_seconds * attempt
                    logger.debug(f"Mapbox request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{retries}): {exc}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def optimize_trip(
        self,
        depot: Coordinates,
        stops: Sequence[tuple[str, Coordinates]],
    ) -> TripOptimization | None:
        """Optimize the visiting order of ``stops`` for a trip that starts and ends at ``depot``.

        Returns None when Mapbox finds no trip. Any transport or protocol failure raises
        OptimizationUnavailableError. The request is attempted once.
        """
        if not stops:
            raise ValueError("At least one stop is required for trip optimization.")

        points = [depot, *(coords for _, coords in stops), depot]
        params = {
            "source": "first",
            "destination": "last",
            "roundtrip": "false",
        }
        path = f"/optimized-trips/v1/mapbox/{self.profile}/{_coordinate_path(points)}"
        try:
            data = self._get_json(path, params, retries=0)
        except (httpx.HTTPError, ValueError) as exc:
            raise OptimizationUnavailableError(f"Mapbox optimization request failed: {exc}") from exc

        code = data.get("code")
        if code == "NoTrips":
            return None
        if code != "Ok":
            message = data.get("message", "Unknown Mapbox optimization error")
            raise OptimizationUnavailableError(f"Mapbox optimization failed ({code}): {message}")

        trips = data.get("trips") or []
        waypoints = data.get("waypoints") or []
        if not trips:
            return None
        if len(waypoints) != len(points):
            raise OptimizationUnavailableError(
                f"Mapbox returned {len(waypoints)} waypoints for {len(points)} coordinates."
            )

        try:
            # waypoints are in input order; waypoint_index is the position within the trip
            ranked = sorted(
                range(len(stops)),
                key=lambda position: int(waypoints[position + 1]["waypoint_index"]),
            )
            trip = trips[0]
            return TripOptimization(
                visit_order=[stops[position][0] for position in ranked],
                total_distance_m=float(trip["distance"]),
                total_duration_s=float(trip["duration"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise OptimizationUnavailableError(f"Malformed Mapbox optimization response: {exc}") from exc

    def check_health(self) -> bool:
        """Validate the access token against the Mapbox tokens API."""
        try:
            data = self._get_json("/tokens/v2", {}, retries=self.max_retries)
        except (httpx.HTTPError, ValueError):
            return False
        return data.get("code") == "TokenValid"


@lru_cache()
def _warn_if_trips_exceed_limit(max_stops: int) -> None:
    # the depot is sent as both the first and the last coordinate
    coordinates = max_stops + 2
    if coordinates > MAPBOX_MAX_TRIP_STOPS:
        logger.warning(
            f"max_stops_per_route={max_stops} sends up to {coordinates} coordinates per trip; "
            f"Mapbox accepts {MAPBOX_MAX_TRIP_STOPS}, so routes with more than "
            f"{MAPBOX_MAX_TRIP_STOPS - 2} stops keep their input order."
        )


def build_optimizer() -> MapboxClient | None:
    """Return a configured Mapbox client, or None when Mapbox is not configured."""
    try:
        client = MapboxClient()
    except ValueError as exc:
        logger.warning(f"Trip optimizer unavailable: {exc}")
        return None
    _warn_if_trips_exceed_limit(settings.max_stops_per_route)
    return client
