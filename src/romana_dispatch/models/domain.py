"""Domain models for orders, drivers and planned delivery routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    DELIVERY = "DELIVERY"


# Orders in these states with no driver are waiting for a route.
ROUTABLE_STATUSES: tuple[OrderStatus, ...] = (OrderStatus.CONFIRMED, OrderStatus.PROCESSING)


@dataclass(slots=True, frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class DeliveryAddress:
    """Delivery address of an order as seen by the dispatcher."""

    street: str
    city: str
    region: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    name: Optional[str] = None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(lat=self.latitude, lng=self.longitude)

    @property
    def display(self) -> str:
        return f"{self.street}, {self.city}"


@dataclass(slots=True)
class RoutingOrder:
    """Read projection of an order used for planning and assignment."""

    id: str
    order_number: str
    status: OrderStatus
    address: DeliveryAddress
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_person_id: Optional[str] = None
    total: float = 0.0
    created_at: Optional[datetime] = None

    @property
    def is_routable(self) -> bool:
        return self.status in ROUTABLE_STATUSES and self.delivery_person_id is None


@dataclass(slots=True)
class Driver:
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(slots=True)
class SessionUser:
    id: str
    role: UserRole
    name: Optional[str] = None


@dataclass(slots=True)
class Stop:
    order_id: str
    order_number: str
    coordinates: Coordinates
    address: str
    customer_name: Optional[str] = None


@dataclass(slots=True)
class Route:
    """A computed, ordered sequence of stops for one driver.

    ``total_distance_m`` and ``total_duration_s`` are 0 when the trip optimizer
    was not used; zero means "unknown" rather than a measured value.
    """

    id: str
    region: str
    stops: List[Stop]
    total_distance_m: float = 0.0
    total_duration_s: float = 0.0
    optimized: bool = False
    driver: Optional[Driver] = None

    @property
    def stop_count(self) -> int:
        return len(self.stops)

    @property
    def order_ids(self) -> list[str]:
        return [stop.order_id for stop in self.stops]


@dataclass(slots=True)
class RouteAssignment:
    route: Route
    driver: Driver
    requested: int
    assigned: int

    @property
    def conflict(self) -> bool:
        """True when fewer orders were updated than the route holds."""
        return self.assigned < self.requested


@dataclass(slots=True)
class BalanceResult:
    assignments: List[RouteAssignment] = field(default_factory=list)
    failed_routes: List[str] = field(default_factory=list)

    @property
    def drivers_assigned(self) -> int:
        return len({assignment.driver.id for assignment in self.assignments})
