"""Dispatch request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinatesModel(CamelModel):
    lat: float
    lng: float


class RouteOrderModel(CamelModel):
    id: str
    order_number: str
    customer_name: Optional[str] = None
    address: str
    coordinates: CoordinatesModel


class RouteModel(CamelModel):
    id: str
    region: str
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    orders: List[RouteOrderModel]
    total_distance: int = Field(..., description="Meters; 0 when the route was not optimized.")
    total_duration: int = Field(..., description="Minutes; 0 when the route was not optimized.")
    estimated_stops: int
    optimized: bool


class DispatchSummary(CamelModel):
    total_orders: int
    total_routes: int
    drivers_assigned: int


class OptimizeRoutesResponse(CamelModel):
    message: str
    routes: List[RouteModel]
    summary: DispatchSummary


class RouteInfoModel(CamelModel):
    region: str
    total_distance: int
    total_duration: int
    estimated_stops: int


class AssignmentModel(CamelModel):
    route_id: str
    driver_id: str
    driver_name: Optional[str] = None
    orders_assigned: int
    orders_requested: int
    conflict: bool
    route_info: RouteInfoModel


class AutoAssignResponse(CamelModel):
    message: str
    assignments: List[AssignmentModel]
    failed_routes: List[str] = Field(default_factory=list)
    summary: Optional[DispatchSummary] = None


class AssignDeliveriesRequest(CamelModel):
    order_ids: List[str]
    delivery_person_id: str = Field(..., min_length=1)


class AssignDeliveriesResponse(CamelModel):
    message: str
    assigned_orders: int


class AvailableOrderModel(CamelModel):
    id: str
    order_number: str
    customer_name: Optional[str] = None
    address: str
    total: float
    status: str
    created_at: Optional[datetime] = None


class DeliveryPersonModel(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AssignmentDataResponse(CamelModel):
    available_orders: List[AvailableOrderModel]
    delivery_personnel: List[DeliveryPersonModel]


class DeliveryPersonnelResponse(CamelModel):
    success: bool = True
    delivery_persons: List[DeliveryPersonModel]


class DriverStopModel(CamelModel):
    id: str
    order_number: str
    customer_name: Optional[str] = None
    address: str
    coordinates: Optional[CoordinatesModel] = None
    status: Literal["PENDING", "SHIPPED", "DELIVERED"]
    priority: int


class DriverRouteModel(CamelModel):
    id: str
    name: str
    region: str
    total_stops: int
    estimated_distance_km: float = Field(..., description="Straight-line estimate from the depot through each stop.")
    status: Literal["PLANNED", "IN_PROGRESS", "COMPLETED"]
    stops: List[DriverStopModel]


class DriverRoutesSummary(CamelModel):
    total_routes: int
    total_stops: int
    completed_stops: int


class DriverRoutesResponse(CamelModel):
    routes: List[DriverRouteModel]
    summary: DriverRoutesSummary
