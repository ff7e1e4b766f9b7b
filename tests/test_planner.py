import pytest

from romana_dispatch.models.domain import OrderStatus
from romana_dispatch.services.routing import planner
from romana_dispatch.services.routing.mapbox_client import TripOptimization
from romana_dispatch.services.routing.planner import chunk, group_by_region, plan_routes


def _ids(routes):
    return [stop.order_id for route in routes for stop in route.stops]


def test_group_by_region_keeps_first_seen_order(order_factory):
    orders = [
        order_factory("o1", "Kinondoni"),
        order_factory("o2", "Ilala"),
        order_factory("o3", "Kinondoni"),
        order_factory("o4", "kinondoni"),
    ]

    groups = group_by_region(orders)

    assert list(groups) == ["Kinondoni", "Ilala", "kinondoni"]
    assert [order.id for order in groups["Kinondoni"]] == ["o1", "o3"]


def test_chunk_respects_size_and_order(order_factory):
    orders = [order_factory(f"o{i}") for i in range(5)]

    chunks = list(chunk(orders, 2))

    assert [[order.id for order in part] for part in chunks] == [["o0", "o1"], ["o2", "o3"], ["o4"]]
    with pytest.raises(ValueError):
        list(chunk(orders, 0))


def test_plan_routes_splits_region_into_chunks_of_twelve(order_factory, optimizer, depot):
    orders = [order_factory(f"o{i}") for i in range(14)]

    routes = plan_routes(orders, optimizer, depot)

    assert [route.id for route in routes] == [
        "route-Dar es Salaam Central-1",
        "route-Dar es Salaam Central-2",
    ]
    assert [route.stop_count for route in routes] == [12, 2]
    assert all(route.stop_count <= 12 for route in routes)


def test_plan_routes_uses_optimizer_order_and_totals(order_factory, optimizer, depot):
    orders = [order_factory("o1"), order_factory("o2"), order_factory("o3")]

    (route,) = plan_routes(orders, optimizer, depot)

    assert route.optimized
    assert route.order_ids == ["o3", "o2", "o1"]
    assert route.total_distance_m == pytest.approx(12345.6)
    assert route.total_duration_s == pytest.approx(1800.0)
    assert optimizer.calls == [["o1", "o2", "o3"]]


def test_plan_routes_falls_back_when_optimizer_raises(order_factory, optimizer_factory, depot):
    orders = [order_factory(f"a{i}", "Ilala") for i in range(5)] + [order_factory("b1", "Temeke")]
    optimizer = optimizer_factory(failing={"a0"})

    routes = plan_routes(orders, optimizer, depot)

    ilala, temeke = routes
    assert ilala.order_ids == ["a0", "a1", "a2", "a3", "a4"]
    assert ilala.total_distance_m == 0
    assert ilala.total_duration_s == 0
    assert not ilala.optimized
    assert temeke.optimized
    assert len(optimizer.calls) == 2


def test_plan_routes_without_optimizer_is_fallback(order_factory, depot):
    orders = [order_factory("o1"), order_factory("o2")]

    (route,) = plan_routes(orders, None, depot)

    assert route.order_ids == ["o1", "o2"]
    assert (route.total_distance_m, route.total_duration_s, route.optimized) == (0, 0, False)


def test_plan_routes_rejects_incomplete_visit_order(order_factory, depot):
    class PartialOptimizer:
        def optimize_trip(self, depot, stops):
            return TripOptimization(visit_order=[stops[0][0]], total_distance_m=10.0, total_duration_s=60.0)

    orders = [order_factory("o1"), order_factory("o2")]

    (route,) = plan_routes(orders, PartialOptimizer(), depot)

    assert route.order_ids == ["o1", "o2"]
    assert route.total_distance_m == 0


def test_plan_routes_treats_none_as_unavailable(order_factory, depot):
    class EmptyOptimizer:
        def optimize_trip(self, depot, stops):
            return None

    (route,) = plan_routes([order_factory("o1")], EmptyOptimizer(), depot)

    assert not route.optimized
    assert route.order_ids == ["o1"]


def test_plan_routes_never_loses_or_duplicates_orders(order_factory, optimizer_factory, depot):
    regions = ["Ilala", "Temeke", "Kinondoni", ""]
    orders = [order_factory(f"o{i}", regions[i % len(regions)]) for i in range(40)]
    optimizer = optimizer_factory(failing={"o5", "o30"})

    routes = plan_routes(orders, optimizer, depot)

    planned = _ids(routes)
    assert len(planned) == len(set(planned))
    assert set(planned) == {order.id for order in orders}


def test_plan_routes_excludes_ineligible_orders(order_factory, optimizer, depot):
    orders = [
        order_factory("ok"),
        order_factory("processing", status=OrderStatus.PROCESSING),
        order_factory("pending", status=OrderStatus.PENDING),
        order_factory("shipped", status=OrderStatus.SHIPPED, driver="d1"),
        order_factory("taken", driver="d2"),
        order_factory("nolat", lat=None),
        order_factory("nolng", lng=None),
    ]

    routes = plan_routes(orders, optimizer, depot)

    assert sorted(_ids(routes)) == ["ok", "processing"]


def test_plan_routes_rejects_chunks_above_api_limit(order_factory, optimizer, depot):
    with pytest.raises(ValueError):
        plan_routes([order_factory("o1")], optimizer, depot, max_stops=13)


def test_stop_requires_coordinates(order_factory):
    with pytest.raises(ValueError, match="no coordinates"):
        planner._to_stop(order_factory("o1", lat=None))
