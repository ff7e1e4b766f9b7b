from datetime import datetime, timezone

import pytest

from romana_dispatch.models.domain import OrderStatus, UserRole
from romana_dispatch.services.assignment.balancer import NoDriversAvailableError, balance_routes, pick_least_loaded
from romana_dispatch.services.routing.planner import plan_routes

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _seed(store, order_factory, count: int, region: str = "Dar es Salaam Central"):
    orders = [order_factory(f"o{i}", region, created_offset=i) for i in range(count)]
    store.add_orders(*orders)
    return orders


def test_fourteen_orders_two_idle_drivers(store, order_factory, depot):
    orders = _seed(store, order_factory, 14)
    store.add_user("driver-a")
    store.add_user("driver-b")
    routes = plan_routes(orders, None, depot)

    result = balance_routes(routes, store.list_by_role(UserRole.DELIVERY), store, commit=True, now=NOW)

    assert [assignment.driver.id for assignment in result.assignments] == ["driver-a", "driver-b"]
    assert store.count_active("driver-a") == 12
    assert store.count_active("driver-b") == 2
    assert not result.failed_routes
    assert result.drivers_assigned == 2
    assert all(call["shipped_at"] == NOW and call["require_unassigned"] for call in store.update_calls)


def test_loads_are_recounted_for_every_route(store, order_factory, depot):
    orders = _seed(store, order_factory, 30)
    store.add_user("driver-a")
    store.add_user("driver-b")
    routes = plan_routes(orders, None, depot)
    drivers = store.list_by_role(UserRole.DELIVERY)

    balance_routes(routes, drivers, store, commit=True, now=NOW)

    # one count per driver per route
    assert len(store.count_calls) == len(drivers) * len(routes)


def test_existing_load_steers_first_route(store, order_factory, depot):
    orders = _seed(store, order_factory, 3)
    busy = [order_factory(f"busy{i}", status=OrderStatus.SHIPPED, driver="driver-a") for i in range(4)]
    store.add_orders(*busy)
    store.add_user("driver-a")
    store.add_user("driver-b")
    drivers = store.list_by_role(UserRole.DELIVERY)

    result = balance_routes(plan_routes(orders, None, depot), drivers, store, commit=True, now=NOW)

    assert result.assignments[0].driver.id == "driver-b"


def test_preview_distributes_like_commit_without_writing(store, order_factory, depot):
    orders = _seed(store, order_factory, 14)
    store.add_user("driver-a")
    store.add_user("driver-b")
    drivers = store.list_by_role(UserRole.DELIVERY)
    routes = plan_routes(orders, None, depot)

    result = balance_routes(routes, drivers, store, commit=False)

    assert [route.driver.id for route in routes] == ["driver-a", "driver-b"]
    assert store.update_calls == []
    assert all(order.status is OrderStatus.CONFIRMED for order in store.orders.values())
    assert all(not assignment.conflict for assignment in result.assignments)


def test_failed_route_does_not_abort_others(store, order_factory, depot):
    orders = _seed(store, order_factory, 14)
    store.add_user("driver-a")
    store.add_user("driver-b")
    store.failing_orders = {"o0"}
    drivers = store.list_by_role(UserRole.DELIVERY)
    routes = plan_routes(orders, None, depot)

    result = balance_routes(routes, drivers, store, commit=True, now=NOW)

    assert result.failed_routes == [routes[0].id]
    assert [assignment.route.id for assignment in result.assignments] == [routes[1].id]
    assert routes[0].driver is None
    assert store.count_active("driver-a") == 2


def test_lost_race_is_reported_as_conflict(store, order_factory, depot):
    orders = _seed(store, order_factory, 5)
    store.add_user("driver-a")
    drivers = store.list_by_role(UserRole.DELIVERY)
    routes = plan_routes(orders, None, depot)
    # another dispatcher grabbed one order after planning
    store.orders["o2"].delivery_person_id = "driver-z"

    result = balance_routes(routes, drivers, store, commit=True, now=NOW)

    (assignment,) = result.assignments
    assert assignment.requested == 5
    assert assignment.assigned == 4
    assert assignment.conflict
    assert store.orders["o2"].delivery_person_id == "driver-z"


def test_no_drivers_raises_without_side_effects(store, order_factory, depot):
    orders = _seed(store, order_factory, 2)

    with pytest.raises(NoDriversAvailableError, match="No delivery drivers available"):
        balance_routes(plan_routes(orders, None, depot), [], store, commit=True)

    assert store.update_calls == []


def test_pick_least_loaded_breaks_ties_by_directory_order(store):
    store.add_user("first")
    store.add_user("second")
    drivers = store.list_by_role(UserRole.DELIVERY)

    assert pick_least_loaded(drivers, {"first": 3, "second": 3}).id == "first"
    assert pick_least_loaded(drivers, {"first": 3, "second": 1}).id == "second"
