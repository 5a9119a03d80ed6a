#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
购物路线规划服务
"""

import math

import pytest

from shopnav.config.models import NavigationConfig
from shopnav.path_planner.map_model import PathPoint, PlanFailure, RouteItem
from shopnav.path_planner.route_planning_service import RoutePlanningService

from conftest import is_adjacent


def _item(name, x, y, section=""):
    return RouteItem(name=name, coordinates=PathPoint(x, y), section=section)


def test_store_route(store_config):
    service = RoutePlanningService(store_config)
    items = [
        _item("酸奶", 212, 340, section="A"),
        _item("面包", 210, 200, section="A"),
        _item("饮料", 215, 300, section="A"),
    ]
    route = service.plan_route(items)

    assert not route.degraded
    assert route.unreachable_items == []
    assert [rp.order for rp in route.route] == [1, 2, 3]
    assert sorted(rp.item for rp in route.route) == sorted(it.name for it in items)
    assert all(rp.section == "A" for rp in route.route)

    assert route.optimized_distance <= route.original_distance + 1e-6
    assert route.total_distance > 0
    assert route.path[0] == PathPoint(215, 165)
    assert route.path[-1].as_tuple() == (325, 225)
    assert route.path[-1].id == "end"
    for a, b in zip(route.path, route.path[1:]):
        assert is_adjacent(a, b)
    assert route.exit_path[-1] == route.path[-1]
    for rp in route.route:
        assert not rp.degraded
        assert rp.path_points


def test_without_optimization_keeps_input_order(store_config):
    service = RoutePlanningService(store_config)
    items = [_item("a", 212, 340), _item("b", 210, 200)]
    route = service.plan_route(items, optimize=False)

    assert [rp.item for rp in route.route] == ["a", "b"]
    assert route.original_distance == pytest.approx(route.total_distance)
    assert route.optimized_distance == pytest.approx(route.total_distance)


def test_optimization_disabled_in_config(store_config):
    cfg = store_config.model_copy(
        update={"route": store_config.route.model_copy(update={"optimize_order": False})}
    )
    service = RoutePlanningService(cfg)
    route = service.plan_route([_item("a", 212, 340), _item("b", 210, 200)])
    assert [rp.item for rp in route.route] == ["a", "b"]


def test_empty_item_list(store_config):
    route = RoutePlanningService(store_config).plan_route([])
    assert route.route == []
    assert route.total_distance == 0.0
    assert not route.degraded


def test_unreachable_item_flagged_and_kept(small_store_config):
    service = RoutePlanningService(small_store_config)
    far = _item("远处", 250, 180)
    items = [_item("近处", 105, 25), far]
    route = service.plan_route(items)

    assert route.unreachable_items == [far]
    assert route.degraded
    assert sorted(rp.item for rp in route.route) == ["近处", "远处"]
    far_point = next(rp for rp in route.route if rp.item == "远处")
    assert far_point.degraded
    assert far_point.path_points[-1] == PathPoint(250, 180)
    reasons = {s.reason for s in route.degraded_segments}
    assert PlanFailure.GOAL_UNREACHABLE.value in reasons
    # 含不可达哨兵值的矩阵距离不作为优化比较结果
    assert route.original_distance == 0.0
    assert route.optimized_distance == 0.0


@pytest.mark.parametrize("bad_x", [math.nan, math.inf])
def test_non_finite_item_dropped_from_route(small_store_config, bad_x):
    service = RoutePlanningService(small_store_config)
    route = service.plan_route([_item("近处", 55, 25), _item("坏点", bad_x, 25)])

    assert [it.name for it in route.unreachable_items] == ["坏点"]
    assert [rp.item for rp in route.route] == ["近处"]
    assert math.isfinite(route.total_distance)
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in route.path)
    assert not route.degraded


def test_unreachable_item_excluded(small_store_dict):
    small_store_dict["route"]["exclude_unreachable_stops"] = True
    service = RoutePlanningService(NavigationConfig(**small_store_dict))
    far = _item("远处", 250, 180)
    route = service.plan_route([_item("近处", 105, 25), far])

    assert route.unreachable_items == [far]
    assert [rp.item for rp in route.route] == ["近处"]
    assert not route.degraded


def test_disconnected_item_reached_by_direct_edge(small_store_config):
    service = RoutePlanningService(small_store_config)
    room = _item("房间", 55, 175)
    route = service.plan_route([room, _item("通道", 205, 25)])

    # 房间 B 可以修正到可通行栅格，只是与通道不连通
    assert route.unreachable_items == []
    assert route.degraded
    room_point = next(rp for rp in route.route if rp.item == "房间")
    assert room_point.degraded
    assert all(s.reason == PlanFailure.NO_PATH.value for s in route.degraded_segments)


def test_path_avoids_obstacle(small_store_config):
    service = RoutePlanningService(small_store_config)
    route = service.plan_route([_item("x", 205, 25)])

    grid = service.grid
    for p in route.path:
        assert grid.is_walkable(p.x, p.y)
    assert not route.degraded


def test_plan_path(store_config):
    service = RoutePlanningService(store_config)
    result = service.plan_path(service.start_point, service.end_point)
    assert result.ok
    assert result.path[-1].id == "end"


def test_shared_grid(store_config):
    first = RoutePlanningService(store_config)
    second = RoutePlanningService(store_config, grid=first.grid)
    assert second.grid is first.grid
