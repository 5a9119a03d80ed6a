#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路线拼接
"""

import pytest

from shopnav.path_planner.map_model import PathPoint, PlanFailure
from shopnav.path_planner.route_stitcher import stitch_route

from conftest import is_adjacent


def test_corridor_route(corridor_grid, planner):
    stops = [(210, 200), (215, 300), (212, 340)]
    result = stitch_route(corridor_grid, (218, 160), stops, (218, 360), planner)

    assert not result.degraded
    assert len(result.segments) == 4
    assert result.path[0] == PathPoint(215, 165)
    assert result.path[-1] == PathPoint(215, 365)
    for a, b in zip(result.path, result.path[1:]):
        assert a != b
        assert is_adjacent(a, b)
    # 整条路线都在第21列上，21个栅格
    assert len(result.path) == 21
    assert result.length == pytest.approx(200.0)


def test_segments_join_without_duplicates(corridor_grid, planner):
    stops = [(210, 200), (215, 300)]
    result = stitch_route(corridor_grid, (218, 160), stops, (218, 360), planner)

    rebuilt = list(result.segments[0])
    for seg in result.segments[1:]:
        assert seg[0] == rebuilt[-1]
        rebuilt.extend(seg[1:])
    assert rebuilt == result.path


def test_failed_leg_falls_back_to_direct_edge(split_grid, planner):
    # 第1段需要穿墙
    stops = [(55, 55), (185, 15), (175, 185)]
    result = stitch_route(split_grid, (15, 15), stops, (185, 185), planner)

    assert result.degraded
    assert len(result.degraded_segments) == 1
    seg = result.degraded_segments[0]
    assert seg.index == 1
    assert seg.from_point == PathPoint(55, 55)
    assert seg.to_point == PathPoint(185, 15)
    assert seg.reason == PlanFailure.NO_PATH.value

    assert result.segments[1] == [PathPoint(55, 55), PathPoint(185, 15)]
    i = result.path.index(PathPoint(55, 55))
    assert result.path[i + 1] == PathPoint(185, 15)
    # 直连之后继续规划剩余路段
    assert result.path[-1] == PathPoint(185, 185)


def test_unreachable_stop_is_teleported_to(corridor_grid):
    from shopnav.path_planner.astar_planner import AStarPlanner

    planner = AStarPlanner(snap_max_radius=3)
    stops = [(210, 200), (800, 50)]
    result = stitch_route(corridor_grid, (218, 160), stops, (218, 360), planner)

    # 到达不可达停靠点、以及从它出发的两段都降级
    assert [s.index for s in result.degraded_segments] == [1, 2]
    assert result.degraded_segments[0].reason == PlanFailure.GOAL_UNREACHABLE.value
    assert result.degraded_segments[1].reason == PlanFailure.START_UNREACHABLE.value
    assert PathPoint(800, 50) in result.path


def test_no_stops(corridor_grid, planner):
    result = stitch_route(corridor_grid, (218, 160), [], (218, 360), planner)

    assert not result.degraded
    assert len(result.segments) == 1
    assert result.path == result.segments[0]
