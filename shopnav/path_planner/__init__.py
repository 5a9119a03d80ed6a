#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路径规划模块

通行栅格、A*、路线拼接、距离矩阵与访问顺序优化。
"""

from .map_model import (
    PathPoint,
    Location,
    PlanFailure,
    PlanResult,
    DegradedSegment,
    StitchResult,
    RouteItem,
    RoutePoint,
    RouteData,
)
from .walkable_grid import (
    Rect,
    GridCell,
    WalkableGrid,
    build_walkable_grid,
    build_walkable_grid_from_config,
    find_nearest_walkable,
)
from .astar_planner import AStarPlanner
from .route_stitcher import stitch_route
from .distance_matrix import DistanceMatrix, build_distance_matrix, UNREACHABLE_COST
from .tsp_optimizer import solve_route_order
from .route_planning_service import RoutePlanningService

__all__ = [
    'PathPoint',
    'Location',
    'PlanFailure',
    'PlanResult',
    'DegradedSegment',
    'StitchResult',
    'RouteItem',
    'RoutePoint',
    'RouteData',
    'Rect',
    'GridCell',
    'WalkableGrid',
    'build_walkable_grid',
    'build_walkable_grid_from_config',
    'find_nearest_walkable',
    'AStarPlanner',
    'stitch_route',
    'DistanceMatrix',
    'build_distance_matrix',
    'UNREACHABLE_COST',
    'solve_route_order',
    'RoutePlanningService',
]
