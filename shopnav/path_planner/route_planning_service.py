#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RoutePlanningService

中间层：
- 负责根据配置构建 WalkableGrid（启动时构建一次，之后只读共享）
- 接收外部商品检索给出的停靠点列表
- 距离矩阵 -> 访问顺序优化 -> 路线拼接
- 输出：RouteData（各停靠点的分段路径、总长度、降级段、不可达商品）
"""

from typing import List, Optional

from loguru import logger

from shopnav.config.models import NavigationConfig
from shopnav.core.coordinate_utils import is_finite_point
from shopnav.path_planner.astar_planner import AStarPlanner
from shopnav.path_planner.distance_matrix import UNREACHABLE_COST, build_distance_matrix
from shopnav.path_planner.map_model import (
    Location,
    PathPoint,
    PlanResult,
    RouteData,
    RouteItem,
    RoutePoint,
)
from shopnav.path_planner.route_stitcher import stitch_route
from shopnav.path_planner.tsp_optimizer import solve_route_order
from shopnav.path_planner.walkable_grid import (
    PointLike,
    WalkableGrid,
    build_walkable_grid_from_config,
    find_nearest_walkable,
)

START_ID = "start"
END_ID = "end"


class RoutePlanningService:
    """
    购物路线规划服务

    使用方式：

    1. 创建实例：rps = RoutePlanningService(cfg)
    2. 每次购物请求调用：rps.plan_route(items)
       拿到 RouteData
    """

    def __init__(self, cfg: NavigationConfig, grid: Optional[WalkableGrid] = None) -> None:
        self.cfg = cfg
        self._grid = grid if grid is not None else build_walkable_grid_from_config(cfg.store_map)
        self._planner = AStarPlanner.from_config(cfg.path_planning)

    @property
    def grid(self) -> WalkableGrid:
        return self._grid

    @property
    def planner(self) -> AStarPlanner:
        return self._planner

    @property
    def start_point(self) -> PathPoint:
        return PathPoint(self.cfg.route.start.x, self.cfg.route.start.y, START_ID)

    @property
    def end_point(self) -> PathPoint:
        return PathPoint(self.cfg.route.end.x, self.cfg.route.end.y, END_ID)

    # ------------------------------------------------------------------
    # 单段路径
    # ------------------------------------------------------------------
    def plan_path(self, start: PointLike, goal: PointLike) -> PlanResult:
        return self._planner.plan(self._grid, start, goal)

    # ------------------------------------------------------------------
    # 购物路线主接口
    # ------------------------------------------------------------------
    def plan_route(self, items: List[RouteItem], optimize: Optional[bool] = None) -> RouteData:
        """
        规划购物路线

        Args:
            items: 停靠点列表（已由外部解析出货架坐标）
            optimize: 是否优化访问顺序，None 时使用配置

        Returns:
            RouteData
        """
        route_cfg = self.cfg.route
        if optimize is None:
            optimize = route_cfg.optimize_order

        items = list(items)
        if not items:
            logger.info("[RoutePlanningService] 停靠点列表为空")
            return RouteData(items=[], route=[], total_distance=0.0)

        # ----------------------------------------------------------
        # 1) 标记不可达的停靠点
        # ----------------------------------------------------------
        radius = self.cfg.path_planning.snap_max_radius
        unreachable = [it for it in items if find_nearest_walkable(self._grid, it.coordinates, radius) is None]
        if unreachable:
            logger.warning(
                f"[RoutePlanningService] 不可达的停靠点: {[it.name for it in unreachable]}"
            )
        # 坐标非有限的停靠点无法生成直连边，总是剔除
        if route_cfg.exclude_unreachable_stops:
            stops = [it for it in items if it not in unreachable]
        else:
            stops = [it for it in items if is_finite_point(it.coordinates.as_tuple())]

        # ----------------------------------------------------------
        # 2) 访问顺序优化
        # ----------------------------------------------------------
        start = self.start_point
        end = self.end_point
        ordered = list(stops)
        original_distance = optimized_distance = 0.0

        if optimize and len(stops) > 1:
            store_ids = [f"store_{i}" for i in range(len(stops))]
            locations = [Location(START_ID, route_cfg.start_name, start)]
            locations += [
                Location(sid, it.name, it.coordinates) for sid, it in zip(store_ids, stops)
            ]
            locations.append(Location(END_ID, route_cfg.end_name, end))

            matrix = build_distance_matrix(self._grid, locations, self._planner)
            result = solve_route_order(
                START_ID, END_ID, store_ids, matrix, max_passes=route_cfg.max_two_opt_passes
            )
            ordered = [stops[store_ids.index(sid)] for sid in result.order]
            # 矩阵距离含不可达哨兵值时不作比较
            if max(result.initial_cost, result.cost) < UNREACHABLE_COST:
                original_distance = result.initial_cost
                optimized_distance = result.cost
            logger.info(f"[RoutePlanningService] 优化后的访问顺序: {[it.name for it in ordered]}")

        # ----------------------------------------------------------
        # 3) 路线拼接
        # ----------------------------------------------------------
        stitched = stitch_route(
            self._grid, start, [it.coordinates for it in ordered], end, self._planner
        )
        degraded_idx = {seg.index for seg in stitched.degraded_segments}

        route = [
            RoutePoint(
                order=i + 1,
                item=it.name,
                coordinates=it.coordinates,
                section=it.section,
                location=it.location,
                path_points=stitched.segments[i],
                degraded=i in degraded_idx,
            )
            for i, it in enumerate(ordered)
        ]

        if not (optimize and len(stops) > 1):
            original_distance = optimized_distance = stitched.length

        if original_distance > 0:
            saved = original_distance - optimized_distance
            logger.info(
                f"[RoutePlanningService] 优化结果: 原顺序={original_distance:.1f}px, "
                f"优化后={optimized_distance:.1f}px, 缩短={saved:.1f}px "
                f"({saved / original_distance * 100:.1f}%)"
            )

        return RouteData(
            items=items,
            route=route,
            total_distance=stitched.length,
            path=stitched.path,
            exit_path=stitched.segments[-1],
            degraded_segments=stitched.degraded_segments,
            unreachable_items=unreachable,
            original_distance=original_distance,
            optimized_distance=optimized_distance,
        )
