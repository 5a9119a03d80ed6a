#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路线拼接：按给定顺序把 起点 -> 停靠点... -> 终点 的逐段 A* 路径拼成一条连续路径
"""

from typing import List, Sequence

from loguru import logger

from shopnav.core.coordinate_utils import path_length
from shopnav.path_planner.astar_planner import AStarPlanner
from shopnav.path_planner.map_model import DegradedSegment, PathPoint, StitchResult
from shopnav.path_planner.walkable_grid import PointLike, WalkableGrid


def _as_point(p: PointLike) -> PathPoint:
    if isinstance(p, PathPoint):
        return p
    return PathPoint(float(p[0]), float(p[1]))


def stitch_route(
    grid: WalkableGrid,
    start: PointLike,
    stops: Sequence[PointLike],
    end: PointLike,
    planner: AStarPlanner,
) -> StitchResult:
    """
    拼接完整路线

    每一段调用 A*，除第一段外都丢弃段首点（与上一段末点重复）。
    某一段规划失败时不终止整条路线：直接插入 [段起点, 原始目标点] 作为直连边，
    记录为降级段，然后继续下一段。

    Args:
        grid: 通行栅格
        start: 起点
        stops: 按访问顺序排列的停靠点
        end: 终点
        planner: A* 规划器

    Returns:
        StitchResult：path 为整条路径，segments[i] 为到达第 i 个目标（最后一个为终点）的分段
    """
    targets: List[PathPoint] = [_as_point(p) for p in stops] + [_as_point(end)]
    current = _as_point(start)

    full_path: List[PathPoint] = []
    segments: List[List[PathPoint]] = []
    degraded: List[DegradedSegment] = []

    for index, target in enumerate(targets):
        result = planner.plan(grid, current, target)

        if result.ok and result.path:
            segment = result.path
        else:
            logger.warning(
                f"[RouteStitcher] 第{index}段规划失败({result.reason})，使用直连: "
                f"({current.x:.1f}, {current.y:.1f}) -> ({target.x:.1f}, {target.y:.1f})"
            )
            segment = [current, target]
            degraded.append(DegradedSegment(
                index=index,
                from_point=current,
                to_point=target,
                reason=result.failure.value if result.failure is not None else result.reason,
            ))

        segments.append(list(segment))
        if full_path:
            full_path.extend(segment[1:])
        else:
            full_path.extend(segment)

        current = target

    total = path_length(full_path)
    logger.info(
        f"[RouteStitcher] 路线拼接完成: 段数={len(targets)}, 路径点数={len(full_path)}, "
        f"总长度={total:.1f}px, 降级段数={len(degraded)}"
    )
    return StitchResult(path=full_path, segments=segments, degraded_segments=degraded, length=total)
