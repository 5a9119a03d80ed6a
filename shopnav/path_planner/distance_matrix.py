#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
距离矩阵：用 A* 实际路径长度计算各位置之间的两两距离

每次规划请求重新计算，停靠点集合不同的请求之间不共享。
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from loguru import logger

from shopnav.core.coordinate_utils import path_length
from shopnav.path_planner.astar_planner import AStarPlanner
from shopnav.path_planner.map_model import Location
from shopnav.path_planner.walkable_grid import WalkableGrid

# 无路径时的距离，足够大以压过任何真实路径，又不会让求和失去精度
UNREACHABLE_COST = 1e9


class DistanceMatrix:
    """(from_id, to_id) -> 路径长度（像素）"""

    def __init__(self, ids: Sequence[str], entries: Dict[Tuple[str, str], float]) -> None:
        self._ids = list(ids)
        self._entries = dict(entries)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def get(self, from_id: str, to_id: str) -> float:
        if from_id == to_id:
            return 0.0
        return self._entries[(from_id, to_id)]

    def __getitem__(self, key: Tuple[str, str]) -> float:
        return self.get(*key)

    def __len__(self) -> int:
        return len(self._ids)

    def is_reachable(self, from_id: str, to_id: str) -> bool:
        return self.get(from_id, to_id) < UNREACHABLE_COST

    def route_cost(self, route: Iterable[str]) -> float:
        """按顺序累加相邻两点的距离"""
        total = 0.0
        prev = None
        for node_id in route:
            if prev is not None:
                total += self.get(prev, node_id)
            prev = node_id
        return total


def build_distance_matrix(
    grid: WalkableGrid,
    locations: Sequence[Location],
    planner: AStarPlanner,
) -> DistanceMatrix:
    """
    计算两两路径距离

    Args:
        grid: 通行栅格
        locations: 位置列表（起点、各停靠点、终点）
        planner: A* 规划器

    Returns:
        DistanceMatrix，无路径的条目为 UNREACHABLE_COST
    """
    ids = [loc.id for loc in locations]
    if len(set(ids)) != len(ids):
        raise ValueError(f"位置ID重复: {ids}")

    logger.info(f"[DistanceMatrix] 距离矩阵计算中: 位置数={len(locations)}")

    entries: Dict[Tuple[str, str], float] = {}
    unreachable = 0
    for src in locations:
        for dst in locations:
            if src.id == dst.id:
                entries[(src.id, dst.id)] = 0.0
                continue

            result = planner.plan(grid, src.coordinates, dst.coordinates)
            if result.ok:
                entries[(src.id, dst.id)] = path_length(result.path)
            else:
                entries[(src.id, dst.id)] = UNREACHABLE_COST
                unreachable += 1

    if unreachable:
        logger.warning(f"[DistanceMatrix] {unreachable} 个位置对之间没有路径")
    logger.info("[DistanceMatrix] 距离矩阵计算完成")
    return DistanceMatrix(ids, entries)
