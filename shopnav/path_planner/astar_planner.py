#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路径规划模块：在通行栅格上实现 A* 算法
"""

# 标准库导入
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import heapq
import math

# 第三方库导入
from loguru import logger

# 本地导入
from shopnav.path_planner.map_model import GridCoord, PathPoint, PlanFailure, PlanResult
from shopnav.path_planner.path_smoothing import simplify_path_los
from shopnav.path_planner.walkable_grid import (
    DEFAULT_SNAP_RADIUS,
    PointLike,
    WalkableGrid,
    find_nearest_walkable,
)

DEFAULT_MAX_ITERATIONS = 10000

SQRT2 = math.sqrt(2.0)

# 8 邻接 (dx, dy, 步长)
NEIGHBORS: Tuple[Tuple[int, int, float], ...] = (
    (-1, -1, SQRT2), (-1, 0, 1.0), (-1, 1, SQRT2),
    (0, -1, 1.0),                  (0, 1, 1.0),
    (1, -1, SQRT2),  (1, 0, 1.0),  (1, 1, SQRT2),
)


@dataclass
class SearchNode:
    gx: int
    gy: int
    g: float
    h: float
    f: float
    parent: int = -1   # arena 中前驱节点的下标，-1 表示根节点
    closed: bool = False


class OpenSet:
    """
    open 集：按 (f, h, 插入序号) 取最小

    f 相同时优先 h 更小的节点；更新已在 open 集中的节点时直接压入新条目，
    旧条目在弹出时按 f 不一致或已关闭被跳过。
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, float, int, int]] = []
        self._counter = 0

    def push(self, node_idx: int, node: SearchNode) -> None:
        heapq.heappush(self._heap, (node.f, node.h, self._counter, node_idx))
        self._counter += 1

    def pop_min(self, arena: List[SearchNode]) -> Optional[int]:
        while self._heap:
            f, _, _, idx = heapq.heappop(self._heap)
            node = arena[idx]
            if node.closed or f != node.f:
                continue
            return idx
        return None

    def __len__(self) -> int:
        return len(self._heap)


def heuristic(a: GridCoord, b: GridCoord) -> float:
    """曼哈顿距离"""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class AStarPlanner:
    """
    A* 算法路径规划器

    起点/终点先修正到最近的可通行栅格，再在 8 邻接栅格图上搜索。
    直行代价 = 1 × 目标栅格代价，斜行代价 = √2 × 目标栅格代价；
    斜行时两个正交相邻栅格必须都可通行（禁止切墙角）。

    示例:
        ```python
        planner = AStarPlanner(max_iterations=10000)
        result = planner.plan(grid, start=(218, 160), goal=(212, 340))
        ```
    """

    def __init__(
        self,
        snap_max_radius: int = DEFAULT_SNAP_RADIUS,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        simplify: bool = False,
    ):
        """
        初始化 A* 规划器

        Args:
            snap_max_radius: 起点/终点修正的最大搜索半径（栅格）
            max_iterations: 最大扩展节点数，达到后按无路径处理
            simplify: 是否对结果做 LOS 简化（默认输出完整栅格路径）

        Raises:
            ValueError: 输入参数无效
        """
        if not isinstance(snap_max_radius, int) or snap_max_radius <= 0:
            raise ValueError("snap_max_radius必须是正整数")
        if not isinstance(max_iterations, int) or max_iterations <= 0:
            raise ValueError("max_iterations必须是正整数")
        if not isinstance(simplify, bool):
            raise ValueError("simplify必须是布尔值")

        self.snap_max_radius_ = snap_max_radius
        self.max_iterations_ = max_iterations
        self.simplify_ = simplify

    @classmethod
    def from_config(cls, cfg) -> "AStarPlanner":
        """根据 PathPlanningConfig 创建"""
        return cls(
            snap_max_radius=cfg.snap_max_radius,
            max_iterations=cfg.max_iterations,
            simplify=cfg.simplify_path,
        )

    def find_path(self, grid: WalkableGrid, start: PointLike, goal: PointLike) -> List[PathPoint]:
        """规划路径，任何失败都返回空列表"""
        return self.plan(grid, start, goal).path

    def plan(self, grid: WalkableGrid, start: PointLike, goal: PointLike) -> PlanResult:
        """
        规划路径

        Args:
            grid: 通行栅格
            start: 起点像素坐标
            goal: 终点像素坐标

        Returns:
            PlanResult，成功时 path 为栅格中心点序列
        """
        logger.debug(f"[A*] 开始路径规划: start={_fmt(start)}, goal={_fmt(goal)}")

        snapped_start = find_nearest_walkable(grid, start, self.snap_max_radius_)
        if snapped_start is None:
            logger.warning(f"[A*] 起点附近找不到可通行区域: start={_fmt(start)}")
            return PlanResult(ok=False, path=[], reason="起点不可达", failure=PlanFailure.START_UNREACHABLE)

        snapped_goal = find_nearest_walkable(grid, goal, self.snap_max_radius_)
        if snapped_goal is None:
            logger.warning(f"[A*] 终点附近找不到可通行区域: goal={_fmt(goal)}")
            return PlanResult(
                ok=False, path=[], reason="终点不可达",
                failure=PlanFailure.GOAL_UNREACHABLE, snapped_start=snapped_start,
            )

        start_cell = grid.pixel_to_grid(snapped_start)
        goal_cell = grid.pixel_to_grid(snapped_goal)

        cells, iterations, failure = self._search(grid, start_cell, goal_cell)
        if failure is not None:
            reason = "扩展节点数达到上限" if failure == PlanFailure.ITERATION_LIMIT else "无法找到路径"
            logger.warning(
                f"[A*] 路径规划失败({reason}): start={start_cell}, goal={goal_cell}, 迭代次数={iterations}"
            )
            return PlanResult(
                ok=False, path=[], reason=reason, failure=failure, iterations=iterations,
                snapped_start=snapped_start, snapped_goal=snapped_goal,
            )

        path = [grid.grid_to_pixel(c) for c in cells]
        goal_id = goal.id if isinstance(goal, PathPoint) else None
        if goal_id is not None:
            last = path[-1]
            path[-1] = PathPoint(last.x, last.y, goal_id)

        if self.simplify_ and len(path) > 2:
            path = simplify_path_los(path, grid)

        logger.debug(f"[A*] 路径规划成功: 路径点数={len(path)}, 迭代次数={iterations}")
        return PlanResult(
            ok=True, path=path, reason="ok", iterations=iterations,
            snapped_start=snapped_start, snapped_goal=snapped_goal,
        )

    def _search(
        self,
        grid: WalkableGrid,
        start: GridCoord,
        goal: GridCoord,
    ) -> Tuple[List[GridCoord], int, Optional[PlanFailure]]:
        """
        A* 核心实现

        Returns:
            (栅格路径, 迭代次数, 失败原因)，成功时失败原因为 None
        """
        if start == goal:
            return [start], 0, None

        arena: List[SearchNode] = []
        index_of: Dict[GridCoord, int] = {}
        open_set = OpenSet()

        h0 = heuristic(start, goal)
        arena.append(SearchNode(start[0], start[1], g=0.0, h=h0, f=h0))
        index_of[start] = 0
        open_set.push(0, arena[0])

        walkable = grid.walkable
        cost = grid.cost
        iterations = 0

        while iterations < self.max_iterations_:
            current_idx = open_set.pop_min(arena)
            if current_idx is None:
                return [], iterations, PlanFailure.NO_PATH

            iterations += 1
            current = arena[current_idx]
            current.closed = True
            cx, cy = current.gx, current.gy

            # 到达终点
            if (cx, cy) == goal:
                return self._reconstruct(arena, current_idx), iterations, None

            for dx, dy, step in NEIGHBORS:
                nx, ny = cx + dx, cy + dy
                if not grid.in_bounds(nx, ny) or not walkable[ny, nx]:
                    continue
                # 禁止切墙角
                if dx != 0 and dy != 0 and not (walkable[cy, nx] and walkable[ny, cx]):
                    continue

                tentative_g = current.g + step * float(cost[ny, nx])
                neighbor_idx = index_of.get((nx, ny))

                if neighbor_idx is None:
                    h = heuristic((nx, ny), goal)
                    node = SearchNode(nx, ny, g=tentative_g, h=h, f=tentative_g + h, parent=current_idx)
                    arena.append(node)
                    neighbor_idx = len(arena) - 1
                    index_of[(nx, ny)] = neighbor_idx
                    open_set.push(neighbor_idx, node)
                    continue

                node = arena[neighbor_idx]
                if node.closed or tentative_g >= node.g:
                    continue
                node.g = tentative_g
                node.f = tentative_g + node.h
                node.parent = current_idx
                open_set.push(neighbor_idx, node)

        return [], iterations, PlanFailure.ITERATION_LIMIT

    @staticmethod
    def _reconstruct(arena: List[SearchNode], idx: int) -> List[GridCoord]:
        cells: List[GridCoord] = []
        while idx != -1:
            node = arena[idx]
            cells.append((node.gx, node.gy))
            idx = node.parent
        cells.reverse()
        return cells


def _fmt(p: PointLike) -> str:
    try:
        return f"({p[0]:.1f}, {p[1]:.1f})"
    except (TypeError, ValueError, IndexError):
        return repr(p)
