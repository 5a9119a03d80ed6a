#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
访问顺序优化：起点、终点固定的开放路径 TSP 近似解

最近邻构造初始解 + 2-opt 局部改进，得到局部最优（不保证全局最优）。
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from loguru import logger

from shopnav.path_planner.distance_matrix import DistanceMatrix

DEFAULT_MAX_PASSES = 1000

_REL_EPS = 1e-9


@dataclass
class OrderResult:
    order: List[str]          # 停靠点访问顺序（不含起点、终点）
    route: List[str]          # 完整路线 [start, ..., end]
    cost: float               # 优化后总距离
    initial_cost: float       # 按输入顺序的总距离
    passes: int               # 2-opt 遍历次数
    converged: bool = True    # 是否在遍历上限内收敛


def _improves(new_cost: float, best_cost: float) -> bool:
    return new_cost < best_cost - _REL_EPS * max(1.0, abs(best_cost))


def nearest_neighbor_order(start_id: str, stop_ids: Sequence[str], matrix: DistanceMatrix) -> List[str]:
    """
    最近邻构造：从起点出发，每次走向距离最近的未访问停靠点（距离相同时取输入顺序靠前者）

    Returns:
        停靠点顺序（不含起点）
    """
    order: List[str] = []
    unvisited = list(stop_ids)
    current = start_id

    while unvisited:
        nearest = min(unvisited, key=lambda sid: matrix.get(current, sid))
        order.append(nearest)
        unvisited.remove(nearest)
        current = nearest

    return order


def two_opt_swap(route: Sequence[str], i: int, j: int) -> List[str]:
    """翻转 route[i..j]"""
    return list(route[:i]) + list(reversed(route[i:j + 1])) + list(route[j + 1:])


def two_opt(
    route: Sequence[str],
    matrix: DistanceMatrix,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> Tuple[List[str], int, bool]:
    """
    2-opt 改进（首尾固定）

    对所有 1 <= i < j <= n-2 尝试翻转 route[i..j]，总距离变短就接受；
    重复完整遍历直到一轮没有任何改进，或达到 max_passes。

    Returns:
        (改进后的路线, 遍历次数, 是否收敛)
    """
    best = list(route)
    n = len(best)
    best_cost = matrix.route_cost(best)
    if n < 4:
        return best, 0, True

    passes = 0
    improved = True
    while improved:
        if passes >= max_passes:
            logger.warning(f"[TSP] 2-opt 达到遍历上限 {max_passes}，提前结束（当前距离: {best_cost:.1f}px）")
            return best, passes, False

        improved = False
        passes += 1
        for i in range(1, n - 2):
            for j in range(i + 1, n - 1):
                candidate = two_opt_swap(best, i, j)
                candidate_cost = matrix.route_cost(candidate)
                if _improves(candidate_cost, best_cost):
                    logger.debug(f"[TSP] 2-opt 改进: {best_cost:.1f}px -> {candidate_cost:.1f}px")
                    best = candidate
                    best_cost = candidate_cost
                    improved = True

    return best, passes, True


def solve_route_order(
    start_id: str,
    end_id: str,
    stop_ids: Sequence[str],
    matrix: DistanceMatrix,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> OrderResult:
    """
    求停靠点访问顺序

    分别从最近邻初始解和输入顺序出发做 2-opt，取总距离较小者（相同时取最近邻）。
    因此结果不会比输入顺序更差。

    Args:
        start_id: 起点ID
        end_id: 终点ID
        stop_ids: 停靠点ID（输入顺序）
        matrix: 距离矩阵
        max_passes: 2-opt 最大遍历次数

    Returns:
        OrderResult
    """
    stop_ids = list(stop_ids)
    identity_route = [start_id] + stop_ids + [end_id]
    initial_cost = matrix.route_cost(identity_route)

    if len(stop_ids) <= 1:
        return OrderResult(
            order=stop_ids, route=identity_route, cost=initial_cost,
            initial_cost=initial_cost, passes=0,
        )

    logger.info(f"[TSP] 访问顺序优化开始: 停靠点数={len(stop_ids)}, 输入顺序距离={initial_cost:.1f}px")

    nn_route = [start_id] + nearest_neighbor_order(start_id, stop_ids, matrix) + [end_id]
    nn_best, nn_passes, nn_converged = two_opt(nn_route, matrix, max_passes)
    id_best, id_passes, id_converged = two_opt(identity_route, matrix, max_passes)

    nn_cost = matrix.route_cost(nn_best)
    id_cost = matrix.route_cost(id_best)
    if _improves(id_cost, nn_cost):
        route, cost, passes, converged = id_best, id_cost, id_passes, id_converged
    else:
        route, cost, passes, converged = nn_best, nn_cost, nn_passes, nn_converged

    logger.info(
        f"[TSP] 访问顺序优化完成: 总距离={cost:.1f}px, "
        f"缩短={initial_cost - cost:.1f}px, 2-opt遍历={passes}"
    )
    return OrderResult(
        order=route[1:-1], route=route, cost=cost,
        initial_cost=initial_cost, passes=passes, converged=converged,
    )
