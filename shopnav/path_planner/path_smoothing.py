#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路径简化模块：Line-of-sight 简化和共线点去除

功能：
- 使用Bresenham算法检测两个栅格之间是否无障碍
- 使用LOS简化路径，去除多余折线
- 去除方向不变的中间点

A* 默认输出完整栅格路径，这里的处理只在配置 simplify_path 开启时使用。
"""

from typing import Iterator, List, Tuple
from loguru import logger

from shopnav.path_planner.map_model import GridCoord, PathPoint
from shopnav.path_planner.walkable_grid import WalkableGrid


def traverse_cells(a: GridCoord, b: GridCoord) -> Iterator[GridCoord]:
    """
    沿 a -> b 的直线依次产出经过的栅格（含两端）

    每步只沿一个轴移动，相邻两个产出的栅格总是 4 邻接。
    """
    gx, gy = a
    tx, ty = b
    span_x, span_y = abs(tx - gx), abs(ty - gy)
    step_x = 1 if tx > gx else -1
    step_y = 1 if ty > gy else -1

    err = span_x - span_y
    yield gx, gy
    for _ in range(span_x + span_y):
        if err > 0:
            gx += step_x
            err -= 2 * span_y
        else:
            gy += step_y
            err += 2 * span_x
        yield gx, gy


def line_of_sight(grid: WalkableGrid, p1: GridCoord, p2: GridCoord) -> bool:
    """
    视线检测：p1 -> p2 直线经过的栅格是否全部可通行

    Args:
        grid: 通行栅格
        p1: 起点栅格 (gx, gy)
        p2: 终点栅格 (gx, gy)
    """
    return all(grid.is_walkable_cell(gx, gy) for gx, gy in traverse_cells(p1, p2))


def simplify_path_los(path: List[PathPoint], grid: WalkableGrid) -> List[PathPoint]:
    """
    基于 line-of-sight 的路径简化：
        尽量用更远的点替代中间折线点。

    Args:
        path: 原始路径（栅格中心像素坐标）
        grid: 通行栅格

    Returns:
        简化后的路径，首尾点保持不变
    """
    if len(path) <= 2:
        return path

    original_len = len(path)
    path = remove_collinear(path)
    cells = [grid.pixel_to_grid(p) for p in path]
    simplified = [path[0]]
    i = 0
    n = len(path)

    while i < n - 1:
        j = n - 1
        # 从尾部往回找最远可直连点
        while j > i + 1 and not line_of_sight(grid, cells[i], cells[j]):
            j -= 1
        simplified.append(path[j])
        i = j

    logger.debug(f"LOS简化: 原始路径点数={original_len}, 简化后={len(simplified)}")
    return simplified


def remove_collinear(path: List[PathPoint]) -> List[PathPoint]:
    """去除前后方向一致的中间点"""
    if len(path) <= 2:
        return path

    def direction(a: PathPoint, b: PathPoint) -> Tuple[float, float]:
        return (b.x - a.x, b.y - a.y)

    result = [path[0]]
    for i in range(1, len(path) - 1):
        d1 = direction(result[-1], path[i])
        d2 = direction(path[i], path[i + 1])
        # 叉积为0且同向视为共线
        if d1[0] * d2[1] - d1[1] * d2[0] == 0 and d1[0] * d2[0] + d1[1] * d2[1] > 0:
            continue
        result.append(path[i])
    result.append(path[-1])
    return result
