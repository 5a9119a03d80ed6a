#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
坐标转换工具模块

提供像素坐标和栅格坐标之间的转换，以及路径长度、朝向角等几何工具。
"""

import math
from typing import Iterable, Sequence, Tuple


def pixel_to_grid(pixel_pos: Tuple[float, float], cell_size: float) -> Tuple[int, int]:
    """
    将像素坐标转换为栅格坐标（不做边界裁剪）

    Args:
        pixel_pos: 像素坐标 (x, y)
        cell_size: 每个栅格的像素边长

    Returns:
        栅格坐标 (gx, gy)
    """
    x, y = pixel_pos
    return (int(math.floor(x / cell_size)), int(math.floor(y / cell_size)))


def grid_to_pixel(grid_pos: Tuple[int, int], cell_size: float) -> Tuple[float, float]:
    """
    将栅格坐标转换为像素坐标（栅格中心）

    Args:
        grid_pos: 栅格坐标 (gx, gy)
        cell_size: 每个栅格的像素边长

    Returns:
        像素坐标 (x, y)
    """
    gx, gy = grid_pos
    half = cell_size / 2
    return (gx * cell_size + half, gy * cell_size + half)


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """两点欧氏距离"""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def path_length(points: Iterable[Sequence[float]]) -> float:
    """折线总长度（欧氏距离之和）"""
    total = 0.0
    prev = None
    for p in points:
        if prev is not None:
            total += distance(prev, p)
        prev = p
    return total


def is_finite_point(point: Sequence[float]) -> bool:
    return len(point) >= 2 and math.isfinite(point[0]) and math.isfinite(point[1])


def wrap_angle(angle: float) -> float:
    """将角度（弧度）归一化到 (-pi, pi]"""
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    if wrapped == -math.pi:
        return math.pi
    return wrapped
