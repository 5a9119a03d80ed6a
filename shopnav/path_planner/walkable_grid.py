#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
通行栅格模块：把卖场的可通行矩形 / 障碍矩形离散成代价栅格

功能：
- 构建 WalkableGrid（先批量绘制可通行区域，再批量绘制障碍区域，障碍始终覆盖）
- 像素坐标 <-> 栅格坐标转换
- 在栅格上寻找离任意像素点最近的可通行栅格
"""

# 标准库导入
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

# 第三方库导入
import numpy as np
from loguru import logger

# 本地导入
from shopnav.config.models import StoreMapConfig
from shopnav.core.coordinate_utils import pixel_to_grid, grid_to_pixel, is_finite_point
from shopnav.errors import InvalidGeometryError
from shopnav.path_planner.map_model import GridCoord, PathPoint

IMPASSABLE_COST = 999.0
DEFAULT_SNAP_RADIUS = 30

PointLike = Union[PathPoint, Sequence[float]]


@dataclass(frozen=True)
class Rect:
    """像素空间矩形，cost 仅对可通行区域有意义"""
    x1: float
    y1: float
    x2: float
    y2: float
    cost: float = 1.0
    name: str = ""


@dataclass(frozen=True)
class GridCell:
    gx: int
    gy: int
    x: float          # 栅格左上角像素坐标
    y: float
    walkable: bool
    cost: float


@dataclass(frozen=True, eq=False)
class WalkableGrid:
    """
    通行栅格（只读）

    walkable / cost 都是 (height, width) 的 numpy 数组，按 [gy, gx] 索引，
    构建后设置为不可写，可在多个规划请求之间安全共享。
    """
    width: int
    height: int
    cell_size: float
    walkable: np.ndarray
    cost: np.ndarray

    def in_bounds(self, gx: int, gy: int) -> bool:
        return 0 <= gx < self.width and 0 <= gy < self.height

    def is_walkable_cell(self, gx: int, gy: int) -> bool:
        return self.in_bounds(gx, gy) and bool(self.walkable[gy, gx])

    def is_walkable(self, x: float, y: float) -> bool:
        """像素点所在栅格是否可通行（越界或非有限坐标视为不可通行）"""
        if not (math.isfinite(x) and math.isfinite(y)):
            return False
        gx, gy = self.pixel_to_grid((x, y))
        return self.is_walkable_cell(gx, gy)

    def cell(self, gx: int, gy: int) -> GridCell:
        if not self.in_bounds(gx, gy):
            raise IndexError(f"栅格坐标越界: ({gx}, {gy}), grid_size=({self.width}, {self.height})")
        return GridCell(
            gx=gx,
            gy=gy,
            x=gx * self.cell_size,
            y=gy * self.cell_size,
            walkable=bool(self.walkable[gy, gx]),
            cost=float(self.cost[gy, gx]),
        )

    def pixel_to_grid(self, pos: PointLike) -> GridCoord:
        return pixel_to_grid((pos[0], pos[1]), self.cell_size)

    def grid_to_pixel(self, grid_pos: GridCoord) -> PathPoint:
        x, y = grid_to_pixel(grid_pos, self.cell_size)
        return PathPoint(x, y)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def walkable_count(self) -> int:
        return int(np.count_nonzero(self.walkable))


def _cell_span(a: float, b: float, cell_size: float, limit: int) -> Optional[Tuple[int, int]]:
    """
    矩形在某一轴上覆盖的栅格范围（闭区间），b 端减 1 像素，避免恰好落在边界上的栅格被多占

    倒置或完全越界时返回 None
    """
    start = int(math.floor(a / cell_size))
    end = int(math.floor((b - 1) / cell_size))
    start = max(start, 0)
    end = min(end, limit - 1)
    if start > end:
        return None
    return (start, end)


def _check_rect(rect: Rect) -> None:
    if not all(math.isfinite(v) for v in (rect.x1, rect.y1, rect.x2, rect.y2)):
        raise InvalidGeometryError(f"区域坐标必须是有限数值: {rect}")


def build_walkable_grid(
    width: int,
    height: int,
    cell_size: float,
    walkable_areas: Iterable[Rect],
    obstacle_areas: Iterable[Rect] = (),
) -> WalkableGrid:
    """
    构建通行栅格

    所有栅格初始为不可通行；先按顺序绘制全部可通行区域（写入各自代价），
    再绘制全部障碍区域。两批不交错，保证障碍不会被后面的可通行区域重新打开。

    Args:
        width: 栅格列数
        height: 栅格行数
        cell_size: 每个栅格的像素边长
        walkable_areas: 可通行矩形（像素坐标，含 cost）
        obstacle_areas: 障碍矩形（像素坐标）

    Returns:
        只读的 WalkableGrid

    Raises:
        InvalidGeometryError: 尺寸非正、坐标非有限或代价小于1
    """
    if width <= 0 or height <= 0:
        raise InvalidGeometryError(f"栅格尺寸必须大于0: ({width}, {height})")
    if not math.isfinite(cell_size) or cell_size <= 0:
        raise InvalidGeometryError(f"栅格像素边长必须大于0: {cell_size}")

    walkable_areas = list(walkable_areas)
    obstacle_areas = list(obstacle_areas)
    for rect in walkable_areas:
        _check_rect(rect)
        if not math.isfinite(rect.cost) or rect.cost < 1:
            raise InvalidGeometryError(f"通行代价必须 >= 1: {rect}")
    for rect in obstacle_areas:
        _check_rect(rect)

    walkable = np.zeros((height, width), dtype=bool)
    cost = np.full((height, width), IMPASSABLE_COST, dtype=np.float64)

    # 1) 可通行区域
    for rect in walkable_areas:
        xs = _cell_span(rect.x1, rect.x2, cell_size, width)
        ys = _cell_span(rect.y1, rect.y2, cell_size, height)
        if xs is None or ys is None:
            logger.debug(f"可通行区域被完全裁剪: {rect}")
            continue
        walkable[ys[0]:ys[1] + 1, xs[0]:xs[1] + 1] = True
        cost[ys[0]:ys[1] + 1, xs[0]:xs[1] + 1] = rect.cost

    # 2) 障碍区域（始终覆盖）
    for rect in obstacle_areas:
        xs = _cell_span(rect.x1, rect.x2, cell_size, width)
        ys = _cell_span(rect.y1, rect.y2, cell_size, height)
        if xs is None or ys is None:
            logger.debug(f"障碍区域被完全裁剪: {rect}")
            continue
        walkable[ys[0]:ys[1] + 1, xs[0]:xs[1] + 1] = False
        cost[ys[0]:ys[1] + 1, xs[0]:xs[1] + 1] = IMPASSABLE_COST

    walkable.setflags(write=False)
    cost.setflags(write=False)

    grid = WalkableGrid(width=width, height=height, cell_size=cell_size, walkable=walkable, cost=cost)
    logger.info(
        f"通行栅格构建完成: grid_size=({width}, {height}), cell_size={cell_size}, "
        f"可通行区域={len(walkable_areas)}, 障碍区域={len(obstacle_areas)}, "
        f"可通行栅格={grid.walkable_count}"
    )
    return grid


def build_walkable_grid_from_config(cfg: StoreMapConfig) -> WalkableGrid:
    """根据 StoreMapConfig 构建通行栅格，栅格数量 = ceil(显示尺寸 / cell_size)"""
    grid_w, grid_h = cfg.grid_size
    walkable_areas = [
        Rect(a.x1, a.y1, a.x2, a.y2, cost=a.cost, name=a.name) for a in cfg.walkable_areas
    ]
    obstacle_areas = [
        Rect(a.x1, a.y1, a.x2, a.y2, cost=IMPASSABLE_COST, name=a.name) for a in cfg.obstacle_areas
    ]
    return build_walkable_grid(grid_w, grid_h, cfg.cell_size, walkable_areas, obstacle_areas)


def find_nearest_walkable(
    grid: WalkableGrid,
    point: PointLike,
    max_radius: int = DEFAULT_SNAP_RADIUS,
) -> Optional[PathPoint]:
    """
    找到离像素点最近的可通行栅格

    所在栅格本身可通行时原样返回输入点；否则按切比雪夫半径 1..max_radius
    逐圈搜索（每圈按 dy、dx 升序遍历圈上的栅格），返回第一个可通行栅格的中心。

    Args:
        grid: 通行栅格
        point: 像素坐标 (x, y)
        max_radius: 最大搜索半径（栅格）

    Returns:
        可通行的像素点，找不到（或坐标非有限）则返回 None
    """
    if not is_finite_point(point):
        logger.warning(f"坐标不是有限数值，无法修正: {point}")
        return None

    x, y = float(point[0]), float(point[1])
    point_id = point.id if isinstance(point, PathPoint) else None

    if grid.is_walkable(x, y):
        return PathPoint(x, y, point_id)

    cx, cy = grid.pixel_to_grid((x, y))
    for radius in range(1, max_radius + 1):
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                # 只检查圈上的栅格
                if abs(dx) != radius and abs(dy) != radius:
                    continue
                gx, gy = cx + dx, cy + dy
                if grid.is_walkable_cell(gx, gy):
                    snapped = grid.grid_to_pixel((gx, gy))
                    logger.debug(f"坐标修正: ({x}, {y}) -> ({snapped.x}, {snapped.y}), 半径={radius}")
                    return PathPoint(snapped.x, snapped.y, point_id)

    logger.warning(f"在半径 {max_radius} 内未找到可通行区域: ({x}, {y})")
    return None
