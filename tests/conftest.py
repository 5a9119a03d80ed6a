#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
测试公共 fixture
"""

from pathlib import Path

import pytest

from shopnav.config.loader import load_config
from shopnav.config.models import NavigationConfig
from shopnav.path_planner.astar_planner import AStarPlanner
from shopnav.path_planner.walkable_grid import Rect, build_walkable_grid

REPO_ROOT = Path(__file__).resolve().parent.parent
CONFIG_PATH = REPO_ROOT / "config" / "config.yaml"


def is_adjacent(a, b, cell_size=10) -> bool:
    """两个栅格中心是否 8 邻接"""
    dx = abs(a.x - b.x) / cell_size
    dy = abs(a.y - b.y) / cell_size
    return max(dx, dy) == 1


def cuts_corner(grid, a, b) -> bool:
    """斜向移动是否经过了障碍墙角"""
    ax, ay = grid.pixel_to_grid(a)
    bx, by = grid.pixel_to_grid(b)
    if ax == bx or ay == by:
        return False
    return not (grid.is_walkable_cell(bx, ay) and grid.is_walkable_cell(ax, by))


@pytest.fixture
def store_config() -> NavigationConfig:
    return load_config(CONFIG_PATH)


@pytest.fixture
def corridor_grid():
    """90x51 栅格，只有一条纵向通道 (200,129)-(220,363)"""
    return build_walkable_grid(90, 51, 10, [Rect(200, 129, 220, 363, cost=1)])


@pytest.fixture
def open_grid():
    """20x20 全部可通行"""
    return build_walkable_grid(20, 20, 10, [Rect(0, 0, 200, 200)])


@pytest.fixture
def split_grid():
    """左右两块互不连通的区域，中间一列为墙"""
    return build_walkable_grid(
        20, 20, 10,
        [Rect(0, 0, 200, 200)],
        [Rect(100, 0, 110, 200)],
    )


@pytest.fixture
def planner() -> AStarPlanner:
    return AStarPlanner()


@pytest.fixture
def small_store_dict() -> dict:
    """
    小卖场：上方长通道 A，左下角孤立的房间 B（与 A 不连通）
    """
    return {
        "store_map": {
            "display_size": [300, 200],
            "cell_size": 10,
            "walkable_areas": [
                {"name": "A", "x1": 0, "y1": 0, "x2": 300, "y2": 50, "cost": 1},
                {"name": "B", "x1": 0, "y1": 150, "x2": 100, "y2": 200, "cost": 1},
            ],
            "obstacle_areas": [
                {"name": "pillar", "x1": 140, "y1": 10, "x2": 160, "y2": 40},
            ],
        },
        "path_planning": {"snap_max_radius": 3, "max_iterations": 10000},
        "route": {
            "start": {"x": 15, "y": 15},
            "end": {"x": 285, "y": 15},
        },
    }


@pytest.fixture
def small_store_config(small_store_dict) -> NavigationConfig:
    return NavigationConfig(**small_store_dict)
