from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, List

GridCoord = Tuple[int, int]
Pixel = Tuple[float, float]


@dataclass(frozen=True)
class PathPoint:
    x: float
    y: float
    id: Optional[str] = None

    def as_tuple(self) -> Pixel:
        return (self.x, self.y)

    def __getitem__(self, idx: int) -> float:
        # 允许按 (x, y) 元组的方式使用
        return (self.x, self.y)[idx]

    def __len__(self) -> int:
        return 2


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    coordinates: PathPoint


class PlanFailure(str, Enum):
    START_UNREACHABLE = "start_unreachable"   # 起点附近找不到可通行栅格
    GOAL_UNREACHABLE = "goal_unreachable"     # 终点附近找不到可通行栅格
    NO_PATH = "no_path"                       # open 集耗尽，两点不连通
    ITERATION_LIMIT = "iteration_limit"       # 扩展节点数达到上限，按无路径处理


@dataclass
class PlanResult:
    ok: bool
    path: List[PathPoint]
    reason: str = ""
    failure: Optional[PlanFailure] = None
    iterations: int = 0
    snapped_start: Optional[PathPoint] = None
    snapped_goal: Optional[PathPoint] = None


@dataclass(frozen=True)
class DegradedSegment:
    index: int                # 第几段（0 = 起点到第一个停靠点）
    from_point: PathPoint
    to_point: PathPoint
    reason: str


@dataclass
class StitchResult:
    path: List[PathPoint]
    segments: List[List[PathPoint]] = field(default_factory=list)
    degraded_segments: List[DegradedSegment] = field(default_factory=list)
    length: float = 0.0

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_segments)


@dataclass(frozen=True)
class RouteItem:
    """外部商品检索给出的停靠点：商品名、货架像素坐标、区域编号"""
    name: str
    coordinates: PathPoint
    section: str = ""
    location: str = ""


@dataclass
class RoutePoint:
    order: int
    item: str
    coordinates: PathPoint
    section: str = ""
    location: str = ""
    path_points: List[PathPoint] = field(default_factory=list)   # 到达该点的分段路径
    degraded: bool = False


@dataclass
class RouteData:
    items: List[RouteItem]
    route: List[RoutePoint]
    total_distance: float
    path: List[PathPoint] = field(default_factory=list)
    exit_path: List[PathPoint] = field(default_factory=list)      # 最后一个停靠点到终点
    degraded_segments: List[DegradedSegment] = field(default_factory=list)
    unreachable_items: List[RouteItem] = field(default_factory=list)
    original_distance: float = 0.0     # 按输入顺序的矩阵距离
    optimized_distance: float = 0.0    # 按优化后顺序的矩阵距离

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_segments)
