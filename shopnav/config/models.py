#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
导航配置模型

使用Pydantic定义类型安全的配置模型。卖场布局、规划参数和标定参数都在这里定义。
"""

import math
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator, AliasChoices


def _check_finite(values, name: str):
    for v in values:
        if not math.isfinite(v):
            raise ValueError(f"{name} 必须是有限数值: {values}")


class PointConfig(BaseModel):
    """像素坐标点"""
    x: float = Field(..., description="x 坐标（像素）")
    y: float = Field(..., description="y 坐标（像素）")

    @field_validator('x', 'y')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"坐标必须是有限数值: {v}")
        return v

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


class AreaConfig(BaseModel):
    """矩形区域（像素坐标，左上 x1,y1 到右下 x2,y2）"""
    name: str = Field("", description="区域名称（仅用于日志）")
    x1: float = Field(..., description="左上角 x")
    y1: float = Field(..., description="左上角 y")
    x2: float = Field(..., description="右下角 x")
    y2: float = Field(..., description="右下角 y")

    @model_validator(mode='after')
    def validate_coords(self) -> 'AreaConfig':
        """验证坐标为有限数值（倒置或越界的矩形允许，构建栅格时被裁剪）"""
        _check_finite((self.x1, self.y1, self.x2, self.y2), "区域坐标")
        return self


class WalkableAreaConfig(AreaConfig):
    """可通行区域"""
    cost: float = Field(1.0, description="通行代价：1=普通通道，2=狭窄通道")

    @field_validator('cost')
    @classmethod
    def validate_cost(cls, v: float) -> float:
        """验证通行代价"""
        if not math.isfinite(v) or v < 1:
            raise ValueError(f"通行代价必须 >= 1: {v}")
        return v


class StoreMapConfig(BaseModel):
    """卖场地图配置"""
    display_size: Tuple[int, int] = Field(..., description="地图显示尺寸 (width, height)，像素")
    cell_size: int = Field(10, description="每个栅格的像素边长")
    walkable_areas: List[WalkableAreaConfig] = Field(..., description="可通行区域列表（按顺序绘制）")
    obstacle_areas: List[AreaConfig] = Field(default_factory=list, description="障碍区域列表（在可通行区域之后绘制）")

    @field_validator('display_size')
    @classmethod
    def validate_display_size(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        """验证尺寸"""
        width, height = v
        if width <= 0 or height <= 0:
            raise ValueError(f"地图尺寸必须大于0: {v}")
        return v

    @field_validator('cell_size')
    @classmethod
    def validate_cell_size(cls, v: int) -> int:
        """验证栅格尺寸"""
        if v <= 0:
            raise ValueError(f"栅格尺寸必须大于0: {v}")
        return v

    @property
    def grid_size(self) -> Tuple[int, int]:
        """栅格数量 (width, height)"""
        w, h = self.display_size
        return (math.ceil(w / self.cell_size), math.ceil(h / self.cell_size))


class PathPlanningConfig(BaseModel):
    """路径规划配置"""
    snap_max_radius: int = Field(
        30,
        description="起点/终点修正到最近可通行栅格的最大搜索半径（栅格）",
        validation_alias=AliasChoices("snap_max_radius", "max_adjust_radius"),
    )
    max_iterations: int = Field(10000, description="A* 最大扩展节点数")
    simplify_path: bool = Field(False, description="是否启用 LOS 路径简化（默认输出完整栅格路径）")

    @field_validator('snap_max_radius', 'max_iterations')
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """验证正整数"""
        if v <= 0:
            raise ValueError(f"值必须大于0: {v}")
        return v


class RouteConfig(BaseModel):
    """购物路线配置"""
    start: PointConfig = Field(..., description="起点（入口）")
    end: PointConfig = Field(..., description="终点（收银台）")
    start_name: str = Field("入口", description="起点名称")
    end_name: str = Field("收银台", description="终点名称")
    optimize_order: bool = Field(True, description="是否启用 TSP 顺序优化")
    max_two_opt_passes: int = Field(1000, description="2-opt 最大完整遍历次数")
    exclude_unreachable_stops: bool = Field(False, description="是否从路线中剔除不可达的停靠点")

    @field_validator('max_two_opt_passes')
    @classmethod
    def validate_passes(cls, v: int) -> int:
        """验证遍历次数"""
        if v <= 0:
            raise ValueError(f"2-opt 遍历次数必须大于0: {v}")
        return v


class CalibrationPointConfig(BaseModel):
    """预定义标定点"""
    id: str = Field(..., description="标定点ID")
    description: str = Field("", description="描述")
    web_coord: Tuple[float, float] = Field(..., description="地图像素坐标")
    robot_coord: Tuple[float, float] = Field(
        ...,
        description="机器人坐标系坐标",
        validation_alias=AliasChoices("robot_coord", "ros_coord"),
    )

    @field_validator('web_coord', 'robot_coord')
    @classmethod
    def validate_coord(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        _check_finite(v, "标定坐标")
        return v


class CalibrationConfig(BaseModel):
    """坐标标定配置"""
    min_points: int = Field(3, description="求解相似变换所需的最少标定点数")
    accuracy_warning_px: float = Field(5.0, description="平均残差超过该值（像素）时给出数据质量警告")
    storage_path: Optional[str] = Field(None, description="标定点持久化文件路径（JSON，可选）")
    predefined_points: List[CalibrationPointConfig] = Field(default_factory=list, description="预定义标定点")

    @field_validator('min_points')
    @classmethod
    def validate_min_points(cls, v: int) -> int:
        """二维相似变换至少需要3个点"""
        if v < 3:
            raise ValueError(f"最少标定点数不能小于3: {v}")
        return v

    @field_validator('accuracy_warning_px')
    @classmethod
    def validate_accuracy_warning(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"残差警告阈值必须大于0: {v}")
        return v


class LogConfig(BaseModel):
    """日志配置"""
    level: str = Field("INFO", description="日志等级")
    log_dir: str = Field("Logs", description="日志目录")
    retention: str = Field("10 days", description="日志保留时长")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"未知日志等级: {v}")
        return v


class NavigationConfig(BaseModel):
    """导航主配置"""
    store_map: StoreMapConfig = Field(..., description="卖场地图配置")
    path_planning: PathPlanningConfig = Field(default_factory=PathPlanningConfig, description="路径规划配置")
    route: RouteConfig = Field(..., description="购物路线配置")
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig, description="坐标标定配置")
    log: LogConfig = Field(default_factory=LogConfig, description="日志配置")
