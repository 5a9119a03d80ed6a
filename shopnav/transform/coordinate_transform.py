#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
坐标变换模块：机器人坐标系 <-> 地图像素坐标系

功能：
- 管理标定点（同一ID重复添加时覆盖）
- 用标定点拟合二维相似变换（均匀缩放 + 旋转 + 平移，Procrustes 最小二乘）
- forward: 机器人坐标 -> 像素坐标；inverse: 像素坐标 -> 机器人坐标
- 标定点少于3个时自动禁用，forward / inverse 原样返回输入

线程模型：修改操作（增删标定点、重新拟合）由一把锁串行化；
读取方只读取当前的不可变参数快照，整体替换，不会读到一半更新的参数。
"""

import json
import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from shopnav.core.coordinate_utils import is_finite_point, wrap_angle
from shopnav.errors import CalibrationError
from shopnav.path_planner.map_model import PathPoint

Point2D = Tuple[float, float]
PointLike = Union[PathPoint, Sequence[float]]

MIN_CALIBRATION_POINTS = 3
DEFAULT_ACCURACY_WARNING_PX = 5.0


@dataclass(frozen=True)
class CalibrationPoint:
    id: str
    description: str
    web_coord: Point2D        # 地图像素坐标
    robot_coord: Point2D      # 机器人坐标系坐标
    timestamp: datetime


@dataclass(frozen=True)
class TransformParameters:
    translation: Point2D = (0.0, 0.0)
    rotation: float = 0.0                  # 弧度
    scale: float = 1.0                     # 均匀缩放
    enabled: bool = False
    calibration_points: Tuple[CalibrationPoint, ...] = ()
    timestamp: Optional[datetime] = None
    accuracy: float = 0.0                  # 平均残差（像素）
    quality_warning: bool = False          # 残差超过阈值


DISABLED_TRANSFORM = TransformParameters()


@dataclass(frozen=True)
class RobotPose:
    x: float
    y: float
    heading: float   # 弧度


@dataclass(frozen=True)
class PointResidual:
    id: str
    description: str
    expected: Point2D
    actual: Point2D
    error: float


@dataclass
class AccuracyReport:
    average_error: float = 0.0
    max_error: float = 0.0
    details: List[PointResidual] = field(default_factory=list)


def apply_similarity(point: Point2D, translation: Point2D, rotation: float, scale: float) -> Point2D:
    """缩放 -> 旋转 -> 平移"""
    x = point[0] * scale
    y = point[1] * scale
    c, s = math.cos(rotation), math.sin(rotation)
    return (x * c - y * s + translation[0], x * s + y * c + translation[1])


def invert_similarity(point: Point2D, translation: Point2D, rotation: float, scale: float) -> Point2D:
    """平移逆 -> 旋转逆 -> 缩放逆"""
    x = point[0] - translation[0]
    y = point[1] - translation[1]
    c, s = math.cos(-rotation), math.sin(-rotation)
    return ((x * c - y * s) / scale, (x * s + y * c) / scale)


def fit_similarity_transform(
    points: Sequence[CalibrationPoint],
) -> Optional[Tuple[Point2D, float, float, float]]:
    """
    由标定点拟合 robot -> web 的相似变换

    scale = sqrt(Σ|web_c|² / Σ|robot_c|²)
    rotation = atan2(Σ cross(robot_c, web_c), Σ dot(robot_c, web_c))
    translation 使 robot 质心映射到 web 质心

    Args:
        points: 标定点（至少3个）

    Returns:
        (translation, rotation, scale, 平均残差)，点集退化（所有点重合）时返回 None
    """
    if len(points) < MIN_CALIBRATION_POINTS:
        return None

    robot = np.array([p.robot_coord for p in points], dtype=np.float64)
    web = np.array([p.web_coord for p in points], dtype=np.float64)

    robot_center = robot.mean(axis=0)
    web_center = web.mean(axis=0)
    robot_c = robot - robot_center
    web_c = web - web_center

    sum_robot_sq = float(np.sum(robot_c ** 2))
    sum_web_sq = float(np.sum(web_c ** 2))
    if sum_robot_sq <= 1e-12 or sum_web_sq <= 1e-12:
        return None

    scale = math.sqrt(sum_web_sq / sum_robot_sq)

    sum_cross = float(np.sum(robot_c[:, 0] * web_c[:, 1] - robot_c[:, 1] * web_c[:, 0]))
    sum_dot = float(np.sum(robot_c[:, 0] * web_c[:, 0] + robot_c[:, 1] * web_c[:, 1]))
    rotation = math.atan2(sum_cross, sum_dot)

    c, s = math.cos(rotation), math.sin(rotation)
    rotated_center = scale * np.array([
        robot_center[0] * c - robot_center[1] * s,
        robot_center[0] * s + robot_center[1] * c,
    ])
    tx, ty = (web_center - rotated_center).tolist()

    # 残差
    rot = np.array([[c, -s], [s, c]])
    mapped = scale * robot @ rot.T + np.array([tx, ty])
    residuals = np.linalg.norm(mapped - web, axis=1)
    accuracy = float(residuals.mean())

    return (tx, ty), rotation, scale, accuracy


class CoordinateTransformManager:
    """
    坐标变换管理器

    示例:
        ```python
        manager = CoordinateTransformManager()
        manager.add_calibration_point("p1", "入口", web_coord=(218, 192), robot_coord=(39.16, -54.16))
        ...
        web_xy = manager.forward((x, y))
        robot_xy = manager.inverse(web_xy)
        ```
    """

    def __init__(
        self,
        min_points: int = MIN_CALIBRATION_POINTS,
        accuracy_warning_px: float = DEFAULT_ACCURACY_WARNING_PX,
        storage_path: Optional[Union[str, Path]] = None,
    ) -> None:
        if min_points < MIN_CALIBRATION_POINTS:
            raise ValueError(f"min_points 不能小于 {MIN_CALIBRATION_POINTS}: {min_points}")
        self.min_points_ = min_points
        self.accuracy_warning_px_ = accuracy_warning_px
        self.storage_path_ = Path(storage_path) if storage_path else None

        self._lock = threading.Lock()
        self._points: Dict[str, CalibrationPoint] = {}
        self._params: TransformParameters = DISABLED_TRANSFORM

    @classmethod
    def from_config(cls, cfg) -> "CoordinateTransformManager":
        """
        根据 CalibrationConfig 创建：持久化文件存在时从文件加载，否则加载预定义标定点
        """
        manager = cls(
            min_points=cfg.min_points,
            accuracy_warning_px=cfg.accuracy_warning_px,
            storage_path=cfg.storage_path,
        )
        if manager.storage_path_ is not None and manager.storage_path_.exists():
            manager.load()
        elif cfg.predefined_points:
            manager.load_points(
                (p.id, p.description, p.web_coord, p.robot_coord) for p in cfg.predefined_points
            )
        return manager

    # ------------------------------------------------------------------
    # 读取（无锁，读取当前快照）
    # ------------------------------------------------------------------
    @property
    def parameters(self) -> TransformParameters:
        return self._params

    @property
    def enabled(self) -> bool:
        return self._params.enabled

    @property
    def calibration_points(self) -> List[CalibrationPoint]:
        with self._lock:
            return list(self._points.values())

    def forward(self, point: PointLike) -> PointLike:
        """机器人坐标 -> 像素坐标；未启用时原样返回"""
        return self._forward_with(self._params, point)

    def inverse(self, point: PointLike) -> PointLike:
        """像素坐标 -> 机器人坐标；未启用时原样返回"""
        return self._inverse_with(self._params, point)

    def forward_many(self, points: Iterable[PointLike]) -> List[PointLike]:
        params = self._params
        return [self._forward_with(params, p) for p in points]

    def inverse_many(self, points: Iterable[PointLike]) -> List[PointLike]:
        params = self._params
        return [self._inverse_with(params, p) for p in points]

    def forward_pose(self, pose: RobotPose) -> RobotPose:
        """机器人位姿 -> 地图位姿（朝向加上旋转角）"""
        params = self._params
        if not params.enabled:
            return pose
        x, y = apply_similarity((pose.x, pose.y), params.translation, params.rotation, params.scale)
        return RobotPose(x, y, wrap_angle(pose.heading + params.rotation))

    def inverse_pose(self, pose: RobotPose) -> RobotPose:
        """地图位姿 -> 机器人位姿，用于下发目标点"""
        params = self._params
        if not params.enabled:
            return pose
        x, y = invert_similarity((pose.x, pose.y), params.translation, params.rotation, params.scale)
        return RobotPose(x, y, wrap_angle(pose.heading - params.rotation))

    # ------------------------------------------------------------------
    # 修改（加锁）
    # ------------------------------------------------------------------
    def add_calibration_point(
        self,
        point_id: str,
        description: str,
        web_coord: PointLike,
        robot_coord: PointLike,
    ) -> TransformParameters:
        """
        添加标定点（同ID覆盖），标定点达到 min_points 时重新拟合

        Raises:
            CalibrationError: ID为空或坐标不是有限数值
        """
        point = self._make_point(point_id, description, web_coord, robot_coord)
        with self._lock:
            self._points.pop(point.id, None)
            self._points[point.id] = point
            logger.info(
                f"[CoordinateTransform] 添加标定点: {point.id} ({description}), "
                f"web={point.web_coord}, robot={point.robot_coord}"
            )
            self._refit_locked()
            return self._params

    def load_points(self, points: Iterable[Tuple[str, str, PointLike, PointLike]]) -> TransformParameters:
        """批量添加标定点，只在最后拟合一次"""
        new_points = [self._make_point(*p) for p in points]
        with self._lock:
            for point in new_points:
                self._points.pop(point.id, None)
                self._points[point.id] = point
            logger.info(f"[CoordinateTransform] 批量加载标定点: {len(new_points)} 个")
            self._refit_locked()
            return self._params

    def remove_calibration_point(self, point_id: str) -> bool:
        """删除标定点；剩余不足 min_points 时禁用变换，否则重新拟合"""
        with self._lock:
            if self._points.pop(point_id, None) is None:
                logger.warning(f"[CoordinateTransform] 标定点不存在: {point_id}")
                return False
            logger.info(f"[CoordinateTransform] 删除标定点: {point_id}")
            self._refit_locked()
            return True

    def clear_calibration_points(self) -> None:
        with self._lock:
            self._points.clear()
            self._params = DISABLED_TRANSFORM
        logger.info("[CoordinateTransform] 已清除全部标定点")

    def set_enabled(self, enabled: bool) -> bool:
        """
        手动启用/禁用变换

        Returns:
            设置是否生效（标定点不足时无法启用）
        """
        with self._lock:
            if not enabled:
                self._params = replace(self._params, enabled=False)
                logger.info("[CoordinateTransform] 坐标变换已禁用")
                return True
            if len(self._points) < self.min_points_:
                logger.warning(
                    f"[CoordinateTransform] 标定点不足 {self.min_points_} 个（当前 {len(self._points)}），无法启用"
                )
                return False
            self._refit_locked()
            return self._params.enabled

    def _refit_locked(self) -> None:
        points = tuple(self._points.values())
        if len(points) < self.min_points_:
            if self._params.enabled:
                logger.warning(
                    f"[CoordinateTransform] 标定点少于 {self.min_points_} 个，坐标变换已禁用"
                )
            self._params = DISABLED_TRANSFORM
            return

        fitted = fit_similarity_transform(points)
        if fitted is None:
            logger.warning("[CoordinateTransform] 标定点退化（坐标重合），无法求解变换，已禁用")
            self._params = DISABLED_TRANSFORM
            return

        translation, rotation, scale, accuracy = fitted
        quality_warning = accuracy > self.accuracy_warning_px_
        self._params = TransformParameters(
            translation=translation,
            rotation=rotation,
            scale=scale,
            enabled=True,
            calibration_points=points,
            timestamp=datetime.now(),
            accuracy=accuracy,
            quality_warning=quality_warning,
        )

        logger.info(
            f"[CoordinateTransform] 变换参数计算完成: translation=({translation[0]:.3f}, {translation[1]:.3f}), "
            f"rotation={math.degrees(rotation):.2f}°, scale={scale:.4f}, accuracy={accuracy:.2f}px"
        )
        if quality_warning:
            logger.warning(
                f"[CoordinateTransform] 标定残差偏大: {accuracy:.2f}px > {self.accuracy_warning_px_}px，"
                f"请检查标定点"
            )

    # ------------------------------------------------------------------
    # 精度
    # ------------------------------------------------------------------
    def accuracy_report(self) -> AccuracyReport:
        """逐点残差；未启用或没有标定点时返回空报告"""
        params = self._params
        if not params.enabled or not params.calibration_points:
            return AccuracyReport()

        details: List[PointResidual] = []
        for p in params.calibration_points:
            actual = apply_similarity(p.robot_coord, params.translation, params.rotation, params.scale)
            error = math.hypot(actual[0] - p.web_coord[0], actual[1] - p.web_coord[1])
            details.append(PointResidual(p.id, p.description, p.web_coord, actual, error))

        errors = [d.error for d in details]
        return AccuracyReport(
            average_error=sum(errors) / len(errors),
            max_error=max(errors),
            details=details,
        )

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------
    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """保存标定点到 JSON 文件（变换参数加载时重新拟合，不落盘）"""
        target = self._resolve_storage(path)
        with self._lock:
            points = list(self._points.values())
            params = self._params

        data = {
            "calibration_points": [
                {
                    "id": p.id,
                    "description": p.description,
                    "web_coord": list(p.web_coord),
                    "robot_coord": list(p.robot_coord),
                    "timestamp": p.timestamp.isoformat(),
                }
                for p in points
            ],
            "transform": {
                "enabled": params.enabled,
                "translation": list(params.translation),
                "rotation": params.rotation,
                "scale": params.scale,
                "accuracy": params.accuracy,
            },
        }

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info(f"[CoordinateTransform] 标定点已保存: {target} ({len(points)} 个)")
        return target

    def load(self, path: Optional[Union[str, Path]] = None) -> bool:
        """
        从 JSON 文件加载标定点并重新拟合

        Returns:
            是否加载成功（文件不存在返回 False）

        Raises:
            CalibrationError: 文件内容格式错误
        """
        source = self._resolve_storage(path)
        if not source.exists():
            logger.warning(f"[CoordinateTransform] 标定文件不存在: {source}")
            return False

        try:
            with open(source, "r", encoding="utf-8") as f:
                data = json.load(f)
            raw_points = data["calibration_points"]
            points = [
                self._make_point(
                    p["id"], p.get("description", ""), p["web_coord"], p["robot_coord"],
                    timestamp=datetime.fromisoformat(p["timestamp"]) if p.get("timestamp") else None,
                )
                for p in raw_points
            ]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            error_msg = f"标定文件格式错误: {source}: {e}"
            logger.error(error_msg)
            raise CalibrationError(error_msg) from e

        with self._lock:
            self._points = {p.id: p for p in points}
            self._refit_locked()
        logger.info(f"[CoordinateTransform] 已加载标定点: {source} ({len(points)} 个)")
        return True

    def _resolve_storage(self, path: Optional[Union[str, Path]]) -> Path:
        if path is not None:
            return Path(path)
        if self.storage_path_ is None:
            raise ValueError("未配置标定文件路径")
        return self.storage_path_

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _make_point(
        point_id: str,
        description: str,
        web_coord: PointLike,
        robot_coord: PointLike,
        timestamp: Optional[datetime] = None,
    ) -> CalibrationPoint:
        if not point_id:
            raise CalibrationError("标定点ID不能为空")
        if not is_finite_point(web_coord) or not is_finite_point(robot_coord):
            raise CalibrationError(
                f"标定点坐标必须是有限数值: id={point_id}, web={web_coord}, robot={robot_coord}"
            )
        return CalibrationPoint(
            id=str(point_id),
            description=description or "",
            web_coord=(float(web_coord[0]), float(web_coord[1])),
            robot_coord=(float(robot_coord[0]), float(robot_coord[1])),
            timestamp=timestamp or datetime.now(),
        )

    @staticmethod
    def _forward_with(params: TransformParameters, point: PointLike) -> PointLike:
        if not params.enabled:
            return point
        x, y = apply_similarity((point[0], point[1]), params.translation, params.rotation, params.scale)
        return _like(point, x, y)

    @staticmethod
    def _inverse_with(params: TransformParameters, point: PointLike) -> PointLike:
        if not params.enabled:
            return point
        x, y = invert_similarity((point[0], point[1]), params.translation, params.rotation, params.scale)
        return _like(point, x, y)


def _like(point: PointLike, x: float, y: float) -> PointLike:
    """按输入类型返回：PathPoint 保留 id，其余返回 (x, y) 元组"""
    if isinstance(point, PathPoint):
        return PathPoint(x, y, point.id)
    return (x, y)
