#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
坐标变换模块

机器人坐标系与地图像素坐标系之间的标定与转换。
"""

from .coordinate_transform import (
    CalibrationPoint,
    TransformParameters,
    RobotPose,
    AccuracyReport,
    CoordinateTransformManager,
    fit_similarity_transform,
)

__all__ = [
    'CalibrationPoint',
    'TransformParameters',
    'RobotPose',
    'AccuracyReport',
    'CoordinateTransformManager',
    'fit_similarity_transform',
]
