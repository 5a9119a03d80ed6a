#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
导航配置模块

提供类型安全的配置管理和验证。
"""

from .models import (
    NavigationConfig,
    PointConfig,
    AreaConfig,
    WalkableAreaConfig,
    StoreMapConfig,
    PathPlanningConfig,
    RouteConfig,
    CalibrationPointConfig,
    CalibrationConfig,
    LogConfig,
)
from .loader import load_config

__all__ = [
    'NavigationConfig',
    'PointConfig',
    'AreaConfig',
    'WalkableAreaConfig',
    'StoreMapConfig',
    'PathPlanningConfig',
    'RouteConfig',
    'CalibrationPointConfig',
    'CalibrationConfig',
    'LogConfig',
    'load_config',
]
