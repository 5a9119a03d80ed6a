#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
异常定义

规划查询阶段不抛异常（返回失败结果 + 日志），只有构造阶段的非法输入会抛出。
"""


class ShopNavError(Exception):
    """shopnav 异常基类"""


class InvalidGeometryError(ShopNavError, ValueError):
    """非法几何输入：非有限坐标、非正的栅格尺寸、小于1的通行代价等"""


class CalibrationError(ShopNavError, ValueError):
    """非法标定点输入"""
