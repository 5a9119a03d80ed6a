#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
shopnav 主包

卖场购物机器人的导航规划核心：通行栅格、A* 路径规划、TSP 访问顺序优化、
以及机器人坐标系与地图像素坐标系之间的标定变换。
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
