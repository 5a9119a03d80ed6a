#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
导航主程序

命令行入口：
- plan: 规划购物路线并输出访问顺序、总距离和降级段
- calibrate: 加载标定点并输出变换参数和精度
- transform: 单点坐标转换
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from shopnav.config.loader import load_config
from shopnav.config.models import NavigationConfig
from shopnav.path_planner.map_model import PathPoint, RouteItem
from shopnav.path_planner.route_planning_service import RoutePlanningService
from shopnav.transform.coordinate_transform import CoordinateTransformManager
from shopnav.utils.global_path import GetConfigPath
from shopnav.utils.logger import SetupLogger


def _parse_stop(text: str) -> RouteItem:
    """解析 NAME:X,Y 形式的停靠点"""
    try:
        name, coords = text.rsplit(":", 1)
        x_str, y_str = coords.split(",")
        return RouteItem(name=name, coordinates=PathPoint(float(x_str), float(y_str)))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"停靠点格式应为 NAME:X,Y，实际为: {text}") from e


def _cmd_plan(cfg: NavigationConfig, args: argparse.Namespace) -> int:
    service = RoutePlanningService(cfg)
    route = service.plan_route(args.stop, optimize=False if args.no_optimize else None)

    for rp in route.route:
        flag = " (直连)" if rp.degraded else ""
        logger.info(
            f"{rp.order}. {rp.item} @ ({rp.coordinates.x:.0f}, {rp.coordinates.y:.0f}), "
            f"路径点数={len(rp.path_points)}{flag}"
        )
    logger.info(f"总距离: {route.total_distance:.1f}px, 路径点数: {len(route.path)}")
    for seg in route.degraded_segments:
        logger.warning(
            f"降级段 #{seg.index}: ({seg.from_point.x:.0f}, {seg.from_point.y:.0f}) -> "
            f"({seg.to_point.x:.0f}, {seg.to_point.y:.0f}), 原因={seg.reason}"
        )
    for item in route.unreachable_items:
        logger.warning(f"不可达: {item.name}")
    return 0


def _cmd_calibrate(cfg: NavigationConfig, args: argparse.Namespace) -> int:
    manager = CoordinateTransformManager.from_config(cfg.calibration)
    params = manager.parameters
    if not params.enabled:
        logger.warning(f"坐标变换未启用（标定点 {len(manager.calibration_points)} 个）")
        return 1

    report = manager.accuracy_report()
    logger.info(
        f"translation={params.translation}, rotation={params.rotation:.4f}rad, "
        f"scale={params.scale:.4f}, accuracy={params.accuracy:.2f}px"
    )
    for d in report.details:
        logger.info(f"  {d.id} ({d.description}): error={d.error:.2f}px")
    logger.info(f"平均误差={report.average_error:.2f}px, 最大误差={report.max_error:.2f}px")

    if args.save:
        if cfg.calibration.storage_path is None:
            logger.error("未配置 calibration.storage_path，无法保存标定点")
            return 1
        manager.save()
    return 0


def _cmd_transform(cfg: NavigationConfig, args: argparse.Namespace) -> int:
    manager = CoordinateTransformManager.from_config(cfg.calibration)
    if not manager.enabled:
        logger.warning("坐标变换未启用，按原样输出")
    point = (args.x, args.y)
    out = manager.inverse(point) if args.inverse else manager.forward(point)
    direction = "web -> robot" if args.inverse else "robot -> web"
    logger.info(f"{direction}: ({args.x}, {args.y}) -> ({out[0]:.3f}, {out[1]:.3f})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shopnav", description="卖场导航规划")
    parser.add_argument("--config", type=Path, default=None, help="配置文件路径")
    sub = parser.add_subparsers(dest="command", required=True)

    p_plan = sub.add_parser("plan", help="规划购物路线")
    p_plan.add_argument("--stop", type=_parse_stop, action="append", default=[], help="停靠点 NAME:X,Y，可重复")
    p_plan.add_argument("--no-optimize", action="store_true", help="按输入顺序访问")
    p_plan.set_defaults(func=_cmd_plan)

    p_calib = sub.add_parser("calibrate", help="输出标定结果")
    p_calib.add_argument("--save", action="store_true", help="保存标定点到配置的文件")
    p_calib.set_defaults(func=_cmd_calibrate)

    p_tf = sub.add_parser("transform", help="单点坐标转换")
    p_tf.add_argument("x", type=float)
    p_tf.add_argument("y", type=float)
    p_tf.add_argument("--inverse", action="store_true", help="像素坐标 -> 机器人坐标")
    p_tf.set_defaults(func=_cmd_transform)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config or GetConfigPath())
    SetupLogger(cfg.log)
    return args.func(cfg, args)


if __name__ == "__main__":
    sys.exit(main())
