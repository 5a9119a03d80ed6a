#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
配置加载器

读取 config.yaml -> 解析相对路径 -> Pydantic 校验，得到 NavigationConfig。
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from shopnav.config.models import NavigationConfig

# 需要按程序目录解析的路径字段: (section, key)
_PATH_FIELDS = (
    ("calibration", "storage_path"),
    ("log", "log_dir"),
)


def load_config(config_path: Path, base_dir: Optional[Path] = None) -> NavigationConfig:
    """
    从YAML文件加载配置

    Args:
        config_path: 配置文件路径
        base_dir: 解析相对路径的程序目录；默认取配置文件所在目录，
            若该目录名为 config 则取其上一级

    Returns:
        验证后的NavigationConfig对象

    Raises:
        FileNotFoundError: 配置文件不存在
        yaml.YAMLError: YAML格式错误
        ValueError: 配置文件为空或顶层不是映射
        ValidationError: 配置验证失败
    """
    config_path = Path(config_path)
    base_dir = Path(base_dir).resolve() if base_dir is not None else _default_base_dir(config_path)

    raw_config = _read_yaml(config_path)
    _apply_relative_paths(raw_config, base_dir)

    try:
        config = NavigationConfig(**raw_config)
    except ValidationError as e:
        logger.error(f"[Config] 配置验证失败: {config_path}（{e.error_count()} 处错误）")
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error['loc'])
            logger.error(f"  {field_path}: {error['msg']}")
        raise

    logger.info(
        f"[Config] 配置加载成功: {config_path}, grid_size={config.store_map.grid_size}, "
        f"可通行区域={len(config.store_map.walkable_areas)}, 障碍区域={len(config.store_map.obstacle_areas)}"
    )
    return config


def _default_base_dir(config_path: Path) -> Path:
    parent = config_path.resolve().parent
    return parent.parent if parent.name.lower() == "config" else parent


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        error_msg = f"配置文件不存在: {config_path}"
        logger.error(f"[Config] {error_msg}")
        raise FileNotFoundError(error_msg)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"[Config] YAML格式错误: {config_path}: {e}")
        raise
    except OSError as e:
        error_msg = f"读取配置文件失败: {config_path}: {e}"
        logger.error(f"[Config] {error_msg}")
        raise IOError(error_msg) from e

    if raw_config is None:
        error_msg = f"配置文件为空: {config_path}"
        logger.error(f"[Config] {error_msg}")
        raise ValueError(error_msg)
    if not isinstance(raw_config, dict):
        error_msg = f"配置文件顶层必须是映射: {config_path}"
        logger.error(f"[Config] {error_msg}")
        raise ValueError(error_msg)
    return raw_config


def _resolve_path(value: str, base_dir: Path) -> str:
    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return str(path.resolve())


def _apply_relative_paths(raw_config: Dict[str, Any], base_dir: Path) -> None:
    """将配置中的相对路径字段转换为绝对路径（原地修改）"""
    for section, key in _PATH_FIELDS:
        section_cfg = raw_config.get(section)
        if isinstance(section_cfg, dict) and section_cfg.get(key):
            section_cfg[key] = _resolve_path(section_cfg[key], base_dir)
