#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
命令行入口
"""

import argparse
import sys

import pytest
import yaml
from loguru import logger

from shopnav.navigation_main import _parse_stop, build_parser, main

from conftest import CONFIG_PATH


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def cli_config(tmp_path):
    raw = yaml.safe_load(CONFIG_PATH.read_text(encoding="utf-8"))
    raw["log"]["log_dir"] = str(tmp_path / "logs")
    raw["calibration"]["storage_path"] = str(tmp_path / "calibration.json")
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw, allow_unicode=True), encoding="utf-8")
    return path


def test_parse_stop():
    item = _parse_stop("牛奶:210,200")
    assert item.name == "牛奶"
    assert item.coordinates.as_tuple() == (210.0, 200.0)


@pytest.mark.parametrize("text", ["牛奶", "牛奶:210", "牛奶:a,b"])
def test_parse_stop_rejects_bad_input(text):
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_stop(text)


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_plan(cli_config, tmp_path):
    code = main([
        "--config", str(cli_config), "plan",
        "--stop", "面包:210,200", "--stop", "饮料:215,300",
    ])
    assert code == 0
    assert list((tmp_path / "logs").glob("shopnav_*.log"))


def test_plan_without_optimization(cli_config):
    assert main(["--config", str(cli_config), "plan", "--stop", "面包:210,200", "--no-optimize"]) == 0


def test_calibrate_and_save(cli_config, tmp_path):
    assert main(["--config", str(cli_config), "calibrate", "--save"]) == 0
    assert (tmp_path / "calibration.json").exists()


def test_transform(cli_config):
    assert main(["--config", str(cli_config), "transform", "39.16", "-54.16"]) == 0
    assert main(["--config", str(cli_config), "transform", "218", "192", "--inverse"]) == 0
