# -*- coding: utf-8 -*-
"""
Shared fixtures: a synthetic two-camera rig.

A textured cylinder is seen by two pinhole cameras that only differ by a yaw
rotation, so the views are related by an exact rotation homography, like a
real rig with a common optical center.
"""
import logging

import cv2
import numpy as np
import pytest

from rig_panorama.config import StitchConfig
from rig_panorama.log_config import ROOT_LOGGER_NAME

FRAME_WIDTH = 640
FRAME_HEIGHT = 360
FOCAL = 512.0
#About 30% of each view overlaps the other one
YAW = np.deg2rad(22.5)

TEXTURE_WIDTH = 1100
TEXTURE_HEIGHT = 400


def make_texture(seed, width=TEXTURE_WIDTH, height=TEXTURE_HEIGHT):
    rng = np.random.default_rng(seed)
    texture = np.full((height, width, 3), 255, np.uint8)
    #Slow gradient so flat areas are not all identical
    texture[..., 0] = np.linspace(40, 220, width, dtype=np.float32).astype(np.uint8)[None, :]
    for _ in range(260):
        color = tuple(int(c) for c in rng.integers(0, 256, 3))
        x, y = int(rng.integers(0, width)), int(rng.integers(0, height))
        kind = rng.integers(0, 3)
        if kind == 0:
            cv2.circle(texture, (x, y), int(rng.integers(4, 25)), color, -1)
        elif kind == 1:
            w, h = int(rng.integers(6, 40)), int(rng.integers(6, 40))
            cv2.rectangle(texture, (x, y), (x + w, y + h), color, -1)
        else:
            x2, y2 = x + int(rng.integers(-60, 60)), y + int(rng.integers(-60, 60))
            cv2.line(texture, (x, y), (x2, y2), color, int(rng.integers(1, 4)))
    return cv2.GaussianBlur(texture, (3, 3), 0)


def render_view(texture, yaw, width=FRAME_WIDTH, height=FRAME_HEIGHT, focal=FOCAL):
    #Ray of every pixel, rotated about the vertical axis and intersected with the cylinder
    xs, ys = np.meshgrid(np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64))
    dx = (xs - (width - 1) / 2) / focal
    dy = (ys - (height - 1) / 2) / focal
    wx = np.cos(yaw) * dx + np.sin(yaw)
    wz = -np.sin(yaw) * dx + np.cos(yaw)
    theta = np.arctan2(wx, wz)
    h = dy / np.hypot(wx, wz)
    map_x = (focal * theta + texture.shape[1] / 2).astype(np.float32)
    map_y = (focal * h + texture.shape[0] / 2).astype(np.float32)
    return cv2.remap(texture, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REFLECT)


@pytest.fixture(scope='session')
def scene():
    texture = make_texture(7)
    return render_view(texture, -YAW), render_view(texture, YAW)


@pytest.fixture(scope='session')
def unrelated_scene():
    left = render_view(make_texture(11), -YAW)
    right = render_view(make_texture(12), YAW)
    return left, right


@pytest.fixture(scope='session')
def rig_config():
    return StitchConfig(
        frame_width=FRAME_WIDTH,
        frame_height=FRAME_HEIGHT,
        target_width=768,
        target_height=216,
        mapgen=True,
        #Synthetic views have almost no outliers, do not discard them as duplicates
        max_match_confidence=10.0,
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
