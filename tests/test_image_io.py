# -*- coding: utf-8 -*-
import cv2
import numpy as np
import pytest

from rig_panorama.config import StitchConfig
from rig_panorama.errors import InputError
from rig_panorama.image_io import (load_encoded_image, load_frame_pair, load_i420_image,
                                   load_rgba_image, write_rgba_image)


def test_rgba_round_trip(tmp_path):
    img = np.random.default_rng(1).integers(0, 256, (12, 16, 3), dtype=np.uint8)
    path = str(tmp_path / 'frame.rgba')
    write_rgba_image(path, img)
    np.testing.assert_array_equal(load_rgba_image(path, 16, 12), img)


def test_rgba_channel_order(tmp_path):
    rgba = np.zeros((2, 2, 4), np.uint8)
    rgba[..., 0] = 255  #red
    rgba[..., 3] = 255
    path = tmp_path / 'red.rgba'
    path.write_bytes(rgba.tobytes())
    img = load_rgba_image(str(path), 2, 2)
    assert tuple(img[0, 0]) == (0, 0, 255)


def test_rgba_wrong_size(tmp_path):
    path = tmp_path / 'frame.rgba'
    path.write_bytes(b'\x00' * (16 * 12 * 4 - 1))
    with pytest.raises(InputError, match='invalid file size'):
        load_rgba_image(str(path), 16, 12)


def test_missing_file(tmp_path):
    with pytest.raises(InputError):
        load_rgba_image(str(tmp_path / 'missing.rgba'), 16, 12)


def test_i420_gray(tmp_path):
    width, height = 8, 6
    path = tmp_path / 'frame.yuv'
    path.write_bytes(bytes([128]) * (width * height * 3 // 2))
    img = load_i420_image(str(path), width, height)
    assert img.shape == (height, width, 3)
    assert np.all(np.abs(img.astype(int) - 128) <= 2)


def test_i420_wrong_size(tmp_path):
    path = tmp_path / 'frame.yuv'
    path.write_bytes(b'\x00' * (8 * 6 * 4))
    with pytest.raises(InputError):
        load_i420_image(str(path), 8, 6)


def test_i420_odd_dimensions(tmp_path):
    path = tmp_path / 'frame.yuv'
    path.write_bytes(b'\x00' * 100)
    with pytest.raises(InputError):
        load_i420_image(str(path), 7, 6)


def test_encoded_image(tmp_path):
    img = np.full((10, 20, 3), 77, np.uint8)
    path = str(tmp_path / 'frame.png')
    cv2.imwrite(path, img)
    np.testing.assert_array_equal(load_encoded_image(path, 20, 10), img)
    with pytest.raises(InputError):
        load_encoded_image(path, 10, 10)


def test_scaling_only_down(tmp_path):
    img = np.zeros((12, 16, 3), np.uint8)
    path = str(tmp_path / 'frame.rgba')
    write_rgba_image(path, img)
    assert load_rgba_image(path, 16, 12, 8, 6).shape == (6, 8, 3)
    assert load_rgba_image(path, 16, 12, 32, 24).shape == (12, 16, 3)


def test_frame_pair(tmp_path):
    img = np.zeros((12, 16, 3), np.uint8)
    paths = [str(tmp_path / 'left.rgba'), str(tmp_path / 'right.rgba')]
    for path in paths:
        write_rgba_image(path, img)
    config = StitchConfig(frame_width=16, frame_height=12)
    left, right = load_frame_pair(paths, config)
    assert left.shape == right.shape == (12, 16, 3)
    with pytest.raises(InputError):
        load_frame_pair(paths[:1], config)
