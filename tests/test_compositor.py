# -*- coding: utf-8 -*-
import cv2
import numpy as np
import pytest

from rig_panorama.compositor import Compositor, compose_frames
from rig_panorama.cropping import CropRect
from rig_panorama.errors import InputError, StitchingMapError
from rig_panorama.stitching_map import StitchingMap, write_stitching_map

WIDTH, HEIGHT = 32, 24


def frames():
    rng = np.random.default_rng(3)
    left = rng.integers(0, 256, (HEIGHT, WIDTH, 3), dtype=np.uint8)
    right = rng.integers(0, 256, (HEIGHT, WIDTH, 3), dtype=np.uint8)
    return left, right


def shifted_map(x0, width, height=HEIGHT):
    #Output pixel (x, y) reads canvas pixel (x0 + x, y)
    xs, ys = np.meshgrid(np.arange(width, dtype=np.float32) + x0, np.arange(height, dtype=np.float32))
    return StitchingMap(2 * WIDTH, HEIGHT, cv2.CV_32FC2, CropRect(0, 0, width, height),
                        np.dstack((xs, ys)))


def test_map_onto_left_frame():
    left, right = frames()
    out = compose_frames(shifted_map(0, WIDTH), left, right)
    np.testing.assert_array_equal(out, left)


def test_map_across_both_frames():
    left, right = frames()
    out = compose_frames(shifted_map(WIDTH // 2, WIDTH), left, right)
    np.testing.assert_array_equal(out[:, :WIDTH // 2], left[:, WIDTH // 2:])
    np.testing.assert_array_equal(out[:, WIDTH // 2:], right[:, :WIDTH // 2])


def test_half_pixel_is_interpolated():
    left = np.zeros((HEIGHT, WIDTH, 3), np.uint8)
    left[:, 1] = 200
    right = np.zeros_like(left)
    stitching_map = shifted_map(0.5, 1)
    out = compose_frames(stitching_map, left, right)
    assert np.all(np.abs(out.astype(int) - 100) <= 1)


def test_uncovered_pixels_are_black():
    left, right = frames()
    stitching_map = shifted_map(0, WIDTH)
    stitching_map.map_xy[:4] = -1
    out = compose_frames(stitching_map, left, right)
    assert not out[:4].any()
    np.testing.assert_array_equal(out[4:], left[4:])


def test_frames_of_other_size_are_refused():
    left, right = frames()
    compositor = Compositor(shifted_map(0, WIDTH))
    with pytest.raises(StitchingMapError):
        compositor.compose(left[:, :WIDTH // 2], right[:, :WIDTH // 2])


def test_frames_must_agree():
    left, right = frames()
    compositor = Compositor(shifted_map(0, WIDTH))
    with pytest.raises(InputError):
        compositor.compose(left, right[:-2])
    with pytest.raises(InputError):
        compositor.compose(left[..., 0], right[..., 0])


def test_coordinates_outside_canvas_are_refused():
    stitching_map = shifted_map(0, WIDTH)
    stitching_map.map_xy[0, 0] = (2 * WIDTH + 5, 0)
    with pytest.raises(StitchingMapError):
        Compositor(stitching_map)


def test_from_file(tmp_path):
    left, right = frames()
    path = tmp_path / 'result.map'
    write_stitching_map(path, shifted_map(WIDTH, WIDTH))
    out = Compositor.from_file(path).compose(left, right)
    np.testing.assert_array_equal(out, right)


def test_rounding_past_the_last_column_is_accepted():
    left, right = frames()
    stitching_map = shifted_map(WIDTH, WIDTH)
    stitching_map.map_xy[:, -1, 0] = 2 * WIDTH - 1 + 1e-4
    out = Compositor(stitching_map).compose(left, right)
    np.testing.assert_array_equal(out[:, :-1], right[:, :-1])
