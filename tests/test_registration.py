# -*- coding: utf-8 -*-
import cv2
import numpy as np
import pytest

from rig_panorama.config import StitchConfig
from rig_panorama.errors import RegistrationError
from rig_panorama.registration import (CameraRegistration, RegistrationState, is_orthonormal,
                                       median_focal, orthonormalize, refinement_mask, wave_correct)


def rotation(yaw, pitch=0.0, roll=0.0):
    R, _ = cv2.Rodrigues(np.array([pitch, yaw, roll], np.float64))
    return R.astype(np.float32)


def camera(focal):
    cam = cv2.detail.CameraParams()
    cam.focal = focal
    return cam


def test_refinement_mask_positions():
    np.testing.assert_array_equal(refinement_mask('xxxxx'), [[1, 1, 1], [0, 1, 1], [0, 0, 0]])
    np.testing.assert_array_equal(refinement_mask('x_x_x'), [[1, 0, 1], [0, 0, 1], [0, 0, 0]])
    assert not refinement_mask('_____').any()


def test_orthonormalize_repairs_drift():
    R = rotation(0.3, 0.1) + np.float32(1e-2)
    assert not is_orthonormal(R)
    fixed = orthonormalize(R)
    assert fixed.dtype == np.float32
    assert is_orthonormal(fixed)
    assert np.linalg.det(fixed) == pytest.approx(1.0, abs=1e-5)


def test_wave_correct_is_idempotent():
    rotations = [rotation(-0.4, 0.05, 0.03), rotation(0.4, 0.05, -0.02)]
    once = wave_correct(rotations)
    twice = wave_correct(once)
    for a, b in zip(once, twice):
        assert np.max(np.abs(a - b)) < 1e-4
    assert all(is_orthonormal(R) for R in once)


def test_wave_correct_leaves_input_untouched():
    rotations = [rotation(-0.4, 0.05), rotation(0.4, 0.05)]
    before = [R.copy() for R in rotations]
    wave_correct(rotations)
    for R, original in zip(rotations, before):
        np.testing.assert_array_equal(R, original)


def test_wave_correct_disabled_returns_copies():
    rotations = [rotation(-0.4, 0.05), rotation(0.4, 0.05)]
    result = wave_correct(rotations, 'no')
    for R, original in zip(result, rotations):
        np.testing.assert_array_equal(R, original)
        assert R is not original


def test_median_focal():
    assert median_focal([camera(400.0), camera(600.0)]) == pytest.approx(500.0)
    assert median_focal([camera(300.0), camera(900.0), camera(500.0)]) == pytest.approx(500.0)


def test_transitions_must_follow_order():
    registration = CameraRegistration([], [], StitchConfig())
    assert registration.state is RegistrationState.INITIAL
    with pytest.raises(RegistrationError):
        registration.adjust()
    with pytest.raises(RegistrationError):
        registration.wave_correct()
    assert registration.state is RegistrationState.INITIAL
