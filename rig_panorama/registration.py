# -*- coding: utf-8 -*-
"""
Camera registration for the two-camera rig.

The cameras move through a fixed sequence of states:

    INITIAL -> ESTIMATED -> ADJUSTED -> WAVE_CORRECTED

ESTIMATED comes from the homography based estimator, ADJUSTED from bundle
adjustment over the configured refinement mask and WAVE_CORRECTED removes
the horizon skew. WAVE_CORRECTED is terminal. The rotation matrices are
orthonormal after every transition.
"""
import enum
import logging

import cv2
import numpy as np

from .errors import RegistrationError

logger = logging.getLogger(__name__)

ADJUSTERS = {
    'reproj': cv2.detail_BundleAdjusterReproj,
    'ray': cv2.detail_BundleAdjusterRay,
}

WAVE_CORRECT_CHOICES = {
    'horiz': cv2.detail.WAVE_CORRECT_HORIZ,
    'vert': cv2.detail.WAVE_CORRECT_VERT,
    'no': None,
}


class RegistrationState(enum.Enum):
    INITIAL = 0
    ESTIMATED = 1
    ADJUSTED = 2
    WAVE_CORRECTED = 3


def refinement_mask(mask_string):
    ################################################################
    #The five characters enable fx, skew, ppx, aspect and ppy, in  #
    #that order. 'x' refines the parameter, '_' keeps it fixed.    #
    ################################################################
    refine_mask = np.zeros((3, 3), np.uint8)
    for flag, (row, col) in zip(mask_string, [(0, 0), (0, 1), (0, 2), (1, 1), (1, 2)]):
        if flag == 'x':
            refine_mask[row, col] = 1
    return refine_mask


def orthonormalize(R):
    """Closest rotation matrix to R in the Frobenius sense."""
    u, _, vt = np.linalg.svd(np.asarray(R, dtype=np.float64))
    rotation = u @ vt
    if np.linalg.det(rotation) < 0:
        u[:, -1] *= -1
        rotation = u @ vt
    return rotation.astype(np.float32)


def is_orthonormal(R, tol=1e-4):
    R = np.asarray(R, dtype=np.float64)
    return bool(np.allclose(R @ R.T, np.eye(3), atol=tol))


def wave_correct(rotations, kind='horiz'):
    ####################################################################
    #Rotate all cameras together so the horizon stays level. Returns  #
    #new matrices and leaves the input untouched.                      #
    ####################################################################
    wave_direction = WAVE_CORRECT_CHOICES[kind]
    rotation_matrices = [np.copy(np.asarray(R, dtype=np.float32)) for R in rotations]
    if wave_direction is None or len(rotation_matrices) < 2:
        return rotation_matrices
    return list(cv2.detail.waveCorrect(rotation_matrices, wave_direction))


def median_focal(cameras):
    focals = sorted(cam.focal for cam in cameras)
    middle = len(focals) // 2
    if len(focals) % 2 == 1:
        return float(focals[middle])
    return float(focals[middle - 1] + focals[middle]) * 0.5


def describe_camera(idx, camera):
    logger.info("Camera #%d: focal=%.2f aspect=%.4f ppx=%.2f ppy=%.2f",
                idx + 1, camera.focal, camera.aspect, camera.ppx, camera.ppy)


class CameraRegistration:
    """Camera parameters for both views together with their registration state."""

    def __init__(self, features, pairwise_matches, config):
        self.features = features
        self.pairwise_matches = pairwise_matches
        self.config = config
        self.cameras = None
        self.state = RegistrationState.INITIAL

    def _require(self, state):
        if self.state is not state:
            raise RegistrationError(f"Cameras are {self.state.name}, expected {state.name}")

    def estimate(self):
        self._require(RegistrationState.INITIAL)
        estimator = cv2.detail_HomographyBasedEstimator()
        success, cameras = estimator.apply(self.features, self.pairwise_matches, None)
        if not success:
            raise RegistrationError("Homography based camera estimation failed")
        #Change types to match what the bundle adjuster wants
        for cam in cameras:
            cam.R = orthonormalize(cam.R)
        for idx, cam in enumerate(cameras):
            describe_camera(idx, cam)
        self.cameras = cameras
        self.state = RegistrationState.ESTIMATED
        return cameras

    def adjust(self):
        self._require(RegistrationState.ESTIMATED)
        adjuster = ADJUSTERS[self.config.adjuster]()
        adjuster.setConfThresh(self.config.conf_thresh)
        adjuster.setRefinementMask(refinement_mask(self.config.refine_mask))
        success, cameras = adjuster.apply(self.features, self.pairwise_matches, self.cameras)
        if not success:
            raise RegistrationError("Camera parameters adjusting failed")
        for cam in cameras:
            values = [cam.focal, cam.aspect, cam.ppx, cam.ppy]
            if not np.all(np.isfinite(values)) or not np.all(np.isfinite(cam.R)) or cam.focal <= 0:
                raise RegistrationError("Bundle adjustment produced invalid camera parameters")
            cam.R = np.asarray(cam.R, dtype=np.float32)
        self.cameras = cameras
        self.state = RegistrationState.ADJUSTED
        return cameras

    def wave_correct(self):
        self._require(RegistrationState.ADJUSTED)
        rotation_matrices = wave_correct([cam.R for cam in self.cameras], self.config.wave_correct)
        for cam, R in zip(self.cameras, rotation_matrices):
            cam.R = R
        self.state = RegistrationState.WAVE_CORRECTED
        return self.cameras

    def run(self):
        self.estimate()
        self.adjust()
        self.wave_correct()
        for idx, cam in enumerate(self.cameras):
            describe_camera(idx, cam)
        return self.cameras


def register_images(features, pairwise_matches, config):
    return CameraRegistration(features, pairwise_matches, config).run()
