# -*- coding: utf-8 -*-
"""
Calibration pipeline for the two-camera rig.

Features -> matches -> camera registration -> seams -> composition -> crop,
and in map generation mode the same composition over coordinate maps, which is
saved as the stitching map for runtime compositing.
"""
from dataclasses import dataclass, field
import logging
import os
import time

import cv2

from .blending import compose_coordinate_map, compose_panorama
from .config import megapix_scale
from .cropping import aspect_rect_within_mask, rect_within_mask
from .errors import InputError, StitchError
from .features import draw_matches, find_features, match_features, pair_match
from .image_io import load_frame_pair
from .registration import register_images
from .seams import find_seam_masks
from .stitching_map import from_panorama_map, write_stitching_map

logger = logging.getLogger(__name__)


@dataclass
class Timing:
    find_features: float = 0.0
    registration: float = 0.0
    find_seams: float = 0.0
    composing: float = 0.0
    generate_map: float = 0.0
    total: float = 0.0

    def report(self):
        logger.info("Finding features time:          %.3f sec", self.find_features)
        logger.info("Images registration time:       %.3f sec", self.registration)
        logger.info("Finding seams and warping time: %.3f sec", self.find_seams)
        logger.info("Composing time:                 %.3f sec", self.composing)
        logger.info("Map generation:                 %.3f sec", self.generate_map)
        logger.info("Calibration total time:         %.3f sec", self.total)


@dataclass
class CalibrationResult:
    panorama: object
    mask: object
    inscribed: object
    crop: object
    cropped: object
    cameras: list
    stitching_map: object = None
    timing: Timing = field(default_factory=Timing)
    #Kept for debug output only
    work_images: list = field(default_factory=list, repr=False)
    features: list = field(default_factory=list, repr=False)
    pair_match: object = field(default=None, repr=False)


def resize_all(images, scale):
    return [cv2.resize(img, dsize=None, fx=scale, fy=scale) for img in images]


def calibrate(source_images, config):
    ###########################################################################
    #Register the two views, compose the panorama and select the output crop.#
    #In map generation mode also build the stitching map.                     #
    ###########################################################################
    if len(source_images) != 2:
        raise InputError(f"Need exactly two images, got {len(source_images)}")
    if source_images[0].shape != source_images[1].shape:
        raise InputError("Both frames must have the same size")
    timing = Timing()
    app_start_time = time.perf_counter()
    frame_height, frame_width = source_images[0].shape[:2]
    area = frame_width * frame_height

    logger.info("Finding features ...")
    t = time.perf_counter()
    work_scale = megapix_scale(config.work_megapix, area)
    work_images = resize_all(source_images, work_scale)
    features = find_features(work_images, config)
    timing.find_features = time.perf_counter() - t

    logger.info("Registering images ...")
    t = time.perf_counter()
    pairwise_matches = match_features(features, config)
    cameras = register_images(features, pairwise_matches, config)
    timing.registration = time.perf_counter() - t

    logger.info("Finding seam and warping images ...")
    t = time.perf_counter()
    seam_scale = megapix_scale(config.seam_megapix, area)
    seam_images = resize_all(source_images, seam_scale)
    seam_masks, _ = find_seam_masks(seam_images, cameras, seam_scale / work_scale, config)
    del seam_images
    timing.find_seams = time.perf_counter() - t

    logger.info("Composing full view image ...")
    t = time.perf_counter()
    compose_scale = megapix_scale(config.compose_megapix, area)
    panorama, mask = compose_panorama(source_images, cameras, seam_masks, compose_scale, work_scale, config)
    timing.composing = time.perf_counter() - t

    logger.info("Cropping ...")
    inscribed = rect_within_mask(mask)
    logger.info("Cropping with aspect ratio ...")
    crop = aspect_rect_within_mask(mask, config.target_aspect, config.target_width,
                                   config.target_height, config.crop_step)
    cropped = crop.crop(panorama).copy()

    stitching_map = None
    if config.mapgen:
        logger.info("Generate stitching map ...")
        t = time.perf_counter()
        source_sizes = [(img.shape[1], img.shape[0]) for img in source_images]
        result_map, _ = compose_coordinate_map(source_sizes, cameras, seam_masks,
                                               compose_scale, work_scale, config)
        stitching_map = from_panorama_map(result_map, crop, (frame_width, frame_height))
        del result_map
        timing.generate_map = time.perf_counter() - t

    timing.total = time.perf_counter() - app_start_time
    logger.info("Result: %dx%d, images: %dx%d, cropped: %dx%d", panorama.shape[1], panorama.shape[0],
                frame_width, frame_height, cropped.shape[1], cropped.shape[0])
    return CalibrationResult(panorama, mask, inscribed, crop, cropped, cameras, stitching_map, timing,
                             work_images, features, pair_match(pairwise_matches, len(features)))


def write_debug_images(result, debug_dir):
    ####################################################################
    #Raw panorama with the inscribed (red) and aspect (green) crops,   #
    #coverage mask, working inputs and the inlier matches              #
    ####################################################################
    os.makedirs(debug_dir, exist_ok=True)
    raw = result.panorama.copy()
    x, y, w, h = result.inscribed
    cv2.rectangle(raw, (x, y), (x + w, y + h), (0, 0, 255), 2)
    x, y, w, h = result.crop
    cv2.rectangle(raw, (x, y), (x + w, y + h), (0, 255, 0), 2)
    cv2.imwrite(os.path.join(debug_dir, 'result_raw.jpg'), raw)
    cv2.imwrite(os.path.join(debug_dir, 'result_mask.jpg'), result.mask)
    for name, img in zip(('left.jpg', 'right.jpg'), result.work_images):
        cv2.imwrite(os.path.join(debug_dir, name), img)
    if result.pair_match is not None and result.features:
        matches = draw_matches(result.work_images, result.features, result.pair_match)
        cv2.imwrite(os.path.join(debug_dir, 'matches.jpg'), matches)


def run_calibration(image_paths, config, output_path='result.jpg', map_path='result.map', debug_dir=None):
    ###################
    #Run full pipeline#
    ###################
    logger.info("Reading source images ...")
    source_images = load_frame_pair(image_paths, config)
    result = calibrate(source_images, config)
    if output_path:
        if not cv2.imwrite(str(output_path), result.cropped):
            raise StitchError(f"Could not write {output_path}")
        logger.info("Cropped panorama written to %s", output_path)
    if result.stitching_map is not None and map_path:
        write_stitching_map(map_path, result.stitching_map)
    if debug_dir:
        write_debug_images(result, debug_dir)

    logger.info("work_megapix:    %s", config.work_megapix)
    logger.info("seam_megapix:    %s", config.seam_megapix)
    logger.info("compose_megapix: %s", config.compose_megapix)
    logger.info("conf_thresh:     %s", config.conf_thresh)
    logger.info("match_conf:      %s", config.match_conf)
    result.timing.report()
    return result
