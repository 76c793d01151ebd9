# -*- coding: utf-8 -*-
"""
Configuration for the two-camera stitcher.

The tunables travel through the pipeline as one StitchConfig value instead of
process-wide settings. A YAML file provides them, the command line can
override single entries.
"""
from dataclasses import dataclass, fields, replace
import logging
import math

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

PIXEL_FORMATS = ('rgba', 'i420', 'encoded')
FEATURE_DETECTORS = ('sift', 'orb', 'akaze', 'brisk', 'superpoint')
ADJUSTERS = ('reproj', 'ray')
WAVE_CORRECT_KINDS = ('horiz', 'vert', 'no')
WARPER_TYPES = ('cylindrical', 'spherical')
SEAM_FINDERS = ('gc_color', 'gc_colorgrad', 'dp_color', 'dp_colorgrad', 'voronoi')
BLENDERS = ('no', 'multiband')

#Entries that are megapixel budgets or confidences never go above 1.0
CLAMPED_KEYS = ('work_megapix', 'seam_megapix', 'compose_megapix', 'match_conf', 'conf_thresh')


@dataclass(frozen=True)
class StitchConfig:
    #Working resolution budgets in megapixels, a non-positive value keeps native resolution
    work_megapix: float = 0.6
    seam_megapix: float = 0.1
    compose_megapix: float = -1.0
    #Matcher ratio parameter and the pair/adjuster confidence threshold
    match_conf: float = 0.54
    conf_thresh: float = 0.7
    #Pairs scoring above this are treated as duplicate views by the matcher
    max_match_confidence: float = 3.0
    #Output crop, 3840x1080 is exactly 32:9
    target_aspect: float = 32.0 / 9.0
    target_width: int = 3840
    target_height: int = 1080
    crop_step: int = 9
    mapgen: bool = False
    feature_detector: str = 'sift'
    #Only used by the SuperPoint detector
    max_keypoints: int = 2048
    device: str = 'cpu'
    adjuster: str = 'reproj'
    refine_mask: str = 'xxxxx'
    wave_correct: str = 'horiz'
    warper_type: str = 'cylindrical'
    seam_finder: str = 'gc_color'
    blender: str = 'no'
    blend_strength: float = 5.0
    #Input frames
    pixel_format: str = 'rgba'
    frame_width: int = 2880
    frame_height: int = 1620
    scaled_width: int = 0
    scaled_height: int = 0

    def __post_init__(self):
        choices = {
            'pixel_format': PIXEL_FORMATS,
            'feature_detector': FEATURE_DETECTORS,
            'adjuster': ADJUSTERS,
            'wave_correct': WAVE_CORRECT_KINDS,
            'warper_type': WARPER_TYPES,
            'seam_finder': SEAM_FINDERS,
            'blender': BLENDERS,
        }
        for key, allowed in choices.items():
            if getattr(self, key) not in allowed:
                raise ConfigError(f"{key} must be one of {allowed}, got {getattr(self, key)!r}")
        if len(self.refine_mask) != 5 or set(self.refine_mask) - {'x', '_'}:
            raise ConfigError("refine_mask must be 5 characters of 'x' or '_'")
        if self.target_aspect <= 0:
            raise ConfigError("target_aspect must be positive")
        if self.target_width <= 0 or self.target_height <= 0:
            raise ConfigError("target_width and target_height must be positive")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ConfigError("frame_width and frame_height must be positive")
        if self.crop_step <= 0:
            raise ConfigError("crop_step must be positive")
        if not 0.0 < self.match_conf <= 1.0 or not 0.0 < self.conf_thresh <= 1.0:
            raise ConfigError("match_conf and conf_thresh must be in (0, 1]")
        if self.max_match_confidence <= 0:
            raise ConfigError("max_match_confidence must be positive")

    @classmethod
    def from_dict(cls, values):
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))
        kwargs = {k: v for k, v in values.items() if k in known}
        #YAML reads an unquoted `no` as False
        for key in ('wave_correct', 'blender'):
            if kwargs.get(key) is False:
                kwargs[key] = 'no'
        for key in CLAMPED_KEYS:
            if key in kwargs and kwargs[key] is not None:
                kwargs[key] = min(1.0, float(kwargs[key]))
        return cls(**kwargs)

    def override(self, **changes):
        """Return a copy with the non-None entries of changes applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        for key in CLAMPED_KEYS:
            if key in changes:
                changes[key] = min(1.0, float(changes[key]))
        return replace(self, **changes)


def megapix_scale(megapix, area):
    ###############################################################
    #Scale factor that brings an image of the given pixel area to #
    #roughly the megapixel budget, never upscaling                #
    ###############################################################
    if megapix is None or megapix <= 0:
        return 1.0
    return min(1.0, math.sqrt(megapix * 1e6 / area))


def load_config(config_path):
    #######################################
    #Load configuration from a YAML file  #
    #######################################
    try:
        with open(config_path, 'r') as file:
            values = yaml.safe_load(file) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Configuration file {config_path} is not valid YAML: {e}") from e
    if not isinstance(values, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")
    config = StitchConfig.from_dict(values)
    logger.info("Configuration loaded from %s", config_path)
    return config
