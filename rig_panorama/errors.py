# -*- coding: utf-8 -*-
"""
Errors raised by the calibration and compositing pipelines.

Every error is fatal for the current invocation. They derive from ValueError
so callers that only catch ValueError, as the OpenCV pipeline helpers always
have, keep working.
"""


class StitchError(ValueError):
    """Base class for all panorama errors."""


class InputError(StitchError):
    """Missing or malformed input frame, or a frame of the wrong size."""


class MatchError(StitchError):
    """Too few confident correspondences between the two views."""


class RegistrationError(StitchError):
    """Camera estimation or bundle adjustment failed."""


class CropError(StitchError):
    """No rectangle of the requested aspect and size fits the panorama."""


class StitchingMapError(StitchError):
    """Stitching map file is unreadable, truncated or does not match the input."""


class ConfigError(StitchError):
    """Unreadable configuration file or an invalid configuration value."""
