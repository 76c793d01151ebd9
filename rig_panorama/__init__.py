from .calibration import CalibrationResult, calibrate, run_calibration
from .compositor import Compositor, compose_files, compose_frames
from .config import StitchConfig, load_config
from .cropping import CropRect, aspect_rect_within_mask, rect_within_mask
from .errors import (ConfigError, CropError, InputError, MatchError, RegistrationError, StitchError,
                     StitchingMapError)
from .stitching_map import StitchingMap, read_stitching_map, write_stitching_map

__version__ = '0.1.0'
