# -*- coding: utf-8 -*-
"""
Binary stitching map file.

Layout, little-endian:

    int32 width, int32 height      concatenated source canvas (both frames side by side)
    int32 pixel_type               OpenCV type of the stored map, always CV_32FC2
    int32 crop_x, crop_y, crop_width, crop_height
    crop_width * crop_height pairs of float32 (x, y), row-major

Every (x, y) is the position in the source canvas that feeds the output pixel,
or (-1, -1) where the panorama has no data.
"""
from dataclasses import dataclass
import logging
import struct

import cv2
import numpy as np

from .cropping import CropRect
from .errors import StitchingMapError

logger = logging.getLogger(__name__)

HEADER = struct.Struct('<7i')
MAP_DTYPE = np.dtype('<f4')
MAP_TYPE = cv2.CV_32FC2


@dataclass(frozen=True)
class StitchingMap:
    source_width: int
    source_height: int
    pixel_type: int
    crop: CropRect
    map_xy: np.ndarray

    def __post_init__(self):
        expected = (self.crop.height, self.crop.width, 2)
        if self.map_xy.shape != expected:
            raise StitchingMapError(f"Map has shape {self.map_xy.shape}, crop needs {expected}")

    @property
    def frame_size(self):
        """(width, height) of one input frame."""
        return self.source_width // 2, self.source_height


def from_panorama_map(result_map, crop, frame_size):
    ################################################################
    #Cut the crop out of the full coordinate map to build the      #
    #artifact that runtime compositing reads                        #
    ################################################################
    if not crop.inside(result_map.shape[1], result_map.shape[0]):
        raise StitchingMapError(f"Crop {tuple(crop)} lies outside the {result_map.shape[1]}x"
                                f"{result_map.shape[0]} coordinate map")
    frame_width, frame_height = frame_size
    map_xy = np.ascontiguousarray(crop.crop(result_map), dtype=np.float32)
    return StitchingMap(frame_width * 2, frame_height, MAP_TYPE, crop, map_xy)


def write_stitching_map(path, stitching_map):
    crop = stitching_map.crop
    with open(path, 'wb') as map_file:
        map_file.write(HEADER.pack(stitching_map.source_width, stitching_map.source_height,
                                   stitching_map.pixel_type, crop.x, crop.y, crop.width, crop.height))
        map_file.write(stitching_map.map_xy.astype(MAP_DTYPE).tobytes())
    logger.info("Stitching map written to %s (%dx%d crop)", path, crop.width, crop.height)


def read_stitching_map(path):
    try:
        with open(path, 'rb') as map_file:
            data = map_file.read()
    except OSError as e:
        raise StitchingMapError(f"Cannot read stitching map {path}: {e}") from e

    if len(data) < HEADER.size:
        raise StitchingMapError(f"Stitching map {path} is truncated, no complete header")
    width, height, pixel_type, x, y, crop_width, crop_height = HEADER.unpack_from(data)
    if pixel_type != MAP_TYPE:
        raise StitchingMapError(f"Unsupported map type {pixel_type} in {path}")
    if width <= 0 or height <= 0 or width % 2:
        raise StitchingMapError(f"Invalid source size {width}x{height} in {path}")
    if crop_width <= 0 or crop_height <= 0 or x < 0 or y < 0:
        raise StitchingMapError(f"Invalid crop {(x, y, crop_width, crop_height)} in {path}")

    expected = HEADER.size + crop_width * crop_height * 2 * MAP_DTYPE.itemsize
    if len(data) != expected:
        raise StitchingMapError(f"Stitching map {path} holds {len(data)} bytes, header "
                                f"declares {expected}")
    map_xy = np.frombuffer(data, dtype=MAP_DTYPE, offset=HEADER.size)
    map_xy = map_xy.reshape(crop_height, crop_width, 2).astype(np.float32)
    return StitchingMap(width, height, pixel_type, CropRect(x, y, crop_width, crop_height), map_xy)
