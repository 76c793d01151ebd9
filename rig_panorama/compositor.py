# -*- coding: utf-8 -*-
"""
Runtime compositing from a stitching map.

No features, matching or geometry are computed here. The two frames are put
side by side and every output pixel is resampled from the coordinate stored in
the map. A map that does not fit the frames is refused instead of producing a
garbled panorama.
"""
import logging

import cv2
import numpy as np

from .errors import InputError, StitchError, StitchingMapError
from .image_io import load_frame_pair
from .stitching_map import read_stitching_map

logger = logging.getLogger(__name__)

#Slack for float32 rounding of coordinates on the last row or column
COORD_EPSILON = 1e-3


def validate_map(stitching_map):
    ##################################################################
    #Every stored coordinate must fall in the source canvas or be the#
    #(-1, -1) marker for pixels without data                         #
    ##################################################################
    map_xy = stitching_map.map_xy
    if not np.all(np.isfinite(map_xy)):
        raise StitchingMapError("Stitching map contains non-finite coordinates")
    covered = (map_xy[..., 0] >= 0) | (map_xy[..., 1] >= 0)
    xs = map_xy[..., 0][covered]
    ys = map_xy[..., 1][covered]
    if xs.size and (xs.min() < -COORD_EPSILON or ys.min() < -COORD_EPSILON or
                    xs.max() > stitching_map.source_width - 1 + COORD_EPSILON or
                    ys.max() > stitching_map.source_height - 1 + COORD_EPSILON):
        raise StitchingMapError("Stitching map points outside the "
                                f"{stitching_map.source_width}x{stitching_map.source_height} source canvas")


class Compositor:
    """Replays one stitching map on any number of frame pairs."""

    def __init__(self, stitching_map):
        validate_map(stitching_map)
        self.stitching_map = stitching_map
        #cv2.remap wants contiguous single channel maps
        self.map_x = np.ascontiguousarray(stitching_map.map_xy[..., 0])
        self.map_y = np.ascontiguousarray(stitching_map.map_xy[..., 1])

    @classmethod
    def from_file(cls, path):
        return cls(read_stitching_map(path))

    def check_frames(self, left, right):
        if left.shape != right.shape:
            raise InputError(f"Frames differ in size: {left.shape} vs {right.shape}")
        if left.ndim != 3 or left.shape[2] != 3:
            raise InputError(f"Frames must be 3 channel images, got shape {left.shape}")
        frame_width, frame_height = self.stitching_map.frame_size
        if left.shape[1] != frame_width or left.shape[0] != frame_height:
            raise StitchingMapError(f"Stitching map was made for {frame_width}x{frame_height} frames, "
                                    f"got {left.shape[1]}x{left.shape[0]}")

    def compose(self, left, right):
        self.check_frames(left, right)
        canvas = cv2.hconcat([left, right])
        return cv2.remap(canvas, self.map_x, self.map_y, cv2.INTER_LINEAR,
                         borderMode=cv2.BORDER_CONSTANT, borderValue=0)


def compose_frames(stitching_map, left, right):
    return Compositor(stitching_map).compose(left, right)


def compose_files(map_path, image_paths, config, output_path=None):
    ##############################################################
    #Load the map and the frames, remap, optionally save result  #
    ##############################################################
    compositor = Compositor.from_file(map_path)
    left, right = load_frame_pair(image_paths, config)
    panorama = compositor.compose(left, right)
    if output_path is not None:
        if not cv2.imwrite(str(output_path), panorama):
            raise StitchError(f"Could not write {output_path}")
        logger.info("Panorama written to %s", output_path)
    return panorama
