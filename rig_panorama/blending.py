# -*- coding: utf-8 -*-
"""
Compositing of the warped, seam masked views.

The same compose routine drives two blenders that share the
prepare / feed / blend protocol:

* PixelBlender accumulates color into the panorama,
* CoordinateBlender accumulates the source coordinate of every pixel,
  which becomes the stitching map replayed at runtime.

Because both go through identical corners, sizes and masks, the coordinate
map is pixel registered with the blended panorama.
"""
import logging

import cv2
import numpy as np

from .seams import upscale_seam_mask
from .warping import create_warper, warp_image, warp_mask, warp_rois

logger = logging.getLogger(__name__)

#Marks output pixels that no source image covers
UNCOVERED = -1.0


def _as_array(mat):
    return mat.get() if isinstance(mat, cv2.UMat) else np.asarray(mat)


class PixelBlender:

    def __init__(self, blender_type='no', blend_strength=5):
        self.blender_type = blender_type
        self.blend_strength = blend_strength
        self.blender = None

    def prepare(self, corners, sizes):
        dst_sz = cv2.detail.resultRoi(corners=corners, sizes=sizes)
        #Band number taken from open stitching
        blend_width = np.sqrt(dst_sz[2] * dst_sz[3]) * self.blend_strength / 100
        if self.blender_type == 'multiband' and blend_width >= 1:
            self.blender = cv2.detail_MultiBandBlender()
            self.blender.setNumBands(int((np.log(blend_width) / np.log(2.0) - 1.0)))
        else:
            self.blender = cv2.detail.Blender_createDefault(cv2.detail.Blender_NO)
        self.blender.prepare(dst_sz)

    def feed(self, img, mask, corner):
        self.blender.feed(cv2.UMat(img.astype(np.int16)), mask, corner)

    def blend(self):
        blended, mask = self.blender.blend(None, None)
        self.blender = None
        return cv2.convertScaleAbs(_as_array(blended)), _as_array(mask)


class CoordinateBlender:
    """Overwrite blending of two channel float32 coordinate maps."""

    def __init__(self):
        self.dst_roi = None
        self.canvas = None
        self.canvas_mask = None

    def prepare(self, corners, sizes):
        self.dst_roi = tuple(int(v) for v in cv2.detail.resultRoi(corners=corners, sizes=sizes))
        _, _, width, height = self.dst_roi
        self.canvas = np.zeros((height, width, 2), np.float32)
        self.canvas_mask = np.zeros((height, width), np.uint8)

    def feed(self, coords, mask, corner):
        dx = corner[0] - self.dst_roi[0]
        dy = corner[1] - self.dst_roi[1]
        h, w = coords.shape[:2]
        valid = mask > 0
        region = self.canvas[dy:dy + h, dx:dx + w]
        region[valid] = coords[valid]
        self.canvas_mask[dy:dy + h, dx:dx + w] |= mask

    def blend(self):
        canvas, canvas_mask = self.canvas, self.canvas_mask
        canvas[canvas_mask == 0] = UNCOVERED
        self.canvas = self.canvas_mask = None
        return canvas, canvas_mask


def make_coordinate_maps(sizes):
    ##################################################################
    #Identity maps holding each pixel's own coordinate. The x value  #
    #of image i is biased by i * width so both images index into the #
    #horizontally concatenated frame pair.                           #
    ##################################################################
    maps = []
    for idx, (w, h) in enumerate(sizes):
        xs, ys = np.meshgrid(np.arange(w, dtype=np.float32) + idx * w,
                             np.arange(h, dtype=np.float32))
        maps.append(np.dstack((xs, ys)))
    return maps


def compose(layers, cameras, seam_masks, compose_scale, work_scale, blender, warper_type='cylindrical'):
    ######################################################################
    #Warp every layer at the compose resolution, restrict it to its seam #
    #mask and feed it to the blender. Layers are images or coordinate    #
    #maps, the geometry is the same for both.                            #
    ######################################################################
    compose_work_aspect = compose_scale / work_scale
    warper = create_warper(cameras, compose_work_aspect, warper_type)
    rescale = abs(compose_scale - 1) > 1e-1
    sizes = []
    for layer in layers:
        h, w = layer.shape[:2]
        if rescale:
            w, h = int(round(w * compose_scale)), int(round(h * compose_scale))
        sizes.append((w, h))
    corners, warped_sizes = warp_rois(warper, sizes, cameras, compose_work_aspect)

    blender.prepare(corners, warped_sizes)
    for idx, (layer, camera, seam_mask, size) in enumerate(zip(layers, cameras, seam_masks, sizes)):
        logger.info("Compositing image #%d", idx + 1)
        img = cv2.resize(layer, size) if rescale else layer
        warped, _ = warp_image(warper, img, camera, compose_work_aspect)
        mask_warped = warp_mask(warper, size, camera, compose_work_aspect)
        mask_warped = upscale_seam_mask(seam_mask, mask_warped)
        blender.feed(warped, mask_warped, corners[idx])
        del warped, img
    return blender.blend()


def compose_panorama(images, cameras, seam_masks, compose_scale, work_scale, config):
    blender = PixelBlender(config.blender, config.blend_strength)
    return compose(images, cameras, seam_masks, compose_scale, work_scale, blender, config.warper_type)


def compose_coordinate_map(source_sizes, cameras, seam_masks, compose_scale, work_scale, config):
    maps = make_coordinate_maps(source_sizes)
    return compose(maps, cameras, seam_masks, compose_scale, work_scale, CoordinateBlender(),
                   config.warper_type)
