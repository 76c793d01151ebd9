# -*- coding: utf-8 -*-
"""
Seam estimation between the two warped views.

Seams are searched at the low seam resolution and then scaled up to the compose
resolution. The low resolution mask is dilated before resizing, otherwise the
resampling opens gaps along the seam.
"""
import logging

import cv2
import numpy as np

from .warping import warp_images

logger = logging.getLogger(__name__)

SEAM_FINDER_CHOICES = {
    'gc_color': lambda: cv2.detail_GraphCutSeamFinder("COST_COLOR"),
    'gc_colorgrad': lambda: cv2.detail_GraphCutSeamFinder("COST_COLOR_GRAD"),
    'dp_color': lambda: cv2.detail_DpSeamFinder("COLOR"),
    'dp_colorgrad': lambda: cv2.detail_DpSeamFinder("COLOR_GRAD"),
    'voronoi': lambda: cv2.detail.SeamFinder_createDefault(cv2.detail.SeamFinder_VORONOI_SEAM),
}


def _as_array(mask):
    return mask.get() if isinstance(mask, cv2.UMat) else np.asarray(mask)


def find_seams(warped, seam_finder='gc_color'):
    ############################################################
    #Split the overlap so every pixel is owned by one image   #
    ############################################################
    finder = SEAM_FINDER_CHOICES[seam_finder]()
    imgs = [img.astype(np.float32) for img in warped.images]
    masks = [mask.copy() for mask in warped.masks]
    seam_masks = finder.find(imgs, warped.corners, masks)
    return [_as_array(mask) for mask in seam_masks]


def find_seam_masks(seam_images, cameras, seam_work_aspect, config):
    ##################################################################
    #Warp the seam resolution images and find the seams between them #
    ##################################################################
    warped = warp_images(seam_images, cameras, seam_work_aspect, config.warper_type)
    seam_masks = find_seams(warped, config.seam_finder)
    logger.info("Seams found at %s", ", ".join(f"{w}x{h}" for w, h in warped.sizes))
    return seam_masks, warped.corners


def upscale_seam_mask(seam_mask, compose_mask):
    ###############################################################
    #Bring a low resolution seam mask to the compose resolution   #
    ###############################################################
    dilated_mask = cv2.dilate(seam_mask, None)
    resized_seam_mask = cv2.resize(dilated_mask, (compose_mask.shape[1], compose_mask.shape[0]),
                                   0, 0, cv2.INTER_LINEAR_EXACT)
    return cv2.bitwise_and(resized_seam_mask, compose_mask)
