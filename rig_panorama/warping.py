# -*- coding: utf-8 -*-
"""
Projection of both views onto the shared cylindrical surface.

Cameras are estimated at the feature (work) resolution. Warping at the seam or
compose resolution scales the intrinsics and the warper scale by
target_scale / work_scale so all three resolutions describe the same surface.
"""
from collections import namedtuple

import cv2
import numpy as np

from .registration import median_focal

WarpedSet = namedtuple('WarpedSet', ['images', 'masks', 'corners', 'sizes'])


def scaled_intrinsics(camera, aspect):
    K = camera.K().astype(np.float32)
    K[0, 0] *= aspect
    K[0, 2] *= aspect
    K[1, 1] *= aspect
    K[1, 2] *= aspect
    return K


def create_warper(cameras, aspect, warper_type='cylindrical'):
    #The focal length is a scale parameter, so it follows the resolution change
    return cv2.PyRotationWarper(warper_type, median_focal(cameras) * aspect)


def warp_image(warper, img, camera, aspect):
    K = scaled_intrinsics(camera, aspect)
    corner, warped = warper.warp(img, K, camera.R, cv2.INTER_LINEAR, cv2.BORDER_REFLECT)
    return warped, tuple(int(c) for c in corner)


def warp_mask(warper, size, camera, aspect):
    ###############################################################
    #Create a black and white mask of the warped image for seams, #
    #blending and cropping                                         #
    ###############################################################
    w, h = size
    mask = 255 * np.ones((h, w), np.uint8)
    K = scaled_intrinsics(camera, aspect)
    _, warped_mask = warper.warp(mask, K, camera.R, cv2.INTER_NEAREST, cv2.BORDER_CONSTANT)
    return warped_mask


def warp_rois(warper, sizes, cameras, aspect):
    ################################################################
    #Top left corners and sizes of the warped images in the shared #
    #output coordinates, without warping any pixels                #
    ################################################################
    corners = []
    warped_sizes = []
    for size, camera in zip(sizes, cameras):
        K = scaled_intrinsics(camera, aspect)
        roi = warper.warpRoi(tuple(int(s) for s in size), K, camera.R) #returns (top_leftx, top_lefty, sizex, sizey)
        corners.append((int(roi[0]), int(roi[1])))
        warped_sizes.append((int(roi[2]), int(roi[3])))
    return corners, warped_sizes


def warp_images(images, cameras, aspect, warper_type='cylindrical'):
    ####################################################################
    #Warp images, find the position of their top left corners         #
    #in the final global coordinates, and create masks for the images.#
    ####################################################################
    warper = create_warper(cameras, aspect, warper_type)
    warped_imgs = []
    warped_masks = []
    corners = []
    sizes = []
    for img, camera in zip(images, cameras):
        warped_img, corner = warp_image(warper, img, camera, aspect)
        warped_imgs.append(warped_img)
        warped_masks.append(warp_mask(warper, (img.shape[1], img.shape[0]), camera, aspect))
        corners.append(corner)
        sizes.append((warped_img.shape[1], warped_img.shape[0]))
    return WarpedSet(warped_imgs, warped_masks, corners, sizes)
