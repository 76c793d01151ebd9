# -*- coding: utf-8 -*-
"""
Loading of the camera frames fed to calibration and compositing.

Frames arrive either as raw RGBA (4 bytes per pixel), raw planar I420
(width * height * 3 / 2 bytes) or as an encoded image file. All loaders
return a BGR uint8 image, optionally downscaled to the working frame size.
"""
import logging
import os

import cv2
import numpy as np

from .errors import InputError

logger = logging.getLogger(__name__)


def _read_raw(filename, framesize, label):
    if not os.path.isfile(filename):
        raise InputError(f"Failed to open image file {filename}")
    filesize = os.path.getsize(filename)
    if filesize != framesize:
        raise InputError(f"Failed to load {label} image {filename}, invalid file size "
                         f"({filesize} bytes, expected {framesize})")
    with open(filename, 'rb') as file:
        data = file.read()
    return np.frombuffer(data, dtype=np.uint8)


def _maybe_scale(img, filename, label, scaled_width, scaled_height):
    height, width = img.shape[:2]
    if 0 < scaled_width < width and 0 < scaled_height < height:
        logger.info("%s image %s is loaded with scaling ...", label, filename)
        return cv2.resize(img, (scaled_width, scaled_height))
    logger.info("%s image %s is loaded without scaling ...", label, filename)
    return img


def rgba_to_bgr(buffer, width, height):
    if not width or not height:
        raise InputError("Invalid RGBA frame dimension")
    rgba = np.asarray(buffer, dtype=np.uint8).reshape(height, width, 4)
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)


def i420_to_bgr(buffer, width, height):
    if not width or not height or width % 2 or height % 2:
        raise InputError("I420 frames need non-zero, even width and height")
    planes = np.asarray(buffer, dtype=np.uint8).reshape(height * 3 // 2, width)
    return cv2.cvtColor(planes, cv2.COLOR_YUV2BGR_I420)


def load_rgba_image(filename, width, height, scaled_width=0, scaled_height=0):
    data = _read_raw(filename, width * height * 4, 'RGBA')
    img = rgba_to_bgr(data, width, height)
    return _maybe_scale(img, filename, 'RGBA', scaled_width, scaled_height)


def load_i420_image(filename, width, height, scaled_width=0, scaled_height=0):
    if width % 2 or height % 2:
        raise InputError("I420 frames need even width and height")
    data = _read_raw(filename, width * height * 3 // 2, 'I420')
    img = i420_to_bgr(data, width, height)
    return _maybe_scale(img, filename, 'I420', scaled_width, scaled_height)


def load_encoded_image(filename, width, height, scaled_width=0, scaled_height=0):
    img = cv2.imread(filename, cv2.IMREAD_COLOR)
    if img is None:
        raise InputError(f"Failed to open image file {filename}")
    if img.shape[1] != width or img.shape[0] != height:
        raise InputError(f"Image {filename} is {img.shape[1]}x{img.shape[0]}, "
                         f"expected {width}x{height}")
    return _maybe_scale(img, filename, 'Encoded', scaled_width, scaled_height)


LOADERS = {
    'rgba': load_rgba_image,
    'i420': load_i420_image,
    'encoded': load_encoded_image,
}


def load_frame(filename, config):
    loader = LOADERS[config.pixel_format]
    return loader(filename, config.frame_width, config.frame_height,
                  config.scaled_width, config.scaled_height)


def load_frame_pair(filenames, config):
    ##########################################################
    #Read the left and right frames and make sure they agree #
    ##########################################################
    if len(filenames) != 2:
        raise InputError(f"Need exactly two images, got {len(filenames)}")
    images = [load_frame(filename, config) for filename in filenames]
    if images[0].shape != images[1].shape:
        raise InputError(f"Frames differ in size: {images[0].shape} vs {images[1].shape}")
    return images


def write_rgba_image(filename, img):
    """Write a BGR image as a raw RGBA frame, the layout load_rgba_image reads."""
    rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    with open(filename, 'wb') as file:
        file.write(np.ascontiguousarray(rgba).tobytes())
