# -*- coding: utf-8 -*-
"""
Crop rectangles inside the coverage mask of the panorama.

rect_within_mask finds the largest axis aligned rectangle that fits in the
mask with a greedy shrink: it starts from the extreme contour points and keeps
moving the side with the worst normalized deficit one contour point inward
until all four sides lie in the mask. It assumes a single connected mask
without holes, which is what two stitched views produce.

aspect_rect_within_mask grows a rectangle with a fixed aspect ratio out of the
center of that inscribed rectangle until it reaches the requested output size.
"""
from collections import namedtuple
import logging

import cv2
import numpy as np

from .errors import CropError

logger = logging.getLogger(__name__)


class CropRect(namedtuple('CropRect', ['x', 'y', 'width', 'height'])):
    __slots__ = ()

    def slices(self):
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)

    def crop(self, img):
        rows, cols = self.slices()
        return img[rows, cols]

    @property
    def aspect(self):
        return self.width / self.height

    def inside(self, width, height):
        return (self.x >= 0 and self.y >= 0 and self.width > 0 and self.height > 0 and
                self.x + self.width <= width and self.y + self.height <= height)


def _sorted_boundary(mask):
    ############################################################
    #Find the outer edge of the mask and sort its points along #
    #x and along y                                             #
    ############################################################
    mask = (np.asarray(mask) > 0).astype(np.uint8)
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    if len(contours) == 0:
        raise CropError("Coverage mask is empty")
    if len(contours) > 1:
        logger.warning("Coverage mask has %d separate regions, using the largest", len(contours))
    boundary = max(contours, key=cv2.contourArea).reshape(-1, 2)
    #Stable sorts keep equal coordinates in contour order
    sorted_x = boundary[np.argsort(boundary[:, 0], kind='stable')]
    sorted_y = boundary[np.argsort(boundary[:, 1], kind='stable')]
    return mask, sorted_x, sorted_y


def _count_column(mask, x, min_y, max_y):
    #Pixels of column x in the mask between min_y and max_y (exclusive)
    return int(np.count_nonzero(mask[min_y:max_y, x]))


def _count_row(mask, y, min_x, max_x):
    return int(np.count_nonzero(mask[y, min_x:max_x]))


def _inscribed_rect(mask, sorted_x, sorted_y):
    min_x_idx, max_x_idx = 0, len(sorted_x) - 1
    min_y_idx, max_y_idx = 0, len(sorted_y) - 1

    while min_x_idx < max_x_idx and min_y_idx < max_y_idx:
        x = int(sorted_x[min_x_idx][0])
        y = int(sorted_y[min_y_idx][1])
        x_max = int(sorted_x[max_x_idx][0])
        y_max = int(sorted_y[max_y_idx][1])
        width = x_max - x
        height = y_max - y
        if width <= 0 or height <= 0:
            break

        #For each side of the rectangle, count how many pixels are in the mask
        min_x_count = _count_column(mask, x, y, y_max)
        max_x_count = _count_column(mask, x_max, y, y_max)
        min_y_count = _count_row(mask, y, x, x_max)
        max_y_count = _count_row(mask, y_max, x, x_max)

        x_full = min_y_count == max_y_count == width
        y_full = min_x_count == max_x_count == height
        if x_full and y_full:
            return CropRect(x, y, width, height)

        #Deficits are normalized to the side length. Ties move the last of
        #left, right, top, bottom.
        deficits = [(height - min_x_count) / height,
                    (height - max_x_count) / height,
                    (width - min_y_count) / width,
                    (width - max_y_count) / width]
        worst = max(deficits)
        side = max(i for i, deficit in enumerate(deficits) if deficit == worst)
        if side == 0:
            min_x_idx += 1
        elif side == 1:
            max_x_idx -= 1
        elif side == 2:
            min_y_idx += 1
        else:
            max_y_idx -= 1

    raise CropError("No rectangle fits inside the coverage mask")


def rect_within_mask(mask):
    """Largest non-rotated rectangle fully inside the mask."""
    mask, sorted_x, sorted_y = _sorted_boundary(mask)
    rect = _inscribed_rect(mask, sorted_x, sorted_y)
    logger.info("Inscribed rectangle: %s", tuple(rect))
    return rect


def aspect_rect_within_mask(mask, out_ratio, max_width, max_height, step=9):
    ##########################################################################
    #Grow a rectangle of ratio out_ratio (width / height) from the center of #
    #the inscribed rectangle. Every step adds `step` rows above and below and#
    #the matching number of columns left and right. The rectangle has to    #
    #stay strictly inside the contour bounds and never exceed the cap.       #
    ##########################################################################
    mask, sorted_x, sorted_y = _sorted_boundary(mask)
    inscribed = _inscribed_rect(mask, sorted_x, sorted_y)
    center_x = inscribed.x + inscribed.width // 2
    center_y = inscribed.y + inscribed.height // 2
    min_x, max_x = int(sorted_x[0][0]), int(sorted_x[-1][0])
    min_y, max_y = int(sorted_y[0][1]), int(sorted_y[-1][1])

    def centered(half_width, half_height):
        return CropRect(center_x - half_width, center_y - half_height, 2 * half_width, 2 * half_height)

    def within_bounds(rect):
        return (rect.x > min_x and rect.x + rect.width < max_x and
                rect.y > min_y and rect.y + rect.height < max_y)

    out = CropRect(center_x, center_y, 0, 0)
    n = 0
    while True:
        n += 1
        half_height = n * step
        half_width = int(round(half_height * out_ratio))
        candidate = centered(half_width, half_height)
        if candidate.width > max_width or candidate.height > max_height:
            #Last step: snap to the cap itself when it still fits
            height = min(max_height, int(np.floor(max_width / out_ratio + 1e-6)))
            width = min(max_width, int(round(height * out_ratio)))
            snapped = CropRect(center_x - width // 2, center_y - height // 2, width, height)
            if within_bounds(snapped):
                out = snapped
            break
        if not within_bounds(candidate):
            break
        out = candidate

    if out.width < max_width and out.height < max_height:
        raise CropError(f"Panorama does not cover a {max_width}x{max_height} output, "
                        f"largest {out_ratio:.3f} crop is {out.width}x{out.height}")
    logger.info("Aspect rectangle: %s", tuple(out))
    return out

