# -*- coding: utf-8 -*-
"""
Feature extraction and pairwise matching for the two camera views.

Features are computed on the working resolution images so matching cost does
not depend on the input resolution.
"""
import logging

import cv2
from stitching.feature_detector import FeatureDetector

from .errors import MatchError

logger = logging.getLogger(__name__)

#A homography needs four point pairs
MIN_INLIERS = 4


def find_features(images, config):
    #####################################################
    #Detect keypoints and descriptors for every image   #
    #####################################################
    if config.feature_detector == 'superpoint':
        from .superpoint import find_superpoint_features
        features = find_superpoint_features(images, config)
    else:
        detector = FeatureDetector(detector=config.feature_detector)
        features = detector.detect(images)
        for idx, feat in enumerate(features):
            feat.img_idx = idx
    for idx, feat in enumerate(features):
        logger.info("Features in image #%d: %d", idx + 1, len(feat.keypoints))
    return features


def match_features(features, config):
    ###################################################################
    #Match every pair of images. For two images this is a 2x2 list of #
    #MatchesInfo objects in row major order, self matches included.   #
    ###################################################################
    #match_conf is the Lowe ratio parameter, higher values keep fewer but better matches.
    #The last argument zeroes the confidence of pairs scoring above it. The arguments
    #are positional because the keyword name changed between OpenCV releases.
    matcher = cv2.detail_BestOf2NearestMatcher(False, config.match_conf, 6, 6,
                                               config.max_match_confidence)
    pairwise_matches = matcher.apply2(features)
    matcher.collectGarbage()
    check_pair(pairwise_matches, len(features), config)
    return pairwise_matches


def pair_match(pairwise_matches, num_images, src=0, dst=1):
    return pairwise_matches[src * num_images + dst]


def check_pair(pairwise_matches, num_images, config):
    ##################################################################
    #The views have to be connected with enough confidence before any#
    #geometry is estimated, there is no retry with other settings    #
    ##################################################################
    match = pair_match(pairwise_matches, num_images)
    logger.info("Pair confidence: %.3f with %d inliers out of %d matches",
                match.confidence, match.num_inliers, len(match.matches))
    if match.num_inliers < MIN_INLIERS or match.confidence < config.conf_thresh:
        raise MatchError(f"Could not connect the images: confidence {match.confidence:.3f} "
                         f"(threshold {config.conf_thresh}), {match.num_inliers} inliers")
    return match


def draw_matches(images, features, match):
    """Side by side view of the inlier correspondences for debugging."""
    keypoints = [feat.keypoints for feat in features]
    inliers = [m for m, inlier in zip(match.matches, match.inliers_mask) if inlier]
    return cv2.drawMatches(images[0], keypoints[0], images[1], keypoints[1], inliers, None,
                           flags=cv2.DrawMatchesFlags_NOT_DRAW_SINGLE_POINTS)
