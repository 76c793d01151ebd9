# -*- coding: utf-8 -*-
import pytest

from rig_panorama.errors import MatchError
from rig_panorama.features import find_features, match_features, pair_match


@pytest.fixture(scope='module')
def scene_features(scene, rig_config):
    return find_features(list(scene), rig_config)


def test_pairwise_matches_cover_every_pair(scene_features, rig_config):
    pairwise_matches = match_features(scene_features, rig_config)
    assert len(pairwise_matches) == 4
    match = pair_match(pairwise_matches, 2)
    assert (match.src_img_idx, match.dst_img_idx) == (0, 1)
    assert match.num_inliers >= 4
    assert match.confidence >= rig_config.conf_thresh


def test_pairs_above_duplicate_threshold_are_dropped(scene_features, rig_config):
    #A threshold below the real confidence makes the matcher treat the views as duplicates
    with pytest.raises(MatchError):
        match_features(scene_features, rig_config.override(max_match_confidence=0.5))
