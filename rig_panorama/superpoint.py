# -*- coding: utf-8 -*-
"""
SuperPoint keypoints packed into OpenCV feature objects.

Needs the optional torch / LightGlue stack:
    pip install rig_panorama[superpoint]
"""
import cv2
from lightglue import SuperPoint #git clone https://github.com/cvg/LightGlue.git && cd LightGlue
from lightglue.utils import rbd
import numpy as np
import torch
from torchvision import transforms


def resolve_device(device):
    return torch.device(device if torch.cuda.is_available() and device == "cuda" else "cpu")


def extract_features(img, config):
    ####################################
    #Use SuperPoint to extract features#
    ####################################
    device = resolve_device(config.device)
    extractor = SuperPoint(max_num_keypoints=config.max_keypoints).eval().to(device)
    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    image_tensor = transforms.ToTensor()(rgb).to(device).unsqueeze(0)
    with torch.no_grad():
        feats = rbd(extractor.extract(image_tensor))
    keypoints = feats['keypoints'].cpu().numpy()
    descriptors = feats['descriptors'].cpu().numpy()
    return keypoints, descriptors


def build_feature_object(img, keypoints, descriptors, img_idx):
    ################################################################
    #Convert the SuperPoint keypoints and descriptors into an OpenCV#
    #ImageFeatures object so the detail matcher can consume them    #
    ################################################################
    #The ORB pass only fills in the image size, keypoints and descriptors are replaced
    feat = cv2.detail.computeImageFeatures2(cv2.ORB.create(), img)
    feat.keypoints = tuple(cv2.KeyPoint(float(x), float(y), 1.0) for x, y in keypoints)
    feat.descriptors = cv2.UMat(np.asarray(descriptors, dtype=np.float32))
    feat.img_idx = img_idx
    return feat


def find_superpoint_features(images, config):
    features = []
    for idx, img in enumerate(images):
        keypoints, descriptors = extract_features(img, config)
        features.append(build_feature_object(img, keypoints, descriptors, idx))
    return features
