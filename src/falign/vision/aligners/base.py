from __future__ import annotations
from dataclasses import dataclass
from typing import List, Protocol, Sequence

import numpy as np

from falign.vision.detectors.base import FaceRegion
from falign.vision.image import ImageBuffer

NUM_LANDMARKS = 5
LANDMARK_NAMES = ("left_eye", "right_eye", "nose_tip", "mouth_left", "mouth_right")

# iBUG 68-point indices
_LEFT_EYE_68 = slice(36, 42)
_RIGHT_EYE_68 = slice(42, 48)
_NOSE_TIP_68 = 30
_MOUTH_LEFT_68 = 48
_MOUTH_RIGHT_68 = 54

@dataclass(frozen=True)
class Landmark:
    x: float
    y: float

class LandmarkAligner(Protocol):
    """Maps one face region to exactly five points, in LANDMARK_NAMES order."""
    def name(self) -> str: ...
    def align(self, image: ImageBuffer, region: FaceRegion) -> List[Landmark]: ...

def to_landmarks(points: Sequence[Sequence[float]]) -> List[Landmark]:
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] != NUM_LANDMARKS or pts.shape[1] < 2:
        raise ValueError(f"expected {NUM_LANDMARKS} points, got array of shape {pts.shape}")
    return [Landmark(float(x), float(y)) for x, y in pts[:, :2]]

def reduce_68_to_5(points: np.ndarray) -> np.ndarray:
    """
    68-point iBUG layout -> (5, 2): eye centres (contour means), nose tip,
    left and right mouth corners.
    """
    p = np.asarray(points, dtype=np.float64)
    p = p.reshape(-1, p.shape[-1])[:, :2]
    if p.shape[0] != 68:
        raise ValueError(f"expected 68 points, got {p.shape[0]}")
    return np.stack([
        p[_LEFT_EYE_68].mean(axis=0),
        p[_RIGHT_EYE_68].mean(axis=0),
        p[_NOSE_TIP_68],
        p[_MOUTH_LEFT_68],
        p[_MOUTH_RIGHT_68],
    ])

def region_xyxy(region: FaceRegion) -> np.ndarray:
    return np.array([region.x, region.y, region.x + region.width, region.y + region.height], dtype=np.float32)
