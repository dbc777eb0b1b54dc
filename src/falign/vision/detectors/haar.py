from __future__ import annotations
import logging
from pathlib import Path
from typing import List

import cv2
import numpy as np

from falign.core.errors import ModelLoadError
from falign.core.registry import register_detector
from falign.vision.detectors.base import DetectorConfig, FaceDetector, FaceRegion
from falign.vision.image import ImageBuffer

log = logging.getLogger("falign.vision.detectors.haar")

@register_detector("haar")
class HaarDetector(FaceDetector):
    """
    OpenCV cascade classifier over the grayscale buffer.

    Scores are the cascade's final-stage level weights; candidates below
    `score_thresh` are dropped and the rest are ranked by score, highest first.
    The pyramid shrink factor maps to OpenCV's grow factor (0.8 -> 1.25).
    """

    def __init__(self, model_path: str, cfg: DetectorConfig = DetectorConfig(), min_neighbors: int = 3):
        if not 0.0 < cfg.pyramid_scale_factor < 1.0:
            raise ValueError(f"pyramid_scale_factor must be in (0, 1), got {cfg.pyramid_scale_factor}")
        if not Path(model_path).is_file():
            raise ModelLoadError(f"detector model not found: {model_path}", {"model_path": model_path})
        self.cascade = cv2.CascadeClassifier(str(model_path))
        if self.cascade.empty():
            raise ModelLoadError(f"invalid cascade model: {model_path}", {"model_path": model_path})
        self.cfg = cfg
        self.model_path = str(model_path)
        self.min_neighbors = min_neighbors
        log.debug("haar:window_step ignored", extra={"window_step": list(cfg.window_step)})

    def name(self) -> str:
        return f"Haar({Path(self.model_path).name})"

    def detect(self, image: ImageBuffer) -> List[FaceRegion]:
        gray = image.as_array()
        if image.channels != 1:
            gray = cv2.cvtColor(gray, cv2.COLOR_BGR2GRAY)
        size = int(self.cfg.min_face_size)
        rects, _levels, weights = self.cascade.detectMultiScale3(
            gray,
            scaleFactor=1.0 / self.cfg.pyramid_scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=(size, size),
            outputRejectLevels=True,
        )
        if len(rects) == 0:
            return []
        scores = np.asarray(weights, dtype=np.float64).reshape(-1)
        out = [
            FaceRegion(int(x), int(y), int(w), int(h), float(s))
            for (x, y, w, h), s in zip(rects, scores)
            if s >= self.cfg.score_thresh
        ]
        out.sort(key=lambda r: r.score, reverse=True)
        return out
