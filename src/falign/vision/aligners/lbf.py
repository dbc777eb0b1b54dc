from __future__ import annotations
from pathlib import Path
from typing import List

import cv2
import numpy as np

from falign.core.errors import AlignmentError, ModelLoadError
from falign.core.registry import register_aligner
from falign.vision.aligners.base import Landmark, LandmarkAligner, reduce_68_to_5, to_landmarks
from falign.vision.detectors.base import FaceRegion
from falign.vision.image import ImageBuffer

@register_aligner("lbf")
class LBFAligner(LandmarkAligner):
    """
    OpenCV FacemarkLBF (opencv-contrib `cv2.face`), e.g. lbfmodel.yaml.
    """

    def __init__(self, model_path: str):
        if not Path(model_path).is_file():
            raise ModelLoadError(f"aligner model not found: {model_path}", {"model_path": model_path})
        if not hasattr(cv2, "face"):
            raise ModelLoadError("cv2.face is unavailable; install opencv-contrib-python", {"model_path": model_path})
        self.facemark = cv2.face.createFacemarkLBF()
        try:
            self.facemark.loadModel(str(model_path))
        except cv2.error as e:
            raise ModelLoadError(f"invalid LBF model {model_path}: {e}", {"model_path": model_path}) from e
        self.model_path = str(model_path)

    def name(self) -> str:
        return f"LBF({Path(self.model_path).name})"

    def align(self, image: ImageBuffer, region: FaceRegion) -> List[Landmark]:
        faces = np.array([[region.x, region.y, region.width, region.height]], dtype=np.int32)
        ctx = {"region": [region.x, region.y, region.width, region.height]}
        try:
            ok, landmarks = self.facemark.fit(image.as_array(), faces)
        except cv2.error as e:
            raise AlignmentError(f"LBF fit failed for region {region}: {e}", ctx) from e
        if not ok or not len(landmarks):
            raise AlignmentError(f"LBF fit failed for region {region}", ctx)
        return to_landmarks(reduce_68_to_5(landmarks[0]))
