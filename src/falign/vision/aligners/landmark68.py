from __future__ import annotations
from pathlib import Path
from typing import List, Optional

import cv2
from insightface.app.common import Face

from falign.core.errors import ModelLoadError
from falign.core.registry import register_aligner
from falign.vision.aligners.base import Landmark, LandmarkAligner, reduce_68_to_5, region_xyxy, to_landmarks
from falign.vision.detectors.base import FaceRegion
from falign.vision.image import ImageBuffer
from falign.vision.services.face_service import ctx_id_for, load_insightface_model

@register_aligner("insightface")
class InsightFace68Aligner(LandmarkAligner):
    """
    InsightFace 68-point landmark model (1k3d68.onnx) driven by the detected box.
    """

    def __init__(self, model_path: str, device: Optional[str] = None):
        self.model, self.device = load_insightface_model(model_path, device)
        if getattr(self.model, "taskname", None) != "landmark_3d_68":
            raise ModelLoadError(f"not a 68-point landmark model: {model_path}", {"model_path": model_path})
        self.model.prepare(ctx_id_for(self.device))
        self.model_path = str(model_path)

    def name(self) -> str:
        return f"InsightFace68({Path(self.model_path).name},{self.device})"

    def align(self, image: ImageBuffer, region: FaceRegion) -> List[Landmark]:
        img = image.as_array()
        if image.channels == 1:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        face = Face(bbox=region_xyxy(region), det_score=region.score)
        pred = self.model.get(img, face)
        return to_landmarks(reduce_68_to_5(pred))
