from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Tuple

import cv2

from falign.core.errors import ModelLoadError
from falign.core.registry import register_detector
from falign.vision.detectors.base import DetectorConfig, FaceDetector, FaceRegion
from falign.vision.image import ImageBuffer
from falign.vision.services.face_service import ctx_id_for, load_insightface_model

@register_detector("scrfd")
class SCRFDDetector(FaceDetector):
    """
    InsightFace SCRFD ONNX detector. `score_thresh` is the SCRFD detection
    threshold (0..1); candidates come back in SCRFD's post-NMS score order.
    """

    def __init__(self, model_path: str, cfg: DetectorConfig = DetectorConfig(),
                 input_size: Tuple[int, int] = (640, 640), device: Optional[str] = None):
        self.model, self.device = load_insightface_model(model_path, device)
        if getattr(self.model, "taskname", None) != "detection":
            raise ModelLoadError(f"not a detection model: {model_path}", {"model_path": model_path})
        self.model.prepare(ctx_id_for(self.device), input_size=input_size, det_thresh=cfg.score_thresh)
        self.cfg = cfg
        self.model_path = str(model_path)

    def name(self) -> str:
        return f"SCRFD({Path(self.model_path).name},{self.device})"

    def detect(self, image: ImageBuffer) -> List[FaceRegion]:
        img = image.as_array()
        if image.channels == 1:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        bboxes, _kpss = self.model.detect(img, max_num=0)
        out: List[FaceRegion] = []
        for x1, y1, x2, y2, score in bboxes:
            w, h = int(round(x2 - x1)), int(round(y2 - y1))
            if min(w, h) < self.cfg.min_face_size:
                continue
            out.append(FaceRegion(int(round(x1)), int(round(y1)), w, h, float(score)))
        return out
