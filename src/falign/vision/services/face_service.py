from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

import torch

from falign.core.errors import ModelLoadError

log = logging.getLogger("falign.vision.services.face_service")

def select_device() -> str:
    return "cuda" if torch.cuda.is_available() else "cpu"

def onnx_providers(device: str) -> List[str]:
    return ["CUDAExecutionProvider", "CPUExecutionProvider"] if device == "cuda" else ["CPUExecutionProvider"]

def ctx_id_for(device: str) -> int:
    return 0 if device == "cuda" else -1

def load_insightface_model(model_path: str, device: Optional[str] = None):
    """
    Load a single InsightFace ONNX model (SCRFD, landmark, ...) from a file path.
    Returns the model with `.prepare()` not yet called, plus the device used.
    """
    from insightface.model_zoo import get_model

    if not Path(model_path).is_file():
        raise ModelLoadError(f"model not found: {model_path}", {"model_path": model_path})
    device = device or select_device()
    try:
        model = get_model(str(model_path), providers=onnx_providers(device))
    except Exception as e:
        raise ModelLoadError(f"cannot load model {model_path}: {e}", {"model_path": model_path}) from e
    if model is None:
        raise ModelLoadError(f"unrecognized model file: {model_path}", {"model_path": model_path})
    log.info("face_service:model_loaded", extra={"model_path": str(model_path), "device": device,
                                                  "taskname": getattr(model, "taskname", None)})
    return model, device
