from __future__ import annotations
from dataclasses import dataclass
from typing import List, Protocol, Tuple

from falign.vision.image import ImageBuffer

@dataclass(frozen=True)
class FaceRegion:
    x: int              # top-left, image-relative
    y: int
    width: int
    height: int
    score: float = 0.0

@dataclass(frozen=True)
class DetectorConfig:
    """
    Engine settings fixed for the whole run. Backends read what they support;
    nothing here is re-validated by the pipeline.
    """
    min_face_size: int = 40
    score_thresh: float = 2.0
    pyramid_scale_factor: float = 0.8
    window_step: Tuple[int, int] = (4, 4)

    def __post_init__(self) -> None:
        # YAML gives lists
        object.__setattr__(self, "window_step", tuple(int(v) for v in self.window_step))

class FaceDetector(Protocol):
    """
    Returns candidate faces in the backend's own ranking; callers take
    element 0 as the best face and never re-sort.
    """
    def name(self) -> str: ...
    def detect(self, image: ImageBuffer) -> List[FaceRegion]: ...
