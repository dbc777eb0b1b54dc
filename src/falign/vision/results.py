from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

import cv2

from falign.core.errors import ImageLoadError
from falign.core.utils import ensure_parent_dir
from falign.vision.aligners.base import NUM_LANDMARKS, Landmark
from falign.vision.detectors.base import FaceRegion
from falign.vision.image import open_image, save_image

log = logging.getLogger("falign.vision.results")

VIS_SUFFIX = ".r.jpg"
BOX_COLOR = (0, 0, 255)       # BGR red
POINT_COLOR = (0, 255, 0)     # BGR green
POINT_RADIUS = 2

@dataclass(frozen=True)
class ResultRecord:
    source: str
    region: FaceRegion
    landmarks: List[Landmark]

def _num(v: float) -> str:
    # %g: integral values print without a decimal point
    return f"{v:g}"

def format_record(record: ResultRecord) -> str:
    """`<path> x y w h x0 y0 ... x4 y4`, no trailing newline."""
    if len(record.landmarks) != NUM_LANDMARKS:
        raise ValueError(f"expected {NUM_LANDMARKS} landmarks, got {len(record.landmarks)}")
    r = record.region
    fields = [record.source, str(int(r.x)), str(int(r.y)), str(int(r.width)), str(int(r.height))]
    for p in record.landmarks:
        fields += [_num(p.x), _num(p.y)]
    return " ".join(fields)


class ResultWriter:
    """Line-oriented result file. Use as a context manager so it is always closed."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh: Optional[TextIO] = None
        self.count = 0

    def open(self) -> "ResultWriter":
        ensure_parent_dir(self.path)
        # surrogateescape writes undecodable list entries back byte-for-byte
        self._fh = self.path.open("w", encoding="utf-8", errors="surrogateescape", newline="\n")
        return self

    def write(self, record: ResultRecord) -> None:
        if self._fh is None:
            raise ValueError("ResultWriter is not open")
        self._fh.write(format_record(record) + "\n")
        self.count += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "ResultWriter":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


def vis_path_for(source: str, suffix: str = VIS_SUFFIX) -> str:
    return source + suffix

def render_annotation(record: ResultRecord, suffix: str = VIS_SUFFIX) -> Optional[str]:
    """
    Draw box + landmarks on a colour decode of the source and save it next to it.
    Best-effort: returns the written path, or None (with a warning) on failure.
    """
    out_path = vis_path_for(record.source, suffix)
    r = record.region
    try:
        with open_image(record.source, color=True) as img:
            canvas = img.as_array()
            cv2.rectangle(canvas, (r.x, r.y), (r.x + r.width - 1, r.y + r.height - 1), BOX_COLOR)
            for p in record.landmarks:
                cv2.circle(canvas, (int(p.x), int(p.y)), POINT_RADIUS, POINT_COLOR, cv2.FILLED)
            ok = save_image(out_path, canvas)
    except (ImageLoadError, cv2.error, OSError) as e:
        log.warning("visualize:failed %s", out_path, extra={"source": record.source, "out_path": out_path, "error": str(e)})
        return None
    if not ok:
        log.warning("visualize:failed %s", out_path, extra={"source": record.source, "out_path": out_path, "error": "imwrite returned False"})
        return None
    return out_path
