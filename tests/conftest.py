from __future__ import annotations
from pathlib import Path
from typing import Dict, List

import cv2
import numpy as np
import pytest

from falign.vision.aligners.base import Landmark
from falign.vision.detectors.base import FaceRegion
from falign.vision.image import ImageBuffer

SCENARIO_REGION = FaceRegion(10, 20, 100, 100, 0.99)
SCENARIO_POINTS = [(30, 50), (70, 50), (50, 70), (35, 90), (65, 90)]


class FakeDetector:
    """Returns canned regions keyed by image size (width, height)."""

    def __init__(self, faces: Dict[tuple, List[FaceRegion]] | None = None):
        self.faces = faces or {}
        self.seen: List[ImageBuffer] = []

    def name(self) -> str:
        return "FakeDetector"

    def detect(self, image: ImageBuffer) -> List[FaceRegion]:
        assert image.channels == 1
        self.seen.append(image)
        return list(self.faces.get((image.width, image.height), []))


class FakeAligner:
    def __init__(self, points=SCENARIO_POINTS):
        self.points = points
        self.calls: List[FaceRegion] = []

    def name(self) -> str:
        return "FakeAligner"

    def align(self, image: ImageBuffer, region: FaceRegion) -> List[Landmark]:
        self.calls.append(region)
        return [Landmark(float(x), float(y)) for x, y in self.points]


def write_image(path: Path, width: int, height: int, value: int = 128) -> Path:
    img = np.full((height, width, 3), value, dtype=np.uint8)
    assert cv2.imwrite(str(path), img)
    return path


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def scenario(workdir):
    """a.jpg (200x160) has one face, b.jpg is not an image."""
    write_image(workdir / "a.jpg", 200, 160)
    (workdir / "b.jpg").write_bytes(b"not an image")
    (workdir / "list.txt").write_text("a.jpg\nb.jpg\n", encoding="utf-8")
    detector = FakeDetector({(200, 160): [SCENARIO_REGION, FaceRegion(0, 0, 50, 50, 0.5)]})
    return workdir, detector, FakeAligner()
