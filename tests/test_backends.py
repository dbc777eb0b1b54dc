from pathlib import Path

import cv2
import numpy as np
import pytest

from falign.core import registry
from falign.core.errors import ModelLoadError
from falign.vision.aligners.base import reduce_68_to_5, to_landmarks
from falign.vision.detectors.base import DetectorConfig
from falign.vision.detectors.haar import HaarDetector
from falign.vision.image import ImageBuffer


def _frontal_cascade() -> str:
    p = Path(cv2.data.haarcascades) / "haarcascade_frontalface_default.xml"
    if not p.exists():
        pytest.skip("OpenCV bundled cascades not installed")
    return str(p)


def test_builtin_backends_are_registered():
    assert {"haar", "scrfd"} <= set(registry.available_detectors())
    assert {"lbf", "insightface"} <= set(registry.available_aligners())


def test_haar_missing_model_raises(tmp_path):
    with pytest.raises(ModelLoadError):
        HaarDetector(str(tmp_path / "nope.xml"))


def test_haar_rejects_bad_pyramid_factor():
    with pytest.raises(ValueError):
        HaarDetector(_frontal_cascade(), DetectorConfig(pyramid_scale_factor=1.2))


def test_haar_blank_image_has_no_faces():
    det = registry.get_detector("haar", _frontal_cascade(), cfg=DetectorConfig())
    img = ImageBuffer.from_array(np.full((120, 160), 127, dtype=np.uint8))
    assert det.detect(img) == []
    assert det.name().startswith("Haar(")


def test_lbf_missing_model_raises(tmp_path):
    with pytest.raises(ModelLoadError):
        registry.get_aligner("lbf", str(tmp_path / "lbfmodel.yaml"))


def test_unknown_backend_lists_available():
    with pytest.raises(KeyError) as ei:
        registry.get_detector("nope", "x")
    assert "haar" in str(ei.value)


def test_reduce_68_to_5_layout():
    pts = np.zeros((68, 2))
    pts[36:42] = [[10, 20]] * 6
    pts[36] = [8, 20]
    pts[37] = [12, 20]
    pts[42:48] = [[50, 21]] * 6
    pts[30] = [30, 40]
    pts[48] = [15, 60]
    pts[54] = [45, 61]

    five = reduce_68_to_5(pts)

    np.testing.assert_allclose(five, [[10, 20], [50, 21], [30, 40], [15, 60], [45, 61]])


def test_reduce_68_to_5_accepts_batched_and_3d_points():
    pts = np.arange(68 * 3, dtype=np.float64).reshape(1, 68, 3)
    assert reduce_68_to_5(pts).shape == (5, 2)


def test_to_landmarks_requires_five_points():
    with pytest.raises(ValueError):
        to_landmarks([[0, 0]] * 4)
    lms = to_landmarks([[1, 2]] * 5)
    assert [(p.x, p.y) for p in lms] == [(1.0, 2.0)] * 5


# ---------------------------------------------------------------------------
# Adapter glue, with the engines replaced by stubs
# ---------------------------------------------------------------------------

def _points_68(offset=0.0):
    pts = np.zeros((68, 2))
    pts[36:42] = [10 + offset, 20]
    pts[42:48] = [50 + offset, 20]
    pts[30] = [30 + offset, 40]
    pts[48] = [15 + offset, 60]
    pts[54] = [45 + offset, 60]
    return pts


class _StubSCRFD:
    def __init__(self, bboxes):
        self.bboxes = np.asarray(bboxes, dtype=np.float32)
        self.images = []

    def detect(self, img, max_num=0):
        self.images.append(img)
        return self.bboxes, None


def test_scrfd_converts_boxes_and_filters_small_faces():
    from falign.vision.detectors.scrfd import SCRFDDetector

    det = SCRFDDetector.__new__(SCRFDDetector)
    det.cfg = DetectorConfig(min_face_size=40, score_thresh=0.5)
    det.model = _StubSCRFD([
        [10.4, 19.6, 110.6, 120.2, 0.9],   # 100x101 after rounding
        [0.0, 0.0, 30.0, 80.0, 0.8],       # 30 wide: below min_face_size
        [50.0, 60.0, 95.0, 110.0, 0.7],
    ])
    gray = ImageBuffer.from_array(np.zeros((200, 160), dtype=np.uint8))

    regions = det.detect(gray)

    assert [(r.x, r.y, r.width, r.height) for r in regions] == [(10, 20, 100, 101), (50, 60, 45, 50)]
    assert regions[0].score == pytest.approx(0.9)
    assert det.model.images[0].shape == (200, 160, 3)


class _StubLandmark68:
    def __init__(self):
        self.faces = []

    def get(self, img, face):
        self.faces.append((img.shape, face))
        return np.hstack([_points_68(), np.ones((68, 1))])


def test_insightface68_builds_face_from_region():
    from falign.vision.aligners.landmark68 import InsightFace68Aligner
    from falign.vision.detectors.base import FaceRegion

    aln = InsightFace68Aligner.__new__(InsightFace68Aligner)
    aln.model = _StubLandmark68()
    gray = ImageBuffer.from_array(np.zeros((120, 160), dtype=np.uint8))

    lms = aln.align(gray, FaceRegion(10, 20, 100, 90, 0.8))

    shape, face = aln.model.faces[0]
    assert shape == (120, 160, 3)
    np.testing.assert_allclose(face["bbox"], [10, 20, 110, 110])
    assert face["det_score"] == pytest.approx(0.8)
    assert [(p.x, p.y) for p in lms] == [(10, 20), (50, 20), (30, 40), (15, 60), (45, 60)]


class _StubFacemark:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = []

    def fit(self, image, faces):
        self.calls.append((image.shape, faces.copy()))
        if not self.ok:
            return False, []
        return True, [_points_68(offset=1.0).reshape(1, 68, 2)]


def _lbf_with(facemark):
    from falign.vision.aligners.lbf import LBFAligner

    aln = LBFAligner.__new__(LBFAligner)
    aln.facemark = facemark
    aln.model_path = "lbfmodel.yaml"
    return aln


def test_lbf_passes_xywh_box_and_reduces_points():
    from falign.vision.detectors.base import FaceRegion

    aln = _lbf_with(_StubFacemark())
    gray = ImageBuffer.from_array(np.zeros((120, 160), dtype=np.uint8))

    lms = aln.align(gray, FaceRegion(10, 20, 100, 90))

    shape, faces = aln.facemark.calls[0]
    assert shape == (120, 160)
    assert faces.dtype == np.int32
    np.testing.assert_array_equal(faces, [[10, 20, 100, 90]])
    assert [(p.x, p.y) for p in lms] == [(11, 20), (51, 20), (31, 40), (16, 60), (46, 60)]


def test_lbf_failed_fit_raises_alignment_error():
    from falign.core.errors import AlignmentError
    from falign.vision.detectors.base import FaceRegion

    aln = _lbf_with(_StubFacemark(ok=False))
    gray = ImageBuffer.from_array(np.zeros((120, 160), dtype=np.uint8))

    with pytest.raises(AlignmentError) as ei:
        aln.align(gray, FaceRegion(10, 20, 100, 90))
    assert ei.value.code == "ALIGNMENT_ERROR"
    assert ei.value.context["region"] == [10, 20, 100, 90]


def test_lbf_failed_fit_does_not_stop_batch(tmp_path, monkeypatch):
    from conftest import FakeDetector, SCENARIO_REGION, write_image
    from falign.vision.pipelines.align_batch import run_align_batch

    monkeypatch.chdir(tmp_path)
    write_image(tmp_path / "a.jpg", 200, 160)
    write_image(tmp_path / "b.jpg", 200, 160)
    (tmp_path / "list.txt").write_text("a.jpg\nb.jpg\n", encoding="utf-8")
    detector = FakeDetector({(200, 160): [SCENARIO_REGION]})

    summary = run_align_batch(detector, _lbf_with(_StubFacemark(ok=False)), "list.txt", "out.txt")

    assert summary.lines == 2
    assert summary.align_failures == 2
    assert (tmp_path / "out.txt").read_text() == ""
