from __future__ import annotations
import time
from dataclasses import asdict, dataclass
from typing import Iterator, Optional

import logging
from falign.core.errors import AlignmentError, ImageLoadError
from falign.core.utils import ProgressMeter
from falign.vision.aligners.base import LandmarkAligner
from falign.vision.detectors.base import FaceDetector
from falign.vision.image import open_image
from falign.vision.results import VIS_SUFFIX, ResultRecord, ResultWriter, render_annotation

log = logging.getLogger("falign.vision.pipelines.align_batch")

@dataclass
class BatchSummary:
    output_path: str
    lines: int = 0             # input lines consumed
    written: int = 0
    load_failures: int = 0
    no_face: int = 0
    align_failures: int = 0
    vis_written: int = 0
    vis_failures: int = 0
    elapsed_seconds: float = 0.0

def iter_image_paths(fh) -> Iterator[str]:
    """
    One path per line. Blank lines inside the list are yielded (they fail to
    load like any bad path); blank lines at the end of the file are dropped.
    """
    pending = []
    for raw in fh:
        line = raw.rstrip("\r\n")
        if not line.strip():
            pending.append(line)
            continue
        yield from pending
        pending.clear()
        yield line

def process_image(path: str, detector: FaceDetector, aligner: LandmarkAligner) -> Optional[ResultRecord]:
    """
    Load -> detect -> align for one image. Raises ImageLoadError if the file
    can't be decoded, AlignmentError if the aligner gives up; returns None
    when no face is found.
    """
    with open_image(path) as img:
        faces = detector.detect(img)
        if not faces:
            return None
        # detector ranking is trusted as-is: first candidate wins
        face = faces[0]
        landmarks = aligner.align(img, face)
    return ResultRecord(source=path, region=face, landmarks=list(landmarks))

def run_align_batch(
    detector: FaceDetector,
    aligner: LandmarkAligner,
    image_list: str,
    output_path: str,
    visualize: bool = False,
    progress_every: int = 7,
    vis_suffix: str = VIS_SUFFIX,
) -> BatchSummary:
    ctx = {
        "detector": detector.name(),
        "aligner": aligner.name(),
        "image_list": str(image_list),
        "output_path": str(output_path),
        "visualize": visualize,
    }
    log.info("align_batch:start", extra=ctx)

    t0 = time.time()
    summary = BatchSummary(output_path=str(output_path))
    meter = ProgressMeter(label="align_batch:progress", logger=log, emit_every_n=progress_every)

    try:
        # list first: an unreadable list must not leave an empty output behind
        with open(image_list, "r", encoding="utf-8", errors="surrogateescape") as src, ResultWriter(output_path) as writer:
            for path in iter_image_paths(src):
                summary.lines += 1
                try:
                    record = process_image(path, detector, aligner)
                except ImageLoadError as e:
                    summary.load_failures += 1
                    log.warning("align_batch:image_error %s", path, extra={"path": path, "code": e.code})
                    meter.step(skipped_inc=1)
                    continue
                except AlignmentError as e:
                    summary.align_failures += 1
                    log.warning("align_batch:align_error %s", path, extra={"path": path, "code": e.code, **e.context})
                    meter.step(skipped_inc=1)
                    continue

                if record is None:
                    summary.no_face += 1
                    log.debug("align_batch:no_face %s", path, extra={"path": path})
                    meter.step(skipped_inc=1)
                    continue

                writer.write(record)
                summary.written += 1

                if visualize:
                    if render_annotation(record, suffix=vis_suffix):
                        summary.vis_written += 1
                    else:
                        summary.vis_failures += 1

                meter.step(written_inc=1)

        summary.elapsed_seconds = round(time.time() - t0, 3)
        meter.close()
        log.info("align_batch:done", extra={**ctx, **asdict(summary)})
        return summary

    except Exception:
        elapsed_ms = int((time.time() - t0) * 1000)
        # include partial progress so failures are diagnosable
        log.exception("align_batch:error", extra={**ctx, "lines": summary.lines,
                                                   "written": summary.written, "elapsed_ms": elapsed_ms})
        raise


__all__ = ["BatchSummary", "iter_image_paths", "process_image", "run_align_batch"]
