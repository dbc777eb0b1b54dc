# examples/align_batch_quickstart.py
from __future__ import annotations

import sys, pathlib, argparse, logging, uuid
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from falign.core.logging_config import setup_logging
from falign.core.config_io import load_yaml, merge_into_dataclass
from falign.core.registry import get_aligner, get_detector
from falign.vision.detectors.base import DetectorConfig
from falign.vision.pipelines.align_batch import run_align_batch


def resolve_path(p: str | None, fallback: pathlib.Path) -> pathlib.Path:
    if not p:
        return fallback
    pp = pathlib.Path(p)
    return (ROOT / p).resolve() if not pp.is_absolute() else pp.resolve()


def main() -> None:
    ap = argparse.ArgumentParser(description="Batch face alignment (YAML-driven)")
    ap.add_argument("--config", default=str(ROOT / "configs" / "align_batch.yaml"))
    args = ap.parse_args()

    setup_logging()
    log = logging.getLogger("falign.vision.pipelines.align_batch")
    run_id = str(uuid.uuid4())

    # ---- Load YAML ----
    cfg = load_yaml(args.config)
    det_cfg = merge_into_dataclass(DetectorConfig(), cfg.get("detector_config", {}))

    # ---- Resolve paths ----
    detect_model = resolve_path(cfg.get("detect_model"), ROOT / "models" / "haarcascade_frontalface_default.xml")
    align_model = resolve_path(cfg.get("align_model"), ROOT / "models" / "lbfmodel.yaml")
    image_list = resolve_path(cfg.get("image_list"), ROOT / "datasets" / "images" / "face" / "image_list.txt")
    output = resolve_path(cfg.get("output"), ROOT / ".falign" / "outputs" / "landmarks.txt")

    log.info("align_batch:config", extra={
        "run_id": run_id,
        "detector": cfg.get("detector", "haar"),
        "aligner": cfg.get("aligner", "lbf"),
        "detector_config": {
            "min_face_size": det_cfg.min_face_size,
            "score_thresh": det_cfg.score_thresh,
            "pyramid_scale_factor": det_cfg.pyramid_scale_factor,
            "window_step": list(det_cfg.window_step),
        },
    })

    # ---- Run ----
    detector = get_detector(str(cfg.get("detector", "haar")), str(detect_model), cfg=det_cfg)
    aligner = get_aligner(str(cfg.get("aligner", "lbf")), str(align_model))
    res = run_align_batch(
        detector=detector,
        aligner=aligner,
        image_list=str(image_list),
        output_path=str(output),
        visualize=bool(cfg.get("visualize", False)),
        progress_every=int(cfg.get("progress_every", 7)),
    )

    print("\n=== ALIGN BATCH SUMMARY ===")
    print(f"Lines consumed : {res.lines}")
    print(f"Records        : {res.written}")
    print(f"Unreadable     : {res.load_failures}")
    print(f"No face        : {res.no_face}")
    print(f"Output         : {res.output_path}")
    print(f"Run ID         : {run_id}")


if __name__ == "__main__":
    main()
