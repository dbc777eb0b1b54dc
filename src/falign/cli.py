from dotenv import load_dotenv
load_dotenv()

import logging
from typing import Optional

import typer

from falign.core.config_io import load_yaml, merge_into_dataclass
from falign.core.errors import ModelLoadError
from falign.core.logging_config import setup_logging
from falign.core.registry import available_aligners, available_detectors, get_aligner, get_detector
from falign.vision.detectors.base import DetectorConfig
from falign.vision.pipelines.align_batch import run_align_batch
from falign.vision.results import VIS_SUFFIX

log = logging.getLogger("falign.cli")

USAGE = "USAGE falign detect_model align_model image_list_fn out_list_fn [enable_visualization]"

app = typer.Typer(help="falign — batch face detection + five-point alignment", add_completion=False)


def build_detector_config(
    config: Optional[str] = None,
    min_face_size: Optional[int] = None,
    score_thresh: Optional[float] = None,
    scale_factor: Optional[float] = None,
    window_step: Optional[str] = None,
) -> DetectorConfig:
    """Defaults <- YAML file <- explicit CLI values. Built once, before the batch."""
    cfg = DetectorConfig()
    if config:
        cfg = merge_into_dataclass(cfg, load_yaml(config))
    overrides = {
        "min_face_size": min_face_size,
        "score_thresh": score_thresh,
        "pyramid_scale_factor": scale_factor,
        "window_step": [int(v) for v in window_step.split(",")] if window_step else None,
    }
    return merge_into_dataclass(cfg, {k: v for k, v in overrides.items() if v is not None})


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def align(
    ctx: typer.Context,
    detect_model: Optional[str] = typer.Argument(None, help="Detector model file"),
    align_model: Optional[str] = typer.Argument(None, help="Aligner model file"),
    image_list: Optional[str] = typer.Argument(None, help="Text file, one image path per line"),
    output: Optional[str] = typer.Argument(None, help="Result file"),
    enable_visualization: Optional[str] = typer.Argument(None, help="Any value: also write <image>.r.jpg"),
    detector: str = typer.Option("haar", help="haar | scrfd"),
    aligner: str = typer.Option("lbf", help="lbf | insightface"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML with detector settings"),
    min_face_size: Optional[int] = typer.Option(None, "--min-face-size"),
    score_thresh: Optional[float] = typer.Option(None, "--score-thresh"),
    scale_factor: Optional[float] = typer.Option(None, "--scale-factor", help="Pyramid shrink per level, e.g. 0.8"),
    window_step: Optional[str] = typer.Option(None, "--window-step", help="X,Y"),
    progress_every: int = typer.Option(7, "--progress-every"),
    vis_suffix: str = typer.Option(VIS_SUFFIX, "--vis-suffix"),
):
    # short invocations print usage and exit cleanly, without touching any file
    if None in (detect_model, align_model, image_list, output):
        typer.echo(USAGE)
        raise typer.Exit(code=0)

    setup_logging()
    # any fifth word turns it on, even one that looks like a flag; extras are ignored
    visualize = enable_visualization is not None or bool(ctx.args)

    try:
        det_cfg = build_detector_config(config, min_face_size, score_thresh, scale_factor, window_step)
        det = get_detector(detector, detect_model, cfg=det_cfg)
        aln = get_aligner(aligner, align_model)
    except (ModelLoadError, KeyError, ValueError, OSError) as e:
        log.error("align:startup_failed %s", e, extra={"detector": detector, "aligner": aligner,
                                                       "available_detectors": available_detectors(),
                                                       "available_aligners": available_aligners()})
        raise typer.Exit(code=1)

    try:
        summary = run_align_batch(
            detector=det,
            aligner=aln,
            image_list=image_list,
            output_path=output,
            visualize=visualize,
            progress_every=progress_every,
            vis_suffix=vis_suffix,
        )
    except OSError as e:
        log.error("align:io_failed %s", e)
        raise typer.Exit(code=1)

    typer.echo(f"EnD {summary.lines} lines, {summary.written} records -> {summary.output_path}")


if __name__ == "__main__":
    app()
