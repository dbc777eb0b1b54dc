# src/falign/core/utils.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import json, logging, time


# ───────────────────────────── Filesystem ─────────────────────────────

def ensure_folder(path: str | Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)

def ensure_parent_dir(path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


# ───────────────────────────── Progress Status ─────────────────────────────

@dataclass
class ProgressMeter:
    """
    Progress logging for the alignment batch.
    Prints a compact JSON payload in the message (easy to read/grep).
    `lines` counts input lines consumed, not images written.

    Example console line:
      align_batch:progress {"lines":14,"written":11,"skipped":3,"lines_per_s":5.12}
    """
    label: str                        # e.g. "align_batch:progress"
    logger: logging.Logger
    emit_every_n: int = 7
    emit_every_sec: Optional[float] = None

    # internal state
    lines: int = 0
    written: int = 0
    skipped: int = 0
    _t0: float = 0.0
    _last_emit: float = 0.0

    def __post_init__(self) -> None:
        self._t0 = time.time()
        self._last_emit = self._t0

    def step(self, written_inc: int = 0, skipped_inc: int = 0) -> None:
        """Count one consumed line and emit if thresholds are met."""
        self.lines += 1
        self.written += written_inc
        self.skipped += skipped_inc
        self._maybe_emit()

    def close(self) -> None:
        """Emit a final line."""
        self._emit()

    # --- internals ---
    def _maybe_emit(self) -> None:
        now = time.time()
        due_n = self.emit_every_n > 0 and self.lines % self.emit_every_n == 0
        due_t = self.emit_every_sec is not None and (now - self._last_emit) >= self.emit_every_sec
        if due_n or due_t:
            self._emit()
            self._last_emit = now

    def _emit(self) -> None:
        # progress output is cosmetic; a failing handler must not stop the batch
        try:
            elapsed = max(time.time() - self._t0, 1e-9)
            payload = {
                "lines": self.lines,
                "written": self.written,
                "skipped": self.skipped,
                "lines_per_s": round(self.lines / elapsed, 2),
            }
            self.logger.info("%s %s", self.label, json.dumps(payload, separators=(",", ":")))
        except Exception:
            self.logger.debug("%s emit failed", self.label, exc_info=True)


__all__ = ["ensure_folder", "ensure_parent_dir", "ProgressMeter"]
