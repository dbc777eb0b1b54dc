"""Exceptions raised by the alignment pipeline."""
from __future__ import annotations

from typing import Any, Dict, Optional


class FalignError(Exception):
    """Base exception for falign."""

    def __init__(self, message: str, code: str = "INTERNAL_ERROR", context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context or {}


class ModelLoadError(FalignError):
    """A detector or aligner model could not be constructed. Fatal for the run."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, "MODEL_LOAD_ERROR", context)


class ImageLoadError(FalignError):
    """An input image is missing or cannot be decoded. The batch skips it."""

    def __init__(self, path: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"cannot load image: {path!r}", "IMAGE_LOAD_ERROR", {"path": path, **(context or {})})
        self.path = path


class AlignmentError(FalignError):
    """The aligner could not place landmarks for a detected face. The batch skips it."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ALIGNMENT_ERROR", context)
