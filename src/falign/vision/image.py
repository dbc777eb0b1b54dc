from __future__ import annotations
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import cv2
import numpy as np

from falign.core.errors import ImageLoadError


@dataclass
class ImageBuffer:
    """
    Owned, tightly packed 8-bit pixel buffer.
    `data` is a flat row-major array of width * height * channels bytes.
    """
    data: np.ndarray
    width: int
    height: int
    channels: int = 1

    def __post_init__(self) -> None:
        if self.channels not in (1, 3):
            raise ValueError(f"unsupported channel count: {self.channels}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"empty image: {self.width}x{self.height}")
        if self.data.dtype != np.uint8 or self.data.ndim != 1 or not self.data.flags.c_contiguous:
            raise ValueError("data must be a flat contiguous uint8 array")
        expected = self.width * self.height * self.channels
        if self.data.size != expected:
            raise ValueError(f"buffer length {self.data.size} != {self.width}x{self.height}x{self.channels}")

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "ImageBuffer":
        """Copy an (h, w) or (h, w, c) array into a packed buffer, dropping any row stride."""
        if arr.ndim == 2:
            h, w = arr.shape
            c = 1
        elif arr.ndim == 3:
            h, w, c = arr.shape
        else:
            raise ValueError(f"expected a 2-D or 3-D array, got shape {arr.shape}")
        packed = np.array(arr, dtype=np.uint8, order="C", copy=True).reshape(-1)
        return cls(data=packed, width=int(w), height=int(h), channels=int(c))

    @property
    def released(self) -> bool:
        return self.data.size == 0

    def as_array(self) -> np.ndarray:
        """(h, w) view for grayscale, (h, w, c) for colour. Shares memory with `data`."""
        if self.released:
            raise ValueError("image buffer already released")
        if self.channels == 1:
            return self.data.reshape(self.height, self.width)
        return self.data.reshape(self.height, self.width, self.channels)

    def release(self) -> None:
        self.data = np.empty(0, dtype=np.uint8)


def _read_undecodable_name(path: str, flags: int):
    # names that aren't valid UTF-8 (kept as surrogates) can't go through cv2.imread
    try:
        with open(os.fsencode(path), "rb") as f:
            raw = np.frombuffer(f.read(), dtype=np.uint8)
    except (OSError, UnicodeError) as e:
        raise ImageLoadError(path, {"os_error": str(e)}) from e
    if raw.size == 0:
        return None
    try:
        return cv2.imdecode(raw, flags)
    except cv2.error as e:
        raise ImageLoadError(path, {"cv_error": str(e)}) from e


def _decode(path: str, flags: int) -> np.ndarray:
    if not path:
        raise ImageLoadError(path)
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        img = _read_undecodable_name(path, flags)
    else:
        try:
            img = cv2.imread(path, flags)
        except cv2.error as e:
            raise ImageLoadError(path, {"cv_error": str(e)}) from e
    if img is None or img.size == 0:
        raise ImageLoadError(path)
    return img


def load_grayscale(path: str) -> ImageBuffer:
    return ImageBuffer.from_array(_decode(path, cv2.IMREAD_GRAYSCALE))


def load_color(path: str) -> ImageBuffer:
    """BGR, channels=3."""
    return ImageBuffer.from_array(_decode(path, cv2.IMREAD_COLOR))


@contextmanager
def open_image(path: str, color: bool = False) -> Iterator[ImageBuffer]:
    """Load `path` and release the pixels when the block exits, however it exits."""
    img = load_color(path) if color else load_grayscale(path)
    try:
        yield img
    finally:
        img.release()


def save_image(path: str, arr: np.ndarray) -> bool:
    """cv2.imwrite, with a byte-path fallback for names that aren't valid UTF-8."""
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        ok, encoded = cv2.imencode(os.path.splitext(path)[1] or ".jpg", arr)
        if not ok:
            return False
        with open(os.fsencode(path), "wb") as f:
            f.write(encoded.tobytes())
        return True
    return bool(cv2.imwrite(path, arr))
