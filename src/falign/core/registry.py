from __future__ import annotations
from typing import Callable, Dict

# Backend plugins, keyed by CLI name. Factories take (model_path, **kwargs).
_DETECTORS: Dict[str, Callable[..., object]] = {}
_ALIGNERS: Dict[str, Callable[..., object]] = {}

def register_detector(name: str):
    def deco(cls):
        _DETECTORS[name] = cls
        return cls
    return deco

def register_aligner(name: str):
    def deco(cls):
        _ALIGNERS[name] = cls
        return cls
    return deco

def get_detector(name: str, model_path: str, **kwargs):
    if name not in _DETECTORS:
        raise KeyError(f"Unknown detector '{name}'. Available: {list(_DETECTORS)}")
    return _DETECTORS[name](model_path, **kwargs)

def get_aligner(name: str, model_path: str, **kwargs):
    if name not in _ALIGNERS:
        raise KeyError(f"Unknown aligner '{name}'. Available: {list(_ALIGNERS)}")
    return _ALIGNERS[name](model_path, **kwargs)

def available_detectors() -> list[str]:
    return sorted(_DETECTORS)

def available_aligners() -> list[str]:
    return sorted(_ALIGNERS)
