"""Spotify podcast metadata scraper."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["Pipeline", "PipelineKind", "Settings", "get_settings"]

_EXPORTS = {
    "Pipeline": "podscout.pipeline",
    "PipelineKind": "podscout.pipeline",
    "Settings": "podscout.config",
    "get_settings": "podscout.config",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module 'podscout' has no attribute {name}")
