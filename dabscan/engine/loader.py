"""Resolve a decoding engine factory from a CLI spec."""

from __future__ import annotations

import importlib
from typing import Dict

from dabscan.engine.base import EngineFactory


class EngineLoadError(RuntimeError):
    pass


ALIASES: Dict[str, str] = {
    "simulated": "dabscan.engine.simulated:SimulatedEngine",
}


def load_engine_factory(spec: str) -> EngineFactory:
    """Return the callable named by ``spec`` ('package.module:attr' or an alias)."""
    text = (spec or "").strip()
    if not text:
        raise EngineLoadError("No decoding engine configured (use --engine module:factory or --engine simulated)")
    text = ALIASES.get(text, text)
    module_name, sep, attr_path = text.partition(":")
    if not sep or not module_name or not attr_path:
        raise EngineLoadError(f"Engine spec '{spec}' must look like 'package.module:factory'")
    try:
        target = importlib.import_module(module_name)
    except ImportError as exc:
        raise EngineLoadError(f"Cannot import engine module '{module_name}': {exc}") from exc
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise EngineLoadError(f"Engine module '{module_name}' has no attribute '{attr_path}'") from None
    if not callable(target):
        raise EngineLoadError(f"Engine factory '{text}' is not callable")
    return target
