"""Build chains from YAML files that reference importable callables."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import yaml

from funchain.chain import Chain
from funchain.models.chain_spec import ChainSpec


def import_symbol(path: str) -> Any:
    """
    Resolves "package.module:attr" or "package.module:Class.attr" for a chain file.
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Chain entries must look like 'module:function', got {path!r}")
    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise ImportError(f"Cannot resolve {attr_path!r} in module {module_name!r}") from exc
    return obj


def import_callable(path: str) -> Any:
    obj = import_symbol(path)
    if not callable(obj):
        raise TypeError(f"{path!r} does not refer to a callable.")
    return obj


def load_chain_spec(path: Path) -> ChainSpec:
    if not path.exists():
        raise FileNotFoundError(path)
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Chain file {path} must contain a mapping.")
    return ChainSpec.model_validate(raw)


def build_chain(spec: ChainSpec) -> Chain:
    config = spec.config
    if config.name is None:
        config = config.model_copy(update={"name": spec.name})
    chain = Chain(config=config)
    chain.then(*[import_callable(p) for p in spec.steps])
    chain.defer(*[import_callable(p) for p in spec.cleanups])
    chain.before(*[import_callable(p) for p in spec.before_hooks])
    chain.after(*[import_callable(p) for p in spec.after_hooks])
    chain.on_error(*[import_callable(p) for p in spec.error_hooks])
    return chain


def load_chain(path: Path) -> Chain:
    return build_chain(load_chain_spec(path))
