"""Annotation helpers: zero values, error slots and value checks."""

from __future__ import annotations

import collections.abc
import inspect
import numbers
import types
from functools import lru_cache
from typing import Annotated, Any, Literal, Never, NoReturn, TypeVar, Union, get_args, get_origin, is_typeddict

from pydantic import ConfigDict, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

EMPTY = inspect.Parameter.empty

# Builtins whose no-argument constructor is their zero value.
_ZERO_CONSTRUCTIBLE: frozenset[type] = frozenset(
    {bool, int, float, complex, str, bytes, bytearray, list, dict, set, frozenset, tuple}
)

_ABSTRACT_CONTAINERS: dict[Any, type] = {
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}

_ADAPTER_CONFIG = ConfigDict(arbitrary_types_allowed=True)


def is_union(annotation: Any) -> bool:
    return get_origin(annotation) in (Union, types.UnionType)


def is_unconstrained(annotation: Any) -> bool:
    return annotation is EMPTY or annotation is Any or isinstance(annotation, (TypeVar, str))


def is_error_annotation(annotation: Any) -> bool:
    """
    True when a declared output can carry an error: an exception class,
    or a union of exception classes and None (e.g. `ValueError | None`).
    """
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return issubclass(annotation, BaseException)
    if is_union(annotation):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return bool(members) and all(isinstance(m, type) and issubclass(m, BaseException) for m in members)
    return False


def output_annotations(return_annotation: Any) -> tuple[Any, ...] | None:
    """
    Returns one annotation per declared output position, or None when the
    number of outputs is only known from the returned value.
    """
    if return_annotation is EMPTY or return_annotation is Any or isinstance(return_annotation, str):
        return None
    if return_annotation is None or return_annotation is type(None):
        return ()
    if return_annotation is NoReturn or return_annotation is Never:
        return ()
    if get_origin(return_annotation) is tuple:
        args = get_args(return_annotation)
        if args in ((), ((),)):
            return ()
        if len(args) == 2 and args[1] is Ellipsis:
            return None
        return tuple(args)
    return (return_annotation,)


def zero_value(annotation: Any) -> Any:
    """Zero value for a parameter annotation; None for anything pointer-like."""
    if is_unconstrained(annotation) or annotation is None or is_union(annotation):
        return None
    origin = get_origin(annotation)
    if origin is Annotated:
        return zero_value(get_args(annotation)[0])
    if origin is Literal:
        return None
    if origin is tuple:
        args = get_args(annotation)
        if not args or args == ((),) or (len(args) == 2 and args[1] is Ellipsis):
            return ()
        return tuple(zero_value(arg) for arg in args)
    if origin is not None:
        if origin in _ZERO_CONSTRUCTIBLE:
            return origin()
        concrete = _ABSTRACT_CONTAINERS.get(origin)
        return concrete() if concrete is not None else None
    if not isinstance(annotation, type):
        return None
    if annotation in _ZERO_CONSTRUCTIBLE:
        return annotation()
    if issubclass(annotation, numbers.Number) and annotation is not numbers.Number:
        # Decimal, Fraction and similar build their zero with no arguments.
        try:
            return annotation()
        except (TypeError, ValueError):
            return None
    concrete = _ABSTRACT_CONTAINERS.get(annotation)
    return concrete() if concrete is not None else None


def check_value(annotation: Any, value: Any) -> None:
    """
    Raises TypeError or ValidationError when `value` does not fit `annotation`.
    Annotations pydantic cannot build a schema for are not checked.
    """
    if is_unconstrained(annotation):
        return
    if isinstance(annotation, type) and get_origin(annotation) is None and not is_typeddict(annotation):
        try:
            fits = _isinstance_numeric(annotation, value)
        except TypeError:
            # isinstance is unsupported for the class (e.g. a non-runtime Protocol).
            return
        if fits:
            return
        raise TypeError(f"{value!r} is not an instance of {annotation.__name__}")
    try:
        adapter = _type_adapter(annotation)
    except PydanticUserError:
        return
    adapter.validate_python(value, strict=True)


def matches(annotation: Any, value: Any) -> bool:
    try:
        check_value(annotation, value)
    except (TypeError, ValidationError):
        return False
    return True


def _isinstance_numeric(annotation: type, value: Any) -> bool:
    if isinstance(value, annotation):
        return True
    # int is acceptable wherever float or complex is, as type checkers allow.
    if annotation is float:
        return isinstance(value, int) and not isinstance(value, bool)
    if annotation is complex:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return False


def _type_adapter(annotation: Any) -> TypeAdapter[Any]:
    try:
        return _cached_type_adapter(annotation)
    except TypeError as exc:
        if isinstance(exc, PydanticUserError):
            raise
        # Unhashable annotation, skip the cache.
        return _build_type_adapter(annotation)


@lru_cache(maxsize=256)
def _cached_type_adapter(annotation: Any) -> TypeAdapter[Any]:
    return _build_type_adapter(annotation)


def _build_type_adapter(annotation: Any) -> TypeAdapter[Any]:
    # TypedDicts carry their own config; pydantic refuses an extra one.
    if is_typeddict(annotation):
        return TypeAdapter(annotation)
    return TypeAdapter(annotation, config=_ADAPTER_CONFIG)
