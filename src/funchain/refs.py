"""Writable output destinations for `Chain.execute`."""

from __future__ import annotations

import logging
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from funchain.type_utils import EMPTY
from funchain.type_utils import matches


logger = logging.getLogger(__name__)


T = TypeVar("T")


@runtime_checkable
class Writable(Protocol):
    def set(self, value: Any) -> None:
        ...


class Ref(Generic[T]):
    """
    Holds one chain output. An expected type makes the ref reject values
    that do not fit it; the chain then leaves the ref untouched.
    """

    def __init__(self, expected: Any = EMPTY, default: Any = None) -> None:
        self.expected = expected
        self._value: Any = default
        self._is_set = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._is_set

    def accepts(self, value: Any) -> bool:
        return matches(self.expected, value)

    def set(self, value: T) -> None:
        if not self.accepts(value):
            raise TypeError(f"Ref expecting {self.expected!r} cannot hold {type(value).__name__}.")
        self._value = value
        self._is_set = True

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"


def bind_outputs(outputs: list[Any], destinations: tuple[Any, ...]) -> int:
    """
    Writes outputs[i] into destinations[i]. Destinations that are not
    writable, refuse the value's type, or fail while writing are skipped.
    Returns the number of destinations written.
    """
    written = 0
    for index, (value, destination) in enumerate(zip(outputs, destinations)):
        if not isinstance(destination, Writable):
            continue
        if isinstance(destination, Ref) and not destination.accepts(value):
            continue
        try:
            destination.set(value)
        except Exception:
            logger.warning("Output destination %d (%r) failed", index, destination, exc_info=True)
            continue
        written += 1
    return written
