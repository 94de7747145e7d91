"""Error kinds returned by the invoker and the chain driver."""

from __future__ import annotations

from typing import Any


class ChainError(Exception):
    """Base class for every error a chain step can produce."""


class NotCallableError(ChainError):
    def __init__(self, value: Any) -> None:
        super().__init__(f"Expected a callable, got {type(value).__name__}.")
        self.value = value


class MultipleErrorOutputsError(ChainError):
    def __init__(self, name: str, positions: list[int]) -> None:
        super().__init__(f"{name} declares more than one error output (positions {positions}).")
        self.name = name
        self.positions = positions


class ExecutionPanic(ChainError):
    """
    The callable aborted while running.
    The original exception is kept as `payload` and chained as `__cause__`.
    """

    def __init__(self, payload: BaseException, message: str | None = None) -> None:
        super().__init__(message or f"panic occurred: {payload}")
        self.payload = payload
        self.__cause__ = payload


class ArgumentMismatchError(ExecutionPanic):
    def __init__(self, name: str, parameter: str, value: Any, expected: Any, payload: BaseException) -> None:
        super().__init__(
            payload,
            f"{name}: argument {parameter!r} expects {_describe(expected)}, got {type(value).__name__}.",
        )
        self.parameter = parameter
        self.value = value
        self.expected = expected


class ResultShapeError(ExecutionPanic):
    def __init__(self, name: str, expected: int, result: Any) -> None:
        payload = TypeError(f"expected a tuple of {expected} values, got {type(result).__name__}")
        super().__init__(payload, f"{name} declares {expected} outputs but returned {result!r}.")
        self.expected = expected
        self.result = result


class StepError(ChainError):
    """The error a step returned through its declared error output."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error
        self.__cause__ = error


def _describe(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return repr(annotation)
