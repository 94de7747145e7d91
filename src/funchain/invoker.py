"""Dynamic invocation of a single chain step."""

from __future__ import annotations

import inspect
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Sequence

from pydantic import ValidationError

from funchain.errors import ArgumentMismatchError
from funchain.errors import ChainError
from funchain.errors import ExecutionPanic
from funchain.errors import MultipleErrorOutputsError
from funchain.errors import NotCallableError
from funchain.errors import ResultShapeError
from funchain.errors import StepError
from funchain.type_utils import EMPTY
from funchain.type_utils import check_value
from funchain.type_utils import is_error_annotation
from funchain.type_utils import output_annotations
from funchain.type_utils import zero_value


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterShape:
    name: str
    annotation: Any = EMPTY
    default: Any = EMPTY

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY


@dataclass(frozen=True)
class CallableShape:
    """What the invoker knows about a callable before calling it."""

    name: str
    parameters: tuple[ParameterShape, ...] = ()
    keyword_only: tuple[ParameterShape, ...] = ()
    var_positional: ParameterShape | None = None
    # None when the number of outputs depends on the returned value.
    outputs: tuple[Any, ...] | None = None
    error_positions: tuple[int, ...] = ()
    introspectable: bool = True

    @property
    def error_index(self) -> int | None:
        if len(self.error_positions) != 1:
            return None
        return self.error_positions[0]

    def bind(self, args: Sequence[Any], *, check_types: bool = True) -> tuple[list[Any], dict[str, Any]]:
        """
        Adapts `args` to the parameter list: checks the supplied values,
        pads missing parameters with zero values and drops the excess.
        """
        if not self.introspectable:
            return list(args), {}

        positional: list[Any] = []
        for param, value in zip(self.parameters, args):
            if check_types:
                self._check(param, value)
            positional.append(value)

        for param in self.parameters[len(args):]:
            if param.has_default:
                break
            positional.append(zero_value(param.annotation))

        if self.var_positional is not None:
            for value in args[len(self.parameters):]:
                if check_types:
                    self._check(self.var_positional, value)
                positional.append(value)

        keywords = {param.name: zero_value(param.annotation) for param in self.keyword_only}
        return positional, keywords

    def split(self, result: Any) -> StepResult:
        if self.outputs is None:
            if result is None:
                return StepResult([])
            if isinstance(result, tuple):
                return StepResult(list(result))
            return StepResult([result])

        if not self.outputs:
            return StepResult([])
        if len(self.outputs) == 1:
            values: tuple[Any, ...] = (result,)
        elif isinstance(result, tuple) and len(result) == len(self.outputs):
            values = result
        else:
            return StepResult([], ResultShapeError(self.name, len(self.outputs), result))

        error: ChainError | None = None
        outputs: list[Any] = []
        for index, value in enumerate(values):
            if index == self.error_index:
                if isinstance(value, ChainError):
                    error = value
                elif isinstance(value, BaseException):
                    error = StepError(value)
                continue
            outputs.append(value)
        return StepResult(outputs, error)

    def _check(self, param: ParameterShape, value: Any) -> None:
        try:
            check_value(param.annotation, value)
        except (TypeError, ValidationError) as exc:
            raise ArgumentMismatchError(self.name, param.name, value, param.annotation, exc) from exc


@dataclass(frozen=True)
class StepResult:
    outputs: list[Any] = field(default_factory=list)
    error: ChainError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.outputs
        yield self.error


def callable_name(fn: Any) -> str:
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    if isinstance(name, str):
        return name
    return type(fn).__name__


def inspect_callable(fn: Callable[..., Any]) -> CallableShape:
    name = callable_name(fn)
    signature = _signature(fn)
    if signature is None:
        return CallableShape(name=name, introspectable=False)

    namespace = _annotation_namespace(fn)
    parameters: list[ParameterShape] = []
    keyword_only: list[ParameterShape] = []
    var_positional: ParameterShape | None = None
    for param in signature.parameters.values():
        shape = ParameterShape(param.name, _resolve(param.annotation, namespace), param.default)
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            parameters.append(shape)
        elif param.kind == param.VAR_POSITIONAL:
            var_positional = shape
        elif param.kind == param.KEYWORD_ONLY and not shape.has_default:
            keyword_only.append(shape)

    if isinstance(fn, type):
        # Constructors produce exactly one value, whatever __init__ declares.
        outputs: tuple[Any, ...] | None = (EMPTY,)
    else:
        outputs = output_annotations(_resolve(signature.return_annotation, namespace))
    error_positions = tuple(i for i, ann in enumerate(outputs or ()) if is_error_annotation(ann))
    return CallableShape(
        name=name,
        parameters=tuple(parameters),
        keyword_only=tuple(keyword_only),
        var_positional=var_positional,
        outputs=outputs,
        error_positions=error_positions,
    )


def invoke(fn: Any, args: Sequence[Any] = (), *, check_types: bool = True) -> StepResult:
    """
    Calls `fn` with `args` adapted to its signature.
    Never raises for failures of the callable: errors come back in the result.
    """
    if not callable(fn):
        return StepResult([], NotCallableError(fn))

    shape = inspect_callable(fn)
    if len(shape.error_positions) > 1:
        return StepResult([], MultipleErrorOutputsError(shape.name, list(shape.error_positions)))

    try:
        positional, keywords = shape.bind(args, check_types=check_types)
    except ArgumentMismatchError as exc:
        return StepResult([], exc)

    try:
        result = fn(*positional, **keywords)
    except Exception as exc:
        logger.debug("Step %s raised %s", shape.name, type(exc).__name__, exc_info=True)
        return StepResult([], ExecutionPanic(exc))

    return shape.split(result)


def _signature(fn: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(fn)
    except (TypeError, ValueError):
        return None


def _annotation_namespace(fn: Callable[..., Any]) -> dict[str, Any]:
    """Names visible to the callable's string annotations: module globals plus closure cells."""
    if isinstance(fn, type):
        module = sys.modules.get(fn.__module__)
        namespace = dict(vars(module)) if module is not None else {}
        namespace.update(vars(fn))
        return namespace

    target: Any = fn
    if not (inspect.isfunction(inspect.unwrap(fn)) or inspect.ismethod(fn)):
        target = getattr(type(fn), "__call__", fn)
    target = inspect.unwrap(getattr(target, "__func__", target))

    namespace = dict(getattr(target, "__globals__", {}))
    code = getattr(target, "__code__", None)
    closure = getattr(target, "__closure__", None)
    if code is not None and closure:
        for name, cell in zip(code.co_freevars, closure):
            try:
                namespace[name] = cell.cell_contents
            except ValueError:
                # Cell not filled yet.
                continue
    return namespace


def _resolve(annotation: Any, namespace: dict[str, Any]) -> Any:
    """Evaluates one string annotation; unresolvable ones stay strings and go unchecked."""
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, namespace)
    except (NameError, AttributeError, SyntaxError, TypeError):
        return annotation
