"""Public package exports."""

from funchain.chain import Chain
from funchain.chain import create
from funchain.errors import ArgumentMismatchError
from funchain.errors import ChainError
from funchain.errors import ExecutionPanic
from funchain.errors import MultipleErrorOutputsError
from funchain.errors import NotCallableError
from funchain.errors import ResultShapeError
from funchain.errors import StepError
from funchain.invoker import StepResult
from funchain.invoker import inspect_callable
from funchain.invoker import invoke
from funchain.models import ChainConfig
from funchain.refs import Ref

__all__ = [
    "ArgumentMismatchError",
    "Chain",
    "ChainConfig",
    "ChainError",
    "ExecutionPanic",
    "MultipleErrorOutputsError",
    "NotCallableError",
    "Ref",
    "ResultShapeError",
    "StepError",
    "StepResult",
    "create",
    "inspect_callable",
    "invoke",
]
