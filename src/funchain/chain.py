"""Chain builder and driver."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Callable, Optional, TypeAlias

from funchain.errors import ChainError
from funchain.invoker import callable_name
from funchain.invoker import invoke
from funchain.models.chain_config import ChainConfig
from funchain.refs import bind_outputs


logger = logging.getLogger(__name__)

# before(input), after(input, output), on_error(output, error)
BeforeHook: TypeAlias = Callable[[list[Any]], Any]
AfterHook: TypeAlias = Callable[[list[Any], list[Any]], Any]
ErrorHook: TypeAlias = Callable[[list[Any], ChainError], Any]
Cleanup: TypeAlias = Callable[[], Any]


class Chain:
    """
    Runs callables in order, passing the ordinary outputs of each step as
    the positional arguments of the next.

    The first step error stops the chain. Hook and cleanup failures are
    logged and never reach the caller. Not safe for concurrent use.
    """

    def __init__(self, *fns: Any, config: ChainConfig | None = None) -> None:
        self.config: ChainConfig = config or ChainConfig()
        self.steps: list[Callable[..., Any]] = []
        self.cleanups: list[Cleanup] = []
        self.before_hooks: list[Optional[BeforeHook]] = []
        self.after_hooks: list[Optional[AfterHook]] = []
        self.error_hooks: list[Optional[ErrorHook]] = []
        self.then(*fns)

    @property
    def name(self) -> str:
        return self.config.name or "chain"

    def then(self, *fns: Any) -> "Chain":
        for fn in fns:
            if not callable(fn):
                logger.debug("Skipping non-callable step %r in %s", fn, self.name)
                continue
            self.steps.append(fn)
        return self

    def defer(self, *fns: Cleanup) -> "Chain":
        self.cleanups.extend(fns)
        return self

    def before(self, *hooks: Optional[BeforeHook]) -> "Chain":
        self.before_hooks.extend(hooks)
        return self

    def after(self, *hooks: Optional[AfterHook]) -> "Chain":
        self.after_hooks.extend(hooks)
        return self

    def on_error(self, *hooks: Optional[ErrorHook]) -> "Chain":
        self.error_hooks.extend(hooks)
        return self

    def execute(self, *destinations: Any) -> tuple[list[Any], ChainError | None]:
        """
        Runs every step and returns `(outputs, error)`.
        On success the final outputs are also written into `destinations`
        (see `funchain.refs.Ref`), position by position.
        """
        with ExitStack() as stack:
            # ExitStack unwinds last-registered-first.
            for cleanup in self.cleanups:
                stack.callback(self._contained, "cleanup", cleanup)

            args: list[Any] = []
            for index, step in enumerate(self.steps):
                step_name = callable_name(step)
                logger.debug("%s: step %d (%s) starting with %d args", self.name, index, step_name, len(args))
                for before_hook in self.before_hooks:
                    self._contained("before hook", before_hook, list(args))

                outputs, error = invoke(step, args, check_types=self.config.check_argument_types)

                for after_hook in self.after_hooks:
                    self._contained("after hook", after_hook, list(args), list(outputs))

                if error is not None:
                    logger.debug("%s: step %d (%s) failed: %s", self.name, index, step_name, error)
                    for error_hook in self.error_hooks:
                        self._contained("error hook", error_hook, list(outputs), error)
                    return outputs, error

                args = outputs

            bind_outputs(args, destinations)
            return args, None

    def _contained(self, kind: str, fn: Optional[Callable[..., Any]], *args: Any) -> None:
        if fn is None:
            return
        try:
            fn(*args)
        except Exception:
            if self.config.log_contained_faults:
                logger.warning("%s: %s %s failed", self.name, kind, callable_name(fn), exc_info=True)


def create(*fns: Any, config: ChainConfig | None = None) -> Chain:
    return Chain(*fns, config=config)
