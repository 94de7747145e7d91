import json
import os
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from funchain import cli
from funchain import loader
from funchain.models import ChainSpec


STEPS_MODULE = """
EVENTS = []


def load() -> tuple[int, Exception | None]:
    return 20, None


def double(n: int) -> int:
    return n * 2


def reject(n: int) -> Exception | None:
    return ValueError(f"cannot use {n}")


def record(args) -> None:
    EVENTS.append(("before", list(args)))


def close() -> None:
    EVENTS.append(("close",))


NOT_CALLABLE = 3
"""

MODULE_NAME = "funchain_test_steps"


@pytest.fixture
def steps_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    (tmp_path / f"{MODULE_NAME}.py").write_text(STEPS_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, MODULE_NAME, raising=False)
    return MODULE_NAME


def write_chain(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "chain.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_import_symbol_resolves_chain_entries() -> None:
    assert loader.import_symbol("os.path:join") is os.path.join
    assert loader.import_symbol("pathlib:Path.cwd") == Path.cwd


@pytest.mark.parametrize("entry", ["os.path.join", ":join", "os.path:"])
def test_import_symbol_rejects_malformed_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        loader.import_symbol(entry)


def test_import_symbol_reports_missing_attribute() -> None:
    with pytest.raises(ImportError):
        loader.import_symbol("os.path:no_such_step")


def test_import_callable_rejects_constants() -> None:
    with pytest.raises(TypeError):
        loader.import_callable("math:pi")


def test_load_chain_spec_defaults(tmp_path: Path) -> None:
    path = write_chain(tmp_path, "name: minimal\nsteps:\n  - os.path:join\n")

    spec = loader.load_chain_spec(path)

    assert spec == ChainSpec(name="minimal", steps=["os.path:join"])
    assert spec.config.check_argument_types is True
    assert spec.cleanups == []


def test_load_chain_spec_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        loader.load_chain_spec(tmp_path / "missing.yaml")

    with pytest.raises(ValueError):
        loader.load_chain_spec(write_chain(tmp_path, "- just\n- a list\n"))

    with pytest.raises(ValidationError):
        loader.load_chain_spec(write_chain(tmp_path, "name: no-steps\n"))


def test_load_chain_runs_declared_steps(tmp_path: Path, steps_module: str) -> None:
    path = write_chain(
        tmp_path,
        f"""
name: doubling
steps:
  - {steps_module}:load
  - {steps_module}:double
before_hooks:
  - {steps_module}:record
cleanups:
  - {steps_module}:close
""",
    )

    chain = loader.load_chain(path)
    outputs, error = chain.execute()

    module = sys.modules[steps_module]
    assert chain.name == "doubling"
    assert error is None
    assert outputs == [40]
    assert module.EVENTS == [("before", []), ("before", [20]), ("close",)]


def test_build_chain_keeps_explicit_config_name(steps_module: str) -> None:
    spec = ChainSpec.model_validate(
        {"name": "file-name", "steps": [f"{steps_module}:load"], "config": {"name": "configured"}}
    )

    assert loader.build_chain(spec).name == "configured"


def test_build_chain_rejects_non_callable(steps_module: str) -> None:
    spec = ChainSpec(name="bad", steps=[f"{steps_module}:NOT_CALLABLE"])

    with pytest.raises(TypeError):
        loader.build_chain(spec)


def test_cli_prints_outputs(tmp_path: Path, steps_module: str, capsys: pytest.CaptureFixture[str]) -> None:
    path = write_chain(tmp_path, f"name: cli\nsteps:\n  - {steps_module}:load\n  - {steps_module}:double\n")

    exit_code = cli.main([str(path)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert json.loads(captured.out) == [40]


def test_cli_reports_failure(tmp_path: Path, steps_module: str, capsys: pytest.CaptureFixture[str]) -> None:
    path = write_chain(tmp_path, f"name: failing\nsteps:\n  - {steps_module}:load\n  - {steps_module}:reject\n")

    exit_code = cli.main([str(path)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "failing failed: cannot use 20" in captured.err
    assert captured.out == ""


def test_format_outputs_falls_back_to_repr() -> None:
    marker = object()

    rendered = json.loads(cli.format_outputs([1, "a", marker]))

    assert rendered == [1, "a", repr(marker)]
