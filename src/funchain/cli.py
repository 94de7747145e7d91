"""CLI entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from funchain.loader import load_chain


def format_outputs(outputs: list[Any]) -> str:
    return json.dumps([_jsonable(value) for value in outputs], indent=2)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="funchain", description="Run a chain declared in a YAML file.")
    parser.add_argument("chain_file", type=str, help="Path to the chain YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every step")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    chain = load_chain(Path(args.chain_file))
    outputs, error = chain.execute()
    if error is not None:
        print(f"{chain.name} failed: {error}", file=sys.stderr)
        return 1
    print(format_outputs(outputs))
    return 0


if __name__ == "__main__":
    sys.exit(main())
