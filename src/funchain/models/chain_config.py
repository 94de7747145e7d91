"""Pydantic model for chain runtime options."""

from __future__ import annotations

from pydantic import BaseModel


class ChainConfig(BaseModel):
    name: str | None = None
    check_argument_types: bool = True
    log_contained_faults: bool = True
