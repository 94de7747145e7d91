"""Model types for chain configuration."""

from funchain.models.chain_config import ChainConfig
from funchain.models.chain_spec import ChainSpec

__all__ = [
    "ChainConfig",
    "ChainSpec",
]
