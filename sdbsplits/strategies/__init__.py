"""
Boundary-token strategies for simpledb-splits.

This module re-exports the abstract interfaces and the concrete strategy
classes, and resolves a strategy from its ``simpledb.split.boundary.mode``
name.
"""

from typing import Callable, Dict, List

from sdbsplits.errors import ConfigurationError
from sdbsplits.strategies.abstract import (
    AbstractBoundaryStrategy,
    BoundaryStrategy,
    advance_walk,
)
from sdbsplits.strategies.incremental import IncrementalBoundaryStrategy
from sdbsplits.strategies.restart import RestartBoundaryStrategy, boundary_token


def _strategy_factories() -> Dict[str, Callable[[], BoundaryStrategy]]:
    """Registry of available boundary strategies."""
    return {
        "incremental": lambda: IncrementalBoundaryStrategy(),
        "restart": lambda: RestartBoundaryStrategy(),
    }


def available_strategies() -> List[str]:
    """List available boundary strategy names."""
    return sorted(_strategy_factories().keys())


def resolve_strategy(name: str) -> BoundaryStrategy:
    factories = _strategy_factories()
    if name not in factories:
        raise ConfigurationError(
            f"Unknown boundary mode '{name}'. Available: {', '.join(sorted(factories))}"
        )
    return factories[name]()


__all__ = [
    # Abstracts
    "AbstractBoundaryStrategy",
    "BoundaryStrategy",
    "advance_walk",
    # Concrete strategies
    "IncrementalBoundaryStrategy",
    "RestartBoundaryStrategy",
    "boundary_token",
    # Registry
    "available_strategies",
    "resolve_strategy",
]
