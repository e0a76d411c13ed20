"""Ordered fallback chains.

A strategy is an async function ``query -> result | None``. The chain
awaits each strategy in turn and stops at the first acceptable result.
Exceptions are logged and treated like an empty result.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

Q = TypeVar("Q")
T = TypeVar("T")

Strategy = Callable[[Q], Awaitable[T | None]]


@dataclass
class ChainOutcome(Generic[T]):
    """What a fallback chain produced and how it got there."""

    value: T | None = None
    winner: str | None = None
    attempted: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.value is not None


async def first_success(
    query: Any,
    strategies: Sequence[tuple[str, Strategy]],
    accept: Callable[[Any], bool] | None = None,
) -> ChainOutcome:
    """
    Run ``strategies`` strictly in order until one returns an accepted value.

    Args:
        query: Passed to every strategy
        strategies: (name, async function) pairs in priority order
        accept: Extra validity check; a rejected value counts as empty

    Returns:
        ChainOutcome with the winning value, or with ``value=None``
    """
    outcome: ChainOutcome = ChainOutcome()
    for name, strategy in strategies:
        outcome.attempted.append(name)
        try:
            value = await strategy(query)
        except Exception as e:
            logger.warning(f"Strategy {name} failed for {query!r}: {e}")
            outcome.errors[name] = str(e) or type(e).__name__
            continue

        if value is None:
            logger.debug(f"Strategy {name} found nothing for {query!r}")
            continue
        if accept is not None and not accept(value):
            logger.info(f"Strategy {name} returned an unusable record for {query!r}")
            continue

        outcome.value = value
        outcome.winner = name
        if len(outcome.attempted) > 1:
            logger.info(f"Resolved {query!r} via fallback {name}")
        return outcome

    return outcome
