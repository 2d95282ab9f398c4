"""
Ordered strategy chains.

Railway's accepted query and mutation shapes have changed over time. Instead of
nesting try/except blocks, each shape is a named Strategy and a chain evaluates
them in order, stopping at the first success. The returned ChainResult records
every attempt so callers can log or assert on the path that was taken.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from railway_preview.core.exceptions import (
    PlatformQueryError,
    PreviewEnvironmentError,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean "this shape did not work", as opposed to programming errors
TOLERATED_ERRORS: Tuple[Type[BaseException], ...] = (TransportError, PlatformQueryError)


class StrategyNotApplicable(Exception):
    """Raised by a strategy that finds nothing to act on."""


class AttemptOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """A named way of performing one remote operation."""

    name: str
    run: Callable[[Any], Awaitable[T]]


@dataclass(frozen=True)
class StrategyAttempt:
    name: str
    outcome: AttemptOutcome
    error: Optional[BaseException] = None


@dataclass
class ChainResult(Generic[T]):
    label: str
    attempts: List[StrategyAttempt] = field(default_factory=list)
    strategy: Optional[str] = None
    value: Optional[T] = None

    @property
    def succeeded(self) -> bool:
        return self.strategy is not None

    @property
    def last_error(self) -> Optional[BaseException]:
        for attempt in reversed(self.attempts):
            if attempt.error is not None:
                return attempt.error
        return None

    @property
    def attempted(self) -> List[str]:
        """Names of strategies that were actually executed (not skipped)."""
        return [a.name for a in self.attempts if a.outcome != AttemptOutcome.SKIPPED]

    def unwrap(self) -> T:
        """Return the winning value or raise the last observed error."""
        if self.succeeded:
            return self.value
        error = self.last_error
        if error is not None:
            raise error
        raise PreviewEnvironmentError(f"No applicable strategy for {self.label}")


async def run_chain(
    label: str,
    strategies: Sequence[Strategy[T]],
    request: Any,
    tolerated: Tuple[Type[BaseException], ...] = TOLERATED_ERRORS,
    log: Optional[logging.Logger] = None,
) -> ChainResult[T]:
    """
    Evaluate strategies in order with early exit on the first success.

    Errors listed in `tolerated` mark the strategy as failed and move on;
    anything else propagates immediately.
    """
    log = log or logger
    result: ChainResult[T] = ChainResult(label=label)

    for strategy in strategies:
        try:
            log.info(f"[{label}] Trying: {strategy.name}")
            value = await strategy.run(request)
        except StrategyNotApplicable as e:
            log.info(f"[{label}] Skipped {strategy.name}: {e}")
            result.attempts.append(
                StrategyAttempt(strategy.name, AttemptOutcome.SKIPPED)
            )
            continue
        except tolerated as e:
            log.warning(f"[{label}] Failed with {strategy.name}: {e}")
            result.attempts.append(
                StrategyAttempt(strategy.name, AttemptOutcome.FAILED, error=e)
            )
            continue

        log.info(f"[{label}] Success with: {strategy.name}")
        result.attempts.append(StrategyAttempt(strategy.name, AttemptOutcome.SUCCEEDED))
        result.strategy = strategy.name
        result.value = value
        return result

    return result
