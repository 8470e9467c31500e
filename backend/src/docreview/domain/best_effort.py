"""Best-effort side effects.

Sealing and activity logging must never fail the operation that triggered
them. Instead of try/except blocks at every call site, such operations run
through ``run_best_effort`` and return a BestEffortResult the caller may
inspect or ignore.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BestEffortResult(Generic[T]):
    """Outcome of a fire-and-forget operation."""
    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "BestEffortResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "BestEffortResult[T]":
        return cls(ok=False, error=error)


def run_best_effort(operation: str, func: Callable[..., T], *args, **kwargs) -> BestEffortResult[T]:
    """Run func, converting any exception into a failed BestEffortResult.

    Args:
        operation: Name used in the diagnostic log line
        func: Callable to run

    Returns:
        BestEffortResult with the return value or the captured exception
    """
    try:
        return BestEffortResult.success(func(*args, **kwargs))
    except Exception as e:
        logger.warning(f"Best-effort operation '{operation}' failed: {e}", exc_info=True)
        return BestEffortResult.failure(e)
