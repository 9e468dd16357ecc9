"""Ordered fallback across the credentials of a single provider.

Each credential is tried in order, strictly one after the other.  The
first success wins; a ``ProviderError`` (transport or data) moves on to
the next credential; once the list is exhausted the *last* error is
returned.  Anything that is not a ``ProviderError`` is a bug and is
propagated unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar, Union

from focal.core.exceptions import ProviderConfigurationError, ProviderError, ProviderTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success-with-payload or failure-with-error."""

    value: Optional[T] = None
    error: Optional[ProviderError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, attempts: int = 1) -> "Outcome[T]":
        return cls(value=value, attempts=attempts)

    @classmethod
    def failure(cls, error: ProviderError, attempts: int = 1) -> "Outcome[T]":
        return cls(error=error, attempts=attempts)


Operation = Callable[[str], Awaitable[Union[T, Outcome[T]]]]


def credential_label(index: int) -> str:
    return "primary" if index == 0 else f"fallback {index}"


async def execute_with_fallback(
    credentials: Sequence[str],
    operation: Operation,
    *,
    label: str,
    timeout: Optional[float] = None,
) -> Outcome:
    """Run ``operation`` with each credential until one succeeds.

    ``operation`` may either return the payload / an ``Outcome`` or raise
    a ``ProviderError``.  ``timeout`` bounds each individual attempt.
    """
    if not credentials:
        return Outcome.failure(ProviderConfigurationError(f"No API keys configured for {label}", provider=label), attempts=0)

    last_error: Optional[ProviderError] = None
    for index, credential in enumerate(credentials):
        key_label = credential_label(index)
        logger.info("[fallback][%s] attempting with %s API key", label, key_label)
        try:
            if timeout:
                result = await asyncio.wait_for(operation(credential), timeout=timeout)
            else:
                result = await operation(credential)
        except asyncio.TimeoutError:
            last_error = ProviderTransportError(f"{label} request timed out after {timeout}s", provider=label)
        except ProviderError as exc:
            last_error = exc
        else:
            if not isinstance(result, Outcome):
                result = Outcome.success(result)
            if result.ok:
                logger.info("[fallback][%s] success with %s API key", label, key_label)
                return Outcome.success(result.value, attempts=index + 1)
            last_error = result.error
        logger.warning("[fallback][%s] %s API key failed: %s", label, key_label, last_error)

    logger.error("[fallback][%s] all %d API keys exhausted", label, len(credentials))
    return Outcome.failure(last_error, attempts=len(credentials))
