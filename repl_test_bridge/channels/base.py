"""Abstract base class for remote evaluation channels."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

log = logging.getLogger(__name__)

type EvalOutcome = str | Exception
type EvalCallback = Callable[[EvalOutcome], None]


@dataclass(frozen=True, kw_only=True)
class EvalChannel(ABC):
    """Connection to a live runtime that evaluates expressions.

    Implementations only provide ``evaluate`` and ``is_connected``; the
    callback flavour is built on top of ``evaluate``.
    """

    @abstractmethod
    async def evaluate(self, expression: str) -> str:
        """Evaluate ``expression`` and return the printed result.

        Raises:
            EvalError: If the runtime reports an exception or the transport fails

        """

    @abstractmethod
    async def is_connected(self) -> bool:
        """Whether the runtime is reachable."""

    def evaluate_async(
        self, expression: str, callback: EvalCallback
    ) -> asyncio.Task[None]:
        """Evaluate in the background and hand the outcome to ``callback``.

        The callback receives the printed result, or the exception raised while
        evaluating.
        """

        async def deliver() -> None:
            try:
                result = await self.evaluate(expression)
            except Exception as exc:
                log.error("Remote evaluation failed: %s", exc, exc_info=exc)
                callback(exc)
                return
            callback(result)

        return asyncio.create_task(deliver())
