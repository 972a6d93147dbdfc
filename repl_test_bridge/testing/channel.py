"""Scripted evaluation channel for tests."""

import asyncio
from collections.abc import MutableMapping, MutableSequence
from dataclasses import dataclass, field

from repl_test_bridge import forms
from repl_test_bridge.channels.base import EvalCallback, EvalChannel


def request_kind(expression: str) -> str:
    """Classify an expression sent by the controller."""
    if expression == forms.INSTALL_REPORTING:
        return "install"
    if expression == forms.fetch_results_form():
        return "results"
    if expression.startswith(f"({forms.REPORT_NS}/run "):
        return "run"
    return "other"


@dataclass(frozen=True, kw_only=True)
class ScriptedChannel(EvalChannel):
    """Answers each kind of request from a queue of scripted responses.

    A response is taken from the queue when the request arrives. Requests of a
    kind listed in ``gates`` then wait for that event before answering.
    """

    connected: bool = True
    responses: MutableMapping[str, MutableSequence[str | Exception]] = field(
        default_factory=dict
    )
    gates: MutableMapping[str, asyncio.Event] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    tasks: list[asyncio.Task[None]] = field(default_factory=list)

    async def is_connected(self) -> bool:
        return self.connected

    async def evaluate(self, expression: str) -> str:
        kind = request_kind(expression)
        self.calls.append(kind)
        queue = self.responses.get(kind)
        response: str | Exception = queue.pop(0) if queue else "nil"

        if (gate := self.gates.get(kind)) is not None:
            await gate.wait()
        if isinstance(response, Exception):
            raise response
        return response

    def evaluate_async(
        self, expression: str, callback: EvalCallback
    ) -> asyncio.Task[None]:
        task = super().evaluate_async(expression, callback)
        self.tasks.append(task)
        return task

    async def settle(self) -> None:
        """Wait for every background evaluation, including superseded ones."""
        while pending := [task for task in self.tasks if not task.done()]:
            await asyncio.gather(*pending)
