"""HTTP evaluation channel implementation."""

import logging
import uuid
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import ValidationError

from repl_test_bridge.channels.base import EvalChannel
from repl_test_bridge.channels.http.config import HttpChannelConfig
from repl_test_bridge.channels.http.models import EvalMessage
from repl_test_bridge.errors import EvalError

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class HttpEvalChannel(EvalChannel):
    """Evaluates expressions through an nREPL-style HTTP endpoint.

    Requests are posted as JSON messages (``{"op": "eval", "code": ...}``) and
    the endpoint answers with one message or a list of messages, the last
    ``value`` being the printed result.
    """

    config: HttpChannelConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HttpChannelConfig
    ) -> AsyncGenerator["HttpEvalChannel", None]:
        """Create channel with managed session lifecycle."""
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        async with aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def evaluate(self, expression: str) -> str:
        """Evaluate ``expression`` and return the last printed value."""
        messages = await self.send({"op": "eval", "code": expression})

        for message in messages:
            if message.out:
                log.debug("Remote output: %s", message.out.rstrip())
            if message.failed:
                raise EvalError(
                    f"Remote evaluation raised {message.ex or 'an exception'}: "
                    f"{(message.err or '').strip()}"
                )

        values = [m.value for m in messages if m.value is not None]
        if not values:
            raise EvalError("Remote evaluation returned no value")
        return values[-1]

    async def is_connected(self) -> bool:
        """Probe the endpoint with a describe request."""
        try:
            await self.send({"op": "describe"})
        except EvalError as exc:
            log.info("Evaluation endpoint %s unreachable: %s", self.config.url, exc)
            return False
        return True

    async def send(self, request: dict[str, Any]) -> Sequence[EvalMessage]:
        """Post one request message and return the response messages."""
        payload = {"id": str(uuid.uuid4()), **request}
        if self.config.session is not None:
            payload["session"] = self.config.session

        log.debug("Sending %s request to %s", request["op"], self.config.url)
        try:
            async with self.session.post(self.config.url, json=payload) as response:
                if response.status != 200:
                    text = await response.text()
                    raise EvalError(
                        f"Failed to send {request['op']} request: "
                        f"{response.status} {text}"
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise EvalError(f"Failed to reach {self.config.url}: {exc}") from exc
        except ValueError as exc:
            raise EvalError(
                f"Invalid {request['op']} response from {self.config.url}: {exc}"
            ) from exc

        items = data if isinstance(data, list) else [data]
        try:
            return [EvalMessage.model_validate(item) for item in items]
        except ValidationError as exc:
            raise EvalError(
                f"Unexpected {request['op']} response from {self.config.url}: {exc}"
            ) from exc
