"""Channel manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from repl_test_bridge.channels.base import EvalChannel


@dataclass(frozen=True, kw_only=True)
class ChannelManifest[ConfigT: BaseModel]:
    """Manifest describing a channel plugin.

    Holds the configuration class and a factory that opens the channel for
    the duration of an ``async with`` block.
    """

    config_cls: type[ConfigT]
    channel_factory: Callable[[ConfigT], AbstractAsyncContextManager[EvalChannel]]
