"""Discovery of evaluation channels registered as entry points."""

import logging
from importlib.metadata import EntryPoint, entry_points
from typing import Any

from repl_test_bridge.channels.manifest import ChannelManifest
from repl_test_bridge.errors import BridgeError

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "repl_test_bridge.channels"


class ChannelNotFoundError(BridgeError):
    """Raised when no usable channel is registered under a key."""


def available_channels() -> list[str]:
    """Keys of every registered channel, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_channel_manifest(key: str) -> ChannelManifest[Any]:
    """Load the manifest registered under ``key`` (e.g. ``"http"``).

    Raises:
        ChannelNotFoundError: If the key is unknown, the entry point fails to
            import, or it does not point at a ChannelManifest

    """
    entry = next(
        (e for e in entry_points(group=ENTRY_POINT_GROUP) if e.name == key), None
    )
    if entry is None:
        raise ChannelNotFoundError(
            f"Channel '{key}' not found. Available channels: {available_channels()}"
        )
    return _load(entry)


def _load(entry: EntryPoint) -> ChannelManifest[Any]:
    try:
        manifest = entry.load()
    except (ImportError, AttributeError) as exc:
        raise ChannelNotFoundError(
            f"Channel '{entry.name}' could not be loaded from {entry.value}: {exc}"
        ) from exc

    if not isinstance(manifest, ChannelManifest):
        raise ChannelNotFoundError(
            f"Channel '{entry.name}' points at {entry.value}, "
            f"which is not a channel manifest"
        )
    log.debug("Loaded channel '%s' from %s", entry.name, entry.value)
    return manifest
