"""HTTP channel manifest."""

from repl_test_bridge.channels.http.channel import HttpEvalChannel
from repl_test_bridge.channels.http.config import HttpChannelConfig
from repl_test_bridge.channels.manifest import ChannelManifest

http_manifest = ChannelManifest(
    config_cls=HttpChannelConfig,
    channel_factory=HttpEvalChannel.from_config,
)
