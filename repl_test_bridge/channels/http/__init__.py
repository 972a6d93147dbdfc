"""HTTP evaluation channel module."""

from repl_test_bridge.channels.http.channel import HttpEvalChannel
from repl_test_bridge.channels.http.config import HttpChannelConfig
from repl_test_bridge.channels.http.manifest import http_manifest

__all__ = ["HttpChannelConfig", "HttpEvalChannel", "http_manifest"]
