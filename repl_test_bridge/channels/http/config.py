"""Configuration for the HTTP evaluation channel."""

from pydantic import BaseModel, SecretStr


class HttpChannelConfig(BaseModel):
    """Configuration for the HTTP evaluation channel."""

    url: str = "http://localhost:7888/repl"
    token: SecretStr | None = None
    session: str | None = None
    timeout: float = 300.0
