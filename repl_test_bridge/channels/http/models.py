"""Pydantic models for evaluation endpoint messages."""

from collections.abc import Sequence

from pydantic import BaseModel


class EvalMessage(BaseModel):
    """One response message of an eval or describe request."""

    id: str | None = None
    session: str | None = None
    value: str | None = None
    out: str | None = None
    err: str | None = None
    ex: str | None = None
    status: Sequence[str] = ()

    @property
    def failed(self) -> bool:
        return self.ex is not None or "eval-error" in self.status
