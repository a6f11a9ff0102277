from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RpcRequest(BaseModel):
    """Body of a ``POST /api`` call: an operation name and its optional payload."""

    type: str = Field(min_length=1)
    payload: dict[str, Any] | None = None
