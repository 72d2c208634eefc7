from __future__ import annotations

from typing import Any, Optional
from typing_extensions import TypedDict


class ReplyState(TypedDict, total=False):
    """Per-request state flowing through the reply graph."""
    message: str
    category: str
    # langchain-core messages for the provider call
    prompt: list
    model: str
    fallback_model: Optional[str]

    raw_text: Optional[str]
    used_fallback: bool
    attempts: int
    error: Optional[Any]

    text: Optional[str]
    confidence: float
