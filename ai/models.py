"""
ai/models.py -- Result envelope for AI provider calls.

AIResult is the AI side's error convention: upstream failures are RETURNED as
AIResult(success=False, error=...) rather than raised. CRUD routes use the
opposite convention (raised ApiError, see core/errors.py); the two are kept
separate on purpose because clients already depend on both shapes.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class AIResult:
    """Outcome of one AI provider call.

    data  -- parsed JSON, raw text, an embedding vector, or a model list
    usage -- the provider's token usage block, passed through untouched
    model -- model identifier echoed by the provider
    error -- human-readable failure reason when success is False
    """

    success: bool
    data: Any = None
    usage: Optional[dict] = None
    model: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "AIResult":
        return cls(success=False, error=error)
