from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.config import Settings
from hirepipe.services.llm import TextGenerator


@dataclass(frozen=True)
class JobContext:
    session: AsyncSession
    llm: TextGenerator
    settings: Settings


@dataclass(frozen=True)
class HandlerResult:
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> "HandlerResult":
        return cls(success=True, data=data or {})

    @classmethod
    def failed(cls, error: str, *, error_code: str = "handler_failed") -> "HandlerResult":
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def no_handler(cls, job_type: str) -> "HandlerResult":
        return cls(
            success=False,
            error=f"No handler registered for job type: {job_type}",
            error_code="no_handler",
        )


JobHandler = Callable[[dict[str, Any], JobContext], Awaitable[HandlerResult]]


class HandlerRegistry:
    """Job type -> handler map owned by one dispatcher.

    Registering an existing type replaces it. `freeze()` closes the registry
    once the process has wired every handler.
    """

    def __init__(self, handlers: Mapping[str, JobHandler] | None = None):
        self._handlers: dict[str, JobHandler] = {}
        self._frozen = False
        for job_type, handler in (handlers or {}).items():
            self.register(job_type, handler)

    def register(self, job_type: str, handler: JobHandler) -> None:
        if self._frozen:
            raise RuntimeError("Handler registry is frozen")
        key = (job_type or "").strip()
        if not key:
            raise ValueError("job_type is required")
        self._handlers[key] = handler

    def resolve(self, job_type: str | None) -> JobHandler | None:
        return self._handlers.get((job_type or "").strip())

    def types(self) -> list[str]:
        return sorted(self._handlers)

    def freeze(self) -> "HandlerRegistry":
        self._frozen = True
        return self
