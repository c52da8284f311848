"""Result envelope returned by every formgraph service call.

Graph errors never leave a service as exceptions: they are folded into a
failed :class:`ServiceResult` whose :class:`ServiceError` carries the
stable error code and the input path that caused it. The CLI formats the
envelope as rich text, a quiet line, or JSON.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from formgraph.domain.errors import GraphError


class ServiceError(BaseModel):
    """Why an operation failed: a machine code, a message, and context."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_graph_error(cls, exc: GraphError) -> ServiceError:
        return cls(code=exc.code, message=str(exc), detail=exc.detail())


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded. A failed result always has
            an ``error``.
        op: Operation name (``"materialize"``, ``"store"``, ...).
        data: Operation payload; empty on failure.
        warnings: Non-fatal notes, e.g. an empty collection was stored.
        error: Failure details when ``ok`` is False.
        meta: Timing and query count, when the operation measures them.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _failure_has_error(self) -> ServiceResult:
        if not self.ok and self.error is None:
            raise ValueError(f"failed {self.op!r} result needs an error")
        return self

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Shorthand for a failed result with a fresh ServiceError."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )
