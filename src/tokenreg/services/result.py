"""What every registry operation returns.

A rejected operation is a value, not an exception: ``ok`` is False and
``error`` says why (an :class:`~tokenreg.domain.errors.ErrorCode` plus
diagnostic detail). Exceptions are reserved for broken environments.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Why an operation was rejected.

    ``detail`` carries the offending values, e.g. ``caller`` for
    UNAUTHORIZED or ``list_id``/``token``/``index`` for batch failures.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one registry operation.

    Attributes:
        ok: False when the operation was rejected and changed nothing.
        op: Operation name, e.g. ``"add_tokens"``.
        data: Payload; mutating operations include the emitted
            ``events`` in emission order.
        warnings: Non-fatal notes, such as failed plugin deliveries.
        error: Set exactly when ``ok`` is False.
        meta: Telemetry, when enabled.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=str(code), message=message, detail=detail),
        )
