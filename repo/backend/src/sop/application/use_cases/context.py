from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TraceContext:
    """Correlation ids copied from the HTTP request onto published events."""

    trace_id: str | None
    request_id: str | None

    def envelope_fields(self) -> dict[str, str | None]:
        return {"request_id": self.request_id, "trace_id": self.trace_id}
