"""Diagnostics: typed, leveled problem reports and their summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class Severity(Enum):
    IGNORE = "ignore"
    WARNING = "warning"
    ERROR = "error"
    PANIC = "panic"


class DiagnosticType(Enum):
    UNKNOWN = "unknown"
    RESOLVING = "resolving"
    ACCESS = "access"
    THROTTLE = "throttle"
    DATABASE = "database"
    SCHEMA = "schema"
    INTERNAL = "internal"
    USER = "user"
    VALIDATION = "validation"
    TELEMETRY = "telemetry"


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem. The summary defaults to the message."""

    message: str
    type: DiagnosticType = DiagnosticType.INTERNAL
    severity: Severity = Severity.ERROR
    summary: str = ""
    detail: str = ""
    resource: str = ""

    def __post_init__(self) -> None:
        if not self.summary:
            object.__setattr__(self, "summary", self.message)

    @classmethod
    def from_error(
        cls,
        error: BaseException | str,
        type: DiagnosticType,
        *,
        severity: Severity = Severity.ERROR,
        summary: str = "",
        detail: str = "",
        resource: str = "",
    ) -> "Diagnostic":
        return cls(
            message=str(error),
            type=type,
            severity=severity,
            summary=summary,
            detail=detail,
            resource=resource,
        )

    def __str__(self) -> str:
        return self.message


class Diagnostics(list):
    """An ordered collection of :class:`Diagnostic` objects."""

    def add(self, *items: Diagnostic | Iterable[Diagnostic] | None) -> "Diagnostics":
        """Append diagnostics (single, iterable or ``None``) in place and return self."""
        for item in items:
            if item is None:
                continue
            if isinstance(item, Diagnostic):
                self.append(item)
            else:
                self.extend(item)
        return self

    def has_errors(self) -> bool:
        return any(d.severity in (Severity.ERROR, Severity.PANIC) for d in self)

    def by_severity(self, severity: Severity) -> "Diagnostics":
        return Diagnostics(d for d in self if d.severity == severity)

    def __str__(self) -> str:
        return "; ".join(str(d) for d in self)


@dataclass
class DiagnosticsSummary:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TelemetryEvent:
    """Telemetry data carried by a diagnostic of type TELEMETRY."""

    error: str
    resource: str
    summary: str
    category: str

    def properties(self) -> dict[str, Any]:
        return {"error": self.error, "resource": self.resource, "summary": self.summary}


def summarize_diagnostics(diags: Iterable[Diagnostic] | None) -> DiagnosticsSummary:
    """Count diagnostics in total, by type and by severity."""
    summary = DiagnosticsSummary()
    for d in diags or ():
        summary.total += 1
        severity = d.severity.value.lower()
        dtype = d.type.value.lower()
        summary.by_severity[severity] = summary.by_severity.get(severity, 0) + 1
        summary.by_type[dtype] = summary.by_type.get(dtype, 0) + 1
    return summary


def telemetry_from_diagnostic(diag: Diagnostic) -> TelemetryEvent:
    """Convert a TELEMETRY diagnostic to a :class:`TelemetryEvent`."""
    return TelemetryEvent(
        error=diag.message,
        resource=diag.resource,
        summary=diag.summary,
        category=diag.detail,
    )


def filter_telemetry_events(
    diags: Iterable[Diagnostic],
) -> tuple[list[TelemetryEvent], Diagnostics]:
    """Split diagnostics into telemetry events and all other diagnostics."""
    events: list[TelemetryEvent] = []
    rest = Diagnostics()
    for d in diags:
        if d.type == DiagnosticType.TELEMETRY:
            events.append(telemetry_from_diagnostic(d))
        else:
            rest.append(d)
    return events, rest