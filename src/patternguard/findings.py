"""Structured rule findings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    """How a fired rule affects the write.

    BLOCKING findings make a blocking-capable profile deny the write.
    ADVISORY findings are reported but never cause a refusal.
    """

    BLOCKING = "blocking"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class Finding:
    """One detected instance of a risky pattern in the proposed content.

    Examples:
        Finding(
            rule_id="force-unwrap",
            message="Force unwrap (!) detected. Use 'guard let' ...",
            severity=Severity.BLOCKING,
        )
        Finding(
            rule_id="unwrap-overuse",
            message="Multiple .unwrap() calls without .expect(). ...",
            severity=Severity.ADVISORY,
        )
    """

    rule_id: str  # which rule produced this finding
    message: str  # human-readable description and suggested fix
    severity: Severity = Severity.ADVISORY

    @property
    def blocking(self) -> bool:
        return self.severity == Severity.BLOCKING
