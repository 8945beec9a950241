"""Evaluation result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from patternguard.findings import Finding


class Decision(Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class HookResult:
    """Result of evaluating one proposed write against a profile.

    ``findings`` preserves rule-declaration order. ``message`` is the
    rendered findings block, or None when nothing fired.
    """

    decision: Decision = Decision.ALLOW
    findings: tuple[Finding, ...] = field(default_factory=tuple)
    message: str | None = None
    profile: str | None = None
    profile_version: str | None = None
    profile_fingerprint: str | None = None  # sha256 of the profile bundle

    @classmethod
    def allow(
        cls,
        profile: str | None = None,
        profile_version: str | None = None,
        profile_fingerprint: str | None = None,
    ) -> HookResult:
        return cls(
            decision=Decision.ALLOW,
            profile=profile,
            profile_version=profile_version,
            profile_fingerprint=profile_fingerprint,
        )

    @property
    def denied(self) -> bool:
        return self.decision == Decision.DENY

    @property
    def rule_ids(self) -> list[str]:
        return [f.rule_id for f in self.findings]

    def to_dict(self) -> dict:
        return {
            "decision": self.decision.value,
            "profile": self.profile,
            "profile_version": self.profile_version,
            "profile_fingerprint": self.profile_fingerprint,
            "findings": [
                {"rule_id": f.rule_id, "severity": f.severity.value, "message": f.message} for f in self.findings
            ],
            "message": self.message,
        }
