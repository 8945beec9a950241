"""Tests for findings and results."""

from __future__ import annotations

import pytest

from patternguard.evaluation import Decision, HookResult
from patternguard.findings import Finding, Severity


class TestFinding:
    def test_creation(self):
        f = Finding(rule_id="force-unwrap", message="Force unwrap", severity=Severity.BLOCKING)
        assert f.rule_id == "force-unwrap"
        assert f.blocking

    def test_default_severity_is_advisory(self):
        assert Finding(rule_id="x", message="y").severity == Severity.ADVISORY

    def test_frozen(self):
        f = Finding(rule_id="x", message="y")
        with pytest.raises(AttributeError):
            f.rule_id = "other"

    def test_equality(self):
        assert Finding("a", "m") == Finding("a", "m")


class TestHookResult:
    def test_default_allow(self):
        r = HookResult()
        assert r.decision == Decision.ALLOW
        assert r.findings == ()
        assert r.message is None
        assert not r.denied

    def test_to_dict(self):
        r = HookResult(
            decision=Decision.DENY,
            findings=(Finding("force-unwrap", "Force unwrap", Severity.BLOCKING),),
            message="1. Force unwrap",
            profile="swift",
            profile_version="1.0.0",
            profile_fingerprint="ab12",
        )
        assert r.to_dict() == {
            "decision": "deny",
            "profile": "swift",
            "profile_version": "1.0.0",
            "profile_fingerprint": "ab12",
            "findings": [{"rule_id": "force-unwrap", "severity": "blocking", "message": "Force unwrap"}],
            "message": "1. Force unwrap",
        }
