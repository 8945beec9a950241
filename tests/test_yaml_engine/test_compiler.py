"""Tests for the YAML profile compiler."""

from __future__ import annotations

import logging

import pytest

from patternguard import PatternGuardConfigError, evaluate
from patternguard.envelope import create_invocation
from patternguard.findings import Severity
from patternguard.yaml_engine import compile_profile


def _bundle(rules: list[dict], **extra) -> dict:
    bundle = {
        "apiVersion": "patternguard/v1",
        "kind": "PatternProfile",
        "metadata": {"name": "demo"},
        "extensions": [".demo"],
        "rules": rules,
    }
    bundle.update(extra)
    return bundle


def _rule(rule_id: str = "r1", when: dict | None = None, **extra) -> dict:
    rule = {"id": rule_id, "when": when or {"content": {"contains": "bad"}}, "message": "  Bad thing.  "}
    rule.update(extra)
    return rule


class TestProfileFields:
    def test_defaults(self):
        profile = compile_profile(_bundle([_rule()]))
        assert profile.name == "demo"
        assert profile.language == "demo"
        assert profile.version == "0"
        assert profile.extensions == (".demo",)
        assert profile.blocking is False
        assert profile.header == "{file_path}:"
        assert profile.item_format == "{index}. {message}"
        assert profile.trailer == ""
        assert profile.fingerprint is None

    def test_metadata_and_report(self):
        bundle = _bundle(
            [_rule()],
            blocking=True,
            report={"header": "H {file_path}\n", "item": "- {message}", "trailer": "T\n"},
        )
        bundle["metadata"].update({"language": "Demo", "version": 2})
        profile = compile_profile(bundle, "abc123")
        assert profile.language == "Demo"
        assert profile.version == "2"
        assert profile.blocking is True
        assert profile.header == "H {file_path}"
        assert profile.trailer == "T"
        assert profile.fingerprint == "abc123"

    def test_message_is_stripped(self):
        assert compile_profile(_bundle([_rule()])).rules[0].message == "Bad thing."


class TestRules:
    def test_declaration_order_kept(self):
        profile = compile_profile(_bundle([_rule("b"), _rule("a"), _rule("c")]))
        assert [r.id for r in profile.rules] == ["b", "a", "c"]

    def test_disabled_rules_dropped(self):
        profile = compile_profile(_bundle([_rule("on"), _rule("off", enabled=False)]))
        assert [r.id for r in profile.rules] == ["on"]

    def test_severity_from_defaults(self):
        rules = [_rule("a"), _rule("b", severity="advisory")]
        profile = compile_profile(_bundle(rules, defaults={"severity": "blocking"}))
        assert [r.severity for r in profile.rules] == [Severity.BLOCKING, Severity.ADVISORY]

    def test_severity_falls_back_to_advisory(self):
        assert compile_profile(_bundle([_rule()])).rules[0].severity == Severity.ADVISORY

    def test_unknown_operator_rejected(self):
        with pytest.raises(PatternGuardConfigError, match="Rule 'r1': unknown operator 'startswith'"):
            compile_profile(_bundle([_rule(when={"not": {"content": {"startswith": "x"}}})]))


class TestPredicates:
    def test_predicate_fires(self):
        rule = compile_profile(_bundle([_rule()])).rules[0]
        assert rule.predicate(create_invocation("a.demo", "bad code")) is True
        assert rule.predicate(create_invocation("a.demo", "good code")) is False

    def test_predicate_named_after_rule(self):
        assert compile_profile(_bundle([_rule("my-rule")])).rules[0].predicate.__name__ == "my-rule"

    def test_regexes_precompiled_and_line_scoped(self):
        rule = compile_profile(_bundle([_rule(when={"content": {"matches": "^end$"}})])).rules[0]
        assert rule.predicate(create_invocation("a.demo", "start\nend\n")) is True

    def test_evaluation_error_does_not_fire(self, caplog):
        when = {"content": {"count": {"of": "x"}}}
        rule = compile_profile(_bundle([_rule(when=when)])).rules[0]
        with caplog.at_level(logging.WARNING, logger="patternguard.yaml_engine.compiler"):
            assert rule.predicate(create_invocation("a.demo", "xxx")) is False
        assert "r1" in caplog.text

    def test_compiled_profile_runs_in_pipeline(self):
        profile = compile_profile(_bundle([_rule()], blocking=True, defaults={"severity": "blocking"}))
        result = evaluate("a.demo", "bad", profile)
        assert result.denied
        assert result.message == "a.demo:\n\n1. Bad thing."
