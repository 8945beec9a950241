"""Compiler: convert a parsed YAML profile bundle into a Profile of rule predicates."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from patternguard.envelope import HookInvocation
from patternguard.findings import Severity
from patternguard.profile import Profile, Rule
from patternguard.yaml_engine.evaluator import (
    BUILTIN_OPERATOR_NAMES,
    REGEX_OPERATORS,
    _PolicyError,
    evaluate_expression,
)
from patternguard.yaml_engine.loader import BundleHash

logger = logging.getLogger(__name__)


def _validate_operators(bundle: dict) -> None:
    """Validate that all operators used in the bundle are known."""
    for rule in bundle.get("rules", []):
        _validate_expression_operators(rule.get("when"), rule["id"])


def _validate_expression_operators(expr: dict | Any, rule_id: str) -> None:
    if not isinstance(expr, dict):
        return

    if "all" in expr:
        for sub in expr["all"]:
            _validate_expression_operators(sub, rule_id)
        return
    if "any" in expr:
        for sub in expr["any"]:
            _validate_expression_operators(sub, rule_id)
        return
    if "not" in expr:
        _validate_expression_operators(expr["not"], rule_id)
        return

    for _selector, operator in expr.items():
        if isinstance(operator, dict):
            for op_name in operator:
                if op_name not in BUILTIN_OPERATOR_NAMES:
                    from patternguard import PatternGuardConfigError

                    raise PatternGuardConfigError(f"Rule '{rule_id}': unknown operator '{op_name}'")


def _precompile_regexes(expr: dict | Any) -> dict | Any:
    """Recursively walk an expression tree and compile regex patterns.

    The evaluator then never recompiles on every invocation.
    """
    if not isinstance(expr, dict):
        return expr

    if "all" in expr:
        return {"all": [_precompile_regexes(sub) for sub in expr["all"]]}
    if "any" in expr:
        return {"any": [_precompile_regexes(sub) for sub in expr["any"]]}
    if "not" in expr:
        return {"not": _precompile_regexes(expr["not"])}

    compiled: dict = {}
    for selector, operator in expr.items():
        if not isinstance(operator, dict):
            compiled[selector] = operator
            continue
        new_op: dict = {}
        for op_name, op_value in operator.items():
            if op_name == "matches":
                new_op[op_name] = re.compile(op_value)
            elif op_name == "matches_any":
                new_op[op_name] = [re.compile(p) for p in op_value]
            elif op_name in REGEX_OPERATORS:
                new_op[op_name] = {
                    k: re.compile(v) if k in REGEX_OPERATORS[op_name] else v for k, v in op_value.items()
                }
            else:
                new_op[op_name] = op_value
        compiled[selector] = new_op
    return compiled


def _compile_predicate(rule_id: str, when: dict) -> Callable[[HookInvocation], bool]:
    compiled_when = _precompile_regexes(when)

    def predicate(invocation: HookInvocation) -> bool:
        result = evaluate_expression(compiled_when, invocation)
        if isinstance(result, _PolicyError):
            logger.warning("Rule %s could not be evaluated: %s", rule_id, result.message)
            return False
        return bool(result)

    predicate.__name__ = rule_id
    return predicate


def compile_profile(bundle: dict, bundle_hash: BundleHash | str | None = None) -> Profile:
    """Compile a validated profile bundle into a Profile.

    Args:
        bundle: A validated bundle dict (output of load_profile).
        bundle_hash: Hash of the raw bundle, kept as the profile fingerprint.

    Returns:
        Profile with rules in declaration order. Disabled rules are dropped.
    """
    _validate_operators(bundle)

    default_severity = bundle.get("defaults", {}).get("severity", Severity.ADVISORY.value)
    rules: list[Rule] = []

    for raw in bundle.get("rules", []):
        if not raw.get("enabled", True):
            logger.debug("Skipping disabled rule %s", raw["id"])
            continue
        rules.append(
            Rule(
                id=raw["id"],
                message=raw["message"].strip(),
                severity=Severity(raw.get("severity", default_severity)),
                predicate=_compile_predicate(raw["id"], raw["when"]),
                description=raw.get("description"),
            )
        )

    metadata = bundle["metadata"]
    report = bundle.get("report", {})
    return Profile(
        name=metadata["name"],
        language=metadata.get("language", metadata["name"]),
        version=str(metadata.get("version", "0")),
        extensions=tuple(bundle["extensions"]),
        rules=tuple(rules),
        blocking=bundle.get("blocking", False),
        header=report.get("header", "{file_path}:").rstrip("\n"),
        item_format=report.get("item", "{index}. {message}"),
        trailer=report.get("trailer", "").rstrip("\n"),
        fingerprint=str(bundle_hash) if bundle_hash is not None else None,
    )
