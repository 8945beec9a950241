"""YAML Profile Loader: parse, validate against JSON Schema, compute bundle hash."""

from __future__ import annotations

import hashlib
import importlib.resources as _resources
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from patternguard.yaml_engine.evaluator import REGEX_OPERATORS

MAX_BUNDLE_SIZE = 1_048_576  # 1 MB

# Lazy-loaded schema singleton
_schema_cache: dict | None = None


def _get_schema() -> dict:
    """Load and cache the JSON Schema for validation."""
    global _schema_cache  # noqa: PLW0603
    if _schema_cache is None:
        schema_text = (
            _resources.files("patternguard.yaml_engine")
            .joinpath("patternguard-v1.schema.json")
            .read_text(encoding="utf-8")
        )
        _schema_cache = json.loads(schema_text)
    return _schema_cache


@dataclass(frozen=True)
class BundleHash:
    """SHA256 hash of raw YAML bytes, used as the profile fingerprint."""

    hex: str

    def __str__(self) -> str:
        return self.hex


def _compute_hash(raw_bytes: bytes) -> BundleHash:
    return BundleHash(hex=hashlib.sha256(raw_bytes).hexdigest())


def _validate_schema(data: dict) -> None:
    from patternguard import PatternGuardConfigError

    schema = _get_schema()
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        where = f" at '{location}'" if location else ""
        raise PatternGuardConfigError(f"Schema validation failed{where}: {e.message}") from e


def _validate_unique_ids(data: dict) -> None:
    from patternguard import PatternGuardConfigError

    ids: set[str] = set()
    for rule in data.get("rules", []):
        rule_id = rule.get("id")
        if rule_id in ids:
            raise PatternGuardConfigError(f"Duplicate rule id: '{rule_id}'")
        ids.add(rule_id)


def _validate_regexes(data: dict) -> None:
    """Compile all regex patterns at load time to catch invalid patterns early."""
    for rule in data.get("rules", []):
        _validate_expression_regexes(rule.get("when"), rule.get("id", "?"))


def _validate_expression_regexes(expr: dict | Any, rule_id: str) -> None:
    if not isinstance(expr, dict):
        return

    if "all" in expr:
        for sub in expr["all"]:
            _validate_expression_regexes(sub, rule_id)
        return
    if "any" in expr:
        for sub in expr["any"]:
            _validate_expression_regexes(sub, rule_id)
        return
    if "not" in expr:
        _validate_expression_regexes(expr["not"], rule_id)
        return

    # Leaf node: selector -> operator
    for _selector, operator in expr.items():
        if not isinstance(operator, dict):
            continue
        for op_name, op_value in operator.items():
            if op_name not in REGEX_OPERATORS:
                continue
            if op_name == "matches":
                _try_compile_regex(op_value, rule_id)
            elif op_name == "matches_any":
                for pattern in op_value:
                    _try_compile_regex(pattern, rule_id)
            else:
                for key in REGEX_OPERATORS[op_name]:
                    if key in op_value:
                        _try_compile_regex(op_value[key], rule_id)


def _try_compile_regex(pattern: str, rule_id: str) -> None:
    from patternguard import PatternGuardConfigError

    try:
        re.compile(pattern)
    except re.error as e:
        raise PatternGuardConfigError(f"Rule '{rule_id}': invalid regex pattern '{pattern}': {e}") from e


def _parse(raw_bytes: bytes) -> dict:
    from patternguard import PatternGuardConfigError

    try:
        data = yaml.safe_load(raw_bytes)
    except yaml.YAMLError as e:
        raise PatternGuardConfigError(f"YAML parse error: {e}") from e

    if not isinstance(data, dict):
        raise PatternGuardConfigError("YAML document must be a mapping")

    _validate_schema(data)
    _validate_unique_ids(data)
    _validate_regexes(data)
    return data


def load_profile(source: str | Path) -> tuple[dict, BundleHash]:
    """Load and validate a YAML profile bundle.

    Args:
        source: Path to a YAML file.

    Returns:
        Tuple of (parsed bundle dict, bundle hash).

    Raises:
        PatternGuardConfigError: If the YAML is invalid, fails schema validation,
            has duplicate rule IDs, or contains invalid regex patterns.
        FileNotFoundError: If the file does not exist.
    """
    from patternguard import PatternGuardConfigError

    path = Path(source)

    file_size = path.stat().st_size
    if file_size > MAX_BUNDLE_SIZE:
        raise PatternGuardConfigError(f"Profile file too large ({file_size} bytes, max {MAX_BUNDLE_SIZE})")

    raw_bytes = path.read_bytes()
    return _parse(raw_bytes), _compute_hash(raw_bytes)


def load_profile_string(content: str | bytes) -> tuple[dict, BundleHash]:
    """Load and validate a YAML profile bundle from a string or bytes.

    Like :func:`load_profile` but accepts YAML content directly. The
    built-in profiles are read from package data this way.
    """
    from patternguard import PatternGuardConfigError

    raw_bytes = content.encode("utf-8") if isinstance(content, str) else content

    if len(raw_bytes) > MAX_BUNDLE_SIZE:
        raise PatternGuardConfigError(f"Profile content too large ({len(raw_bytes)} bytes, max {MAX_BUNDLE_SIZE})")

    return _parse(raw_bytes), _compute_hash(raw_bytes)
