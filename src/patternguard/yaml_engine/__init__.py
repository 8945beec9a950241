"""YAML Profile Pipeline: parse, validate, and compile YAML profile bundles."""

from __future__ import annotations

from patternguard.yaml_engine.loader import BundleHash


def load_profile(source: str) -> tuple[dict, BundleHash]:
    """Load and validate a YAML profile bundle. See :func:`loader.load_profile`."""
    from patternguard.yaml_engine.loader import load_profile as _load

    return _load(source)


def load_profile_string(content: str | bytes) -> tuple[dict, BundleHash]:
    """Load and validate a YAML profile bundle from a string or bytes. See :func:`loader.load_profile_string`."""
    from patternguard.yaml_engine.loader import load_profile_string as _load_string

    return _load_string(content)


def compile_profile(bundle: dict, bundle_hash: BundleHash | str | None = None):
    """Compile a parsed bundle into a Profile. See :func:`compiler.compile_profile`."""
    from patternguard.yaml_engine.compiler import compile_profile as _compile

    return _compile(bundle, bundle_hash)


__all__ = [
    "BundleHash",
    "compile_profile",
    "load_profile",
    "load_profile_string",
]
