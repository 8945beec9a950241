"""patternguard: pre-write pattern detection hooks for AI coding assistants."""

from __future__ import annotations

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("patternguard")
except Exception:  # pragma: no cover  (editable installs, test envs)
    __version__ = "0.0.0-dev"

import logging
from pathlib import Path
from typing import Any

from patternguard.envelope import HookInvocation, create_invocation, parse_payload
from patternguard.evaluation import Decision, HookResult
from patternguard.findings import Finding, Severity
from patternguard.otel import configure_otel, has_otel
from patternguard.pipeline import evaluate, evaluate_invocation
from patternguard.profile import (
    BUILTIN_PROFILES,
    Profile,
    ProfileRegistry,
    Rule,
    default_registry,
    load_builtin,
)

logger = logging.getLogger(__name__)

__all__ = [
    "__version__",
    "BUILTIN_PROFILES",
    "Decision",
    "Finding",
    "HookInvocation",
    "HookResult",
    "PatternGuard",
    "PatternGuardConfigError",
    "Profile",
    "ProfileRegistry",
    "Rule",
    "Severity",
    "configure_otel",
    "create_invocation",
    "default_registry",
    "evaluate",
    "evaluate_invocation",
    "has_otel",
    "load_builtin",
    "parse_payload",
]


class PatternGuard:
    """Main configuration and entrypoint.

    Holds a ProfileRegistry and dispatches each proposed write to the
    profile that handles its extension. Holds no per-call state, so one
    instance can serve any number of invocations.
    """

    def __init__(self, registry: ProfileRegistry | None = None):
        self.registry = registry if registry is not None else default_registry()

    @classmethod
    def from_builtin(cls, *names: str) -> PatternGuard:
        """Create a PatternGuard from built-in profiles (all of them when *names* is empty)."""
        selected = names or BUILTIN_PROFILES
        return cls(ProfileRegistry([load_builtin(n) for n in selected]))

    @classmethod
    def from_yaml(cls, *paths: str | Path) -> PatternGuard:
        """Create a PatternGuard from one or more YAML profile bundles.

        Raises:
            PatternGuardConfigError: If any bundle is invalid, or two bundles
                share a profile name.
        """
        from patternguard.yaml_engine import compile_profile, load_profile

        if not paths:
            raise PatternGuardConfigError("from_yaml() requires at least one path")

        profiles = []
        for p in paths:
            bundle, bundle_hash = load_profile(p)
            profiles.append(compile_profile(bundle, bundle_hash))
        return cls(ProfileRegistry(profiles))

    @classmethod
    def from_yaml_string(cls, content: str | bytes) -> PatternGuard:
        """Create a PatternGuard from a single YAML profile bundle given as text."""
        from patternguard.yaml_engine import compile_profile, load_profile_string

        bundle, bundle_hash = load_profile_string(content)
        return cls(ProfileRegistry([compile_profile(bundle, bundle_hash)]))

    def profile_for(self, file_path: str) -> Profile | None:
        return self.registry.for_path(file_path)

    def evaluate(
        self,
        file_path: str | None,
        content: str | None,
        *,
        profile: Profile | str | None = None,
    ) -> HookResult:
        """Evaluate one proposed write.

        When *profile* is omitted the profile is chosen by file extension;
        a file no profile handles is allowed with no findings.
        """
        invocation = create_invocation(file_path, content)
        return self.evaluate_invocation(invocation, profile=profile)

    def evaluate_invocation(
        self,
        invocation: HookInvocation,
        *,
        profile: Profile | str | None = None,
    ) -> HookResult:
        if isinstance(profile, str):
            profile = self.registry.get(profile)
        if profile is None:
            profile = self.profile_for(invocation.file_path)
        if profile is None:
            logger.debug("No profile handles %s", invocation.file_path or "<no path>")
            return HookResult.allow()
        return evaluate_invocation(invocation, profile)

    def evaluate_batch(self, items: list[dict[str, Any]]) -> list[HookResult]:
        """Evaluate a batch of writes. Thin wrapper over evaluate().

        Each item is a mapping with ``file_path``, ``content`` and an
        optional ``profile`` name.
        """
        return [
            self.evaluate(item.get("file_path"), item.get("content"), profile=item.get("profile"))
            for item in items
        ]


class PatternGuardConfigError(Exception):
    """Raised for configuration/load-time errors (invalid YAML, schema failures, unknown profiles)."""

    pass
