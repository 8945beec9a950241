"""Profiles: fixed, versioned, ordered rule tables, one per language."""

from __future__ import annotations

import importlib.resources as _resources
import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from patternguard.envelope import HookInvocation
from patternguard.findings import Finding, Severity

logger = logging.getLogger(__name__)

BUILTIN_PROFILES = ("swift", "rust", "powershell", "sql")

_PLACEHOLDER_RE = re.compile(r"\{(index|message|file_path)\}")


def _expand(template: str, values: dict[str, str]) -> str:
    """Substitute {index}, {message} and {file_path}; leave other braces alone."""
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


@dataclass(frozen=True)
class Rule:
    """A single detection rule.

    ``predicate`` receives the invocation and returns True when the rule
    fires. It must be pure.
    """

    id: str
    message: str
    severity: Severity
    predicate: Callable[[HookInvocation], bool]
    description: str | None = None

    def finding(self) -> Finding:
        return Finding(rule_id=self.id, message=self.message, severity=self.severity)


@dataclass(frozen=True)
class Profile:
    """Ordered rule table plus the report layout for one language."""

    name: str
    extensions: tuple[str, ...]
    rules: tuple[Rule, ...] = field(default_factory=tuple)
    language: str = ""
    version: str = "0"
    blocking: bool = False
    header: str = "{file_path}:"
    item_format: str = "{index}. {message}"
    trailer: str = ""
    fingerprint: str | None = None  # sha256 of the source bundle, when loaded from YAML

    def matches_path(self, file_path: str) -> bool:
        return any(file_path.endswith(ext) for ext in self.extensions)

    def render(self, file_path: str, findings: list[Finding] | tuple[Finding, ...]) -> str | None:
        """Render findings as a single human-readable block."""
        if not findings:
            return None
        items = "\n".join(
            _expand(self.item_format, {"index": str(i), "message": f.message, "file_path": file_path})
            for i, f in enumerate(findings, start=1)
        )
        header = _expand(self.header, {"file_path": file_path})
        text = f"{header}\n\n{items}"
        if self.trailer:
            text += "\n\n" + _expand(self.trailer, {"file_path": file_path})
        return text


class ProfileRegistry:
    """Ordered set of profiles, dispatched by file extension."""

    def __init__(self, profiles: list[Profile] | tuple[Profile, ...] = ()):
        self._profiles: dict[str, Profile] = {}
        for profile in profiles:
            self.register(profile)

    def register(self, profile: Profile) -> None:
        from patternguard import PatternGuardConfigError

        if profile.name in self._profiles:
            raise PatternGuardConfigError(f"Duplicate profile name: '{profile.name}'")
        self._profiles[profile.name] = profile

    def get(self, name: str) -> Profile:
        from patternguard import PatternGuardConfigError

        try:
            return self._profiles[name]
        except KeyError:
            raise PatternGuardConfigError(
                f"Profile '{name}' not found. Available: {', '.join(self._profiles) or '(none)'}"
            ) from None

    def for_path(self, file_path: str) -> Profile | None:
        for profile in self._profiles.values():
            if profile.matches_path(file_path):
                return profile
        return None

    def names(self) -> list[str]:
        return list(self._profiles)

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)


def load_builtin(name: str) -> Profile:
    """Load one of the profiles shipped with the package."""
    from patternguard import PatternGuardConfigError
    from patternguard.yaml_engine import compile_profile, load_profile_string

    if name not in BUILTIN_PROFILES:
        raise PatternGuardConfigError(f"Built-in profile '{name}' not found. Available: {', '.join(BUILTIN_PROFILES)}")
    text = _resources.files("patternguard.profiles").joinpath(f"{name}.yaml").read_text(encoding="utf-8")
    bundle, bundle_hash = load_profile_string(text)
    return compile_profile(bundle, bundle_hash)


def default_registry() -> ProfileRegistry:
    """Registry holding every built-in profile in declaration order."""
    return ProfileRegistry([load_builtin(name) for name in BUILTIN_PROFILES])
