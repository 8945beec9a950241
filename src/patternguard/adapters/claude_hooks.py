"""Claude Code hook adapters: thin translation layer.

The adapters do NOT contain detection logic; that lives in the pipeline.
They only:
1. Build a HookInvocation from the host's input convention
2. Run the PatternGuard
3. Translate the HookResult into exit code + output streams

Two conventions exist and are kept apart:
- JSON on stdin, JSON on stderr, exit 2 to deny (Swift/Rust/PowerShell)
- two positional arguments, plain text on stdout, always exit 0 (SQL)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from patternguard import PatternGuard
from patternguard.envelope import create_invocation, parse_payload
from patternguard.evaluation import HookResult
from patternguard.profile import Profile

logger = logging.getLogger(__name__)

EXIT_ALLOW = 0
EXIT_DENY = 2


@dataclass(frozen=True)
class HookOutput:
    """What the hook process should emit."""

    exit_code: int = EXIT_ALLOW
    stdout: str = ""
    stderr: str = ""


class JsonHookAdapter:
    """Translate HookResults into the JSON hook protocol."""

    def __init__(self, guard: PatternGuard, profile: Profile | str | None = None):
        self._guard = guard
        self._profile = profile

    def handle(self, raw: str | bytes | None) -> HookOutput:
        invocation = parse_payload(raw)
        result = self._guard.evaluate_invocation(invocation, profile=self._profile)
        return self.to_output(result)

    @staticmethod
    def to_output(result: HookResult) -> HookOutput:
        if not result.findings:
            return HookOutput()

        payload = {
            "hookSpecificOutput": {"permissionDecision": result.decision.value},
            "systemMessage": result.message,
        }
        return HookOutput(
            exit_code=EXIT_DENY if result.denied else EXIT_ALLOW,
            stderr=json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
        )


class TextReportAdapter:
    """Translate HookResults into the plain-text advisory report."""

    def __init__(self, guard: PatternGuard, profile: Profile | str | None = "sql"):
        self._guard = guard
        self._profile = profile

    def handle(self, file_path: str | None, content: str | None) -> HookOutput:
        invocation = create_invocation(file_path, content)
        result = self._guard.evaluate_invocation(invocation, profile=self._profile)
        return self.to_output(result)

    @staticmethod
    def to_output(result: HookResult) -> HookOutput:
        if not result.findings:
            return HookOutput()
        # Advisory only: never blocks, whatever the profile says.
        return HookOutput(exit_code=EXIT_ALLOW, stdout=f"\n{result.message}\n\n")
