"""Evaluation pipeline: single source of hook decision logic.

Adapters call evaluate() or evaluate_invocation(), then translate the
structured HookResult into the host's output format. Nothing here does I/O
or keeps state between calls.
"""

from __future__ import annotations

import logging

from patternguard.envelope import HookInvocation, create_invocation
from patternguard.evaluation import Decision, HookResult
from patternguard.findings import Finding
from patternguard.otel import get_tracer
from patternguard.profile import Profile

logger = logging.getLogger(__name__)

_tracer = get_tracer("patternguard")


def evaluate(file_path: str | None, content: str | None, profile: Profile) -> HookResult:
    """Classify one proposed write against *profile*."""
    return evaluate_invocation(create_invocation(file_path, content), profile)


def evaluate_invocation(invocation: HookInvocation, profile: Profile) -> HookResult:
    """Run every rule of *profile* against *invocation*, in declaration order.

    Short-circuits to a silent ALLOW when the file extension is not one the
    profile handles, or when there is no content to scan.
    """
    if not profile.matches_path(invocation.file_path):
        logger.debug("Skipping %s: not a %s file", invocation.file_path or "<no path>", profile.name)
        return HookResult.allow(profile.name, profile.version, profile.fingerprint)
    if not invocation.content:
        logger.debug("Skipping %s: no content", invocation.file_path)
        return HookResult.allow(profile.name, profile.version, profile.fingerprint)

    with _tracer.start_as_current_span("patternguard.evaluate") as span:
        span.set_attribute("patternguard.profile", profile.name)
        span.set_attribute("patternguard.profile_version", profile.version)
        span.set_attribute("patternguard.file_path", invocation.file_path)

        findings: list[Finding] = []
        for rule in profile.rules:
            try:
                fired = rule.predicate(invocation)
            except Exception:
                logger.exception("Rule %s raised; treating as not fired", rule.id)
                fired = False
            if fired:
                findings.append(rule.finding())

        deny = profile.blocking and any(f.blocking for f in findings)
        decision = Decision.DENY if deny else Decision.ALLOW

        span.set_attribute("patternguard.decision", decision.value)
        span.set_attribute("patternguard.findings", len(findings))

    if findings:
        logger.debug(
            "%s: %d finding(s) from profile %s -> %s",
            invocation.file_path,
            len(findings),
            profile.name,
            decision.value,
        )

    return HookResult(
        decision=decision,
        findings=tuple(findings),
        message=profile.render(invocation.file_path, findings),
        profile=profile.name,
        profile_version=profile.version,
        profile_fingerprint=profile.fingerprint,
    )
