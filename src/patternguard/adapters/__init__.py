"""Host-protocol adapters."""

from __future__ import annotations

from patternguard.adapters.claude_hooks import HookOutput, JsonHookAdapter, TextReportAdapter

__all__ = ["HookOutput", "JsonHookAdapter", "TextReportAdapter"]
