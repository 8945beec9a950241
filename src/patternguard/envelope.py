"""Hook Invocation Envelope: immutable snapshot of one proposed file write."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookInvocation:
    """A single pre-write request from the host tool.

    ALWAYS create via create_invocation() or parse_payload(), never directly.
    """

    file_path: str = ""
    content: str = ""
    tool_name: str = ""  # "Write" | "Edit" | ... (informational only)


def create_invocation(
    file_path: str | None,
    content: str | None,
    tool_name: str | None = "",
) -> HookInvocation:
    """Factory that normalises missing values to empty strings."""
    return HookInvocation(
        file_path=file_path or "",
        content=content or "",
        tool_name=tool_name or "",
    )


def _first(mapping: dict[str, Any], *keys: str) -> str:
    """Return the first usable string value among *keys*.

    Mirrors jq's ``a // b // ""``: absent, null and false fall through.
    Non-string values are treated as unusable.
    """
    for key in keys:
        value = mapping.get(key)
        if value is None or value is False:
            continue
        if isinstance(value, str):
            return value
        logger.debug("Ignoring non-string %s value of type %s", key, type(value).__name__)
        return ""
    return ""


def parse_payload(raw: str | bytes | None) -> HookInvocation:
    """Parse the host's JSON payload into a HookInvocation.

    Fails open: any malformed input produces empty fields instead of raising,
    so a broken payload can never abort the host's write pipeline. Invalid
    UTF-8 bytes are replaced, so the rest of the payload is still scanned.
    """
    if not raw:
        return HookInvocation()

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.debug("Malformed hook payload, treating fields as empty: %s", exc)
        return HookInvocation()

    if not isinstance(data, dict):
        logger.debug("Hook payload is %s, not an object", type(data).__name__)
        return HookInvocation()

    tool_input = data.get("tool_input")
    if not isinstance(tool_input, dict):
        tool_input = {}

    tool_name = data.get("tool_name")
    return HookInvocation(
        file_path=_first(tool_input, "file_path", "filePath"),
        content=_first(tool_input, "content", "new_string"),
        tool_name=tool_name if isinstance(tool_name, str) else "",
    )
