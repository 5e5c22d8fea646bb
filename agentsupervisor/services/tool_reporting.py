"""Human-readable narration of tool calls.

Presentation only: nothing here decides whether a call runs or whether an
error propagates.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from agentsupervisor.models.execution import ToolCategory

PARAM_PREVIEW = 100
FAILURE_PREVIEW = 200
RESULT_PREVIEW = 50


@dataclass(frozen=True)
class FailureReport:
    kind: str
    summary: str
    hint: str


# Ordered: the first pattern with a matching substring wins.
# Each tuple: (kind, substrings, summary template, remediation hint)
FAILURE_PATTERNS: list[tuple[str, tuple[str, ...], str, str]] = [
    (
        "not_found",
        ("file not found", "404"),
        "File/resource not found: {path}",
        "Try checking if the file path is correct or use a different file.",
    ),
    (
        "permission",
        ("permission", "403"),
        "Permission denied - check access rights",
        "Verify you have the necessary permissions for this operation.",
    ),
    (
        "stale_content",
        ("old code not found", "not match"),
        "Content no longer matches what was read",
        "Read the current file content first and use exact code for editing.",
    ),
    (
        "rate_limit",
        ("rate limit", "429"),
        "Rate limit exceeded - wait before retrying",
        "Wait a moment before trying again, or use a different approach.",
    ),
    (
        "network",
        ("network", "timeout", "timed out"),
        "Network problem: {error}",
        "Check your connection or try the operation again.",
    ),
]
DEFAULT_HINT = "Consider trying a different approach or checking the input parameters."


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def _path_of(params: Any) -> str:
    if isinstance(params, dict):
        return params.get("file_path") or params.get("path") or "unknown"
    return "unknown"


def call_signature(tool_name: str, params: Any) -> str:
    """Loop-detection key: tool name plus the first argument as canonical JSON."""
    payload = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), default=str)
    return f"{tool_name}:{payload}"


def describe_tool_call(tool_name: str, params: Any) -> str:
    lines = [f"**Tool:** {tool_name}"]
    if isinstance(params, dict) and params:
        lines.append("**Parameters:**")
        for key, value in params.items():
            if isinstance(value, str) and len(value) > PARAM_PREVIEW:
                formatted = f"{value[:PARAM_PREVIEW]}..."
            else:
                formatted = json.dumps(value, default=str)
            lines.append(f"  • {key}: {formatted}")
    return "\n".join(lines)


def _field(result: Any, name: str) -> Any:
    if isinstance(result, dict):
        return result.get(name)
    return getattr(result, name, None)


def summarize_success(
    tool_name: str, category: ToolCategory, result: Any, params: Any
) -> str:
    """Short success line chosen by tool category."""
    if result is None or (isinstance(result, (str, list, tuple, dict)) and not result):
        return "Completed successfully"

    if category == ToolCategory.SEARCH:
        if isinstance(result, (list, tuple)):
            count = len(result)
        else:
            results = _field(result, "results")
            count = len(results) if isinstance(results, (list, tuple)) else "unknown"
        return f"Found {count} results"

    if category == ToolCategory.READ:
        total_lines = _field(result, "totalLines") or _field(result, "total_lines")
        if total_lines:
            return f"Read {total_lines} lines from {_path_of(params)}"
        content = result if isinstance(result, str) else _field(result, "content")
        if isinstance(content, str) and content:
            return f"Processed {len(content)} characters"

    if category == ToolCategory.ACTION:
        identifier = _field(result, "id") or _field(result, "url") or _field(result, "number")
        lowered = tool_name.lower()
        if lowered.startswith("create"):
            return f"Created successfully ({identifier})" if identifier else "Created successfully"
        if lowered.startswith("update"):
            return "Updated successfully"

    if isinstance(result, str):
        preview = result
    else:
        preview = _field(result, "text") or _field(result, "message") or "Success"
        if not isinstance(preview, str):
            preview = "Success"
    return _truncate(preview, RESULT_PREVIEW)


def classify_failure(error: str, params: Any) -> FailureReport:
    lowered = error.lower()
    for kind, needles, template, hint in FAILURE_PATTERNS:
        if any(needle in lowered for needle in needles):
            summary = template.format(path=_path_of(params), error=_truncate(error, FAILURE_PREVIEW))
            return FailureReport(kind=kind, summary=summary, hint=hint)
    return FailureReport(kind="unknown", summary=_truncate(error, FAILURE_PREVIEW), hint=DEFAULT_HINT)
