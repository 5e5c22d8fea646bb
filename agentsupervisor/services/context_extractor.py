"""Derive the context a run belongs to from its triggering messages."""

from __future__ import annotations

import re

from agentsupervisor.models.session import Platform

ISSUE_KEY_RE = re.compile(r"\b([A-Z]{2,}-\d+)\b")
ISSUE_UUID_RE = re.compile(r"issue\s+([a-f0-9-]{36})", re.IGNORECASE)
SLACK_PREFIX = "slack:"
GENERAL_CONTEXT = "general"


def extract_context_id(
    messages: list[dict],
    slack_channel: str | None = None,
    slack_thread: str | None = None,
) -> str:
    """Issue key or issue uuid from the transcript, else the chat thread.

    Non-string message contents (structured parts) are skipped.
    """
    for message in messages:
        content = message.get("content")
        if not isinstance(content, str):
            continue
        if match := ISSUE_KEY_RE.search(content):
            return match.group(1)
        if match := ISSUE_UUID_RE.search(content):
            return match.group(1)

    if slack_channel:
        suffix = f":{slack_thread}" if slack_thread else ""
        return f"{SLACK_PREFIX}{slack_channel}{suffix}"
    return GENERAL_CONTEXT


def determine_platform(context_id: str, slack_channel: str | None = None) -> Platform:
    if slack_channel:
        return Platform.SLACK
    if context_id and context_id != GENERAL_CONTEXT and not context_id.startswith(SLACK_PREFIX):
        return Platform.LINEAR
    return Platform.GENERAL
