"""Activity logger that narrates into the operator log."""

from __future__ import annotations

import logging

logger = logging.getLogger("agentsupervisor.activity")


class LogActivityLogger:
    """Fallback narration target when no platform endpoint is configured."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def thought(self, context_id: str, text: str) -> None:
        logger.log(self._level, "[%s] thought: %s", context_id, text)

    async def response(self, context_id: str, text: str) -> None:
        logger.log(self._level, "[%s] response: %s", context_id, text)
