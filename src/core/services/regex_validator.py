"""Pattern pre-validation against the engine's regex dialect."""

from __future__ import annotations

import logging

from core.interfaces.engine import ConversionEngine


logger = logging.getLogger(__name__)


class RegexValidator:
    """Asks the engine whether a pattern compiles.

    Nothing is cached: every non-empty pattern round-trips. A rejection and an
    unreachable engine both read as `False`.
    """

    def __init__(self, engine: ConversionEngine) -> None:
        self._engine = engine

    async def validate(self, pattern: str) -> bool:
        if not pattern:
            return True
        try:
            valid = await self._engine.validate_regex(pattern)
        except Exception as exc:
            logger.debug("Pattern %r rejected: %s", pattern, exc)
            return False
        return bool(valid)
