"""Conversion engine contract.

Exactly the four one-shot operations the engine exposes. Implementations
raise on failure; the core never builds or parses untyped payloads.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import (
    ConvertRequest,
    ConvertResult,
    ParseNodesRequest,
    ParseNodesResult,
    PresetConfig,
)


@runtime_checkable
class ConversionEngine(Protocol):
    """Structural contract for the remote conversion engine."""

    async def convert_subscription(self, request: ConvertRequest) -> ConvertResult:
        """Run a full conversion and return the generated config."""

        ...

    async def parse_nodes(self, request: ParseNodesRequest) -> ParseNodesResult:
        """Parse and filter nodes without generating a config."""

        ...

    async def validate_regex(self, pattern: str) -> bool:
        """Return `True` if the pattern compiles; raise if it does not."""

        ...

    async def get_preset_configs(self) -> list[PresetConfig]:
        ...
