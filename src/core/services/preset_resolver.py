"""Effective remote-config URL resolution."""

from __future__ import annotations

from typing import Iterable

from core.domain.models import PresetConfig


def find_preset(name: str, presets: Iterable[PresetConfig]) -> PresetConfig | None:
    for preset in presets:
        if preset.name == name:
            return preset
    return None


def resolve_ini_url(
    selected_preset: str | None,
    custom_url: str,
    presets: Iterable[PresetConfig],
) -> str:
    """Return the remote-config URL the engine should use.

    A selected preset always wins over `custom_url`, even when both are set.
    An unknown preset name resolves to `""` rather than raising.
    """

    if selected_preset:
        preset = find_preset(selected_preset, presets)
        return preset.url if preset else ""
    return custom_url
