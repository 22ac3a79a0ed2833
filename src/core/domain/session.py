"""Session state and its pure transitions.

Every transition is a function `(state, input) -> state'`; the controller in
`core.services.conversion_session` owns the current value and performs the
remote calls in between.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable

from core.domain.models import (
    ConvertResult,
    NodePreviewItem,
    Options,
    ParseNodesResult,
    PresetConfig,
    SubscriptionInfo,
)
from core.services.preset_resolver import resolve_ini_url


class SessionStatus(str, Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    PREVIEWING = "previewing"
    CONVERTED = "converted"
    PREVIEW_READY = "preview_ready"
    FAILED = "failed"


class RegexField(str, Enum):
    """Option fields that hold a user-supplied pattern."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    RENAME = "rename"

    @property
    def option_name(self) -> str:
        return {
            RegexField.INCLUDE: "include_regex",
            RegexField.EXCLUDE: "exclude_regex",
            RegexField.RENAME: "rename_pattern",
        }[self]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of one UI session.

    `converting` and `previewing` are independent advisory flags. The
    generation counters identify the latest request of each kind.
    """

    options: Options = field(default_factory=Options)
    presets: tuple[PresetConfig, ...] = ()
    converting: bool = False
    previewing: bool = False
    error: str | None = None
    result: ConvertResult | None = None
    preview_nodes: tuple[NodePreviewItem, ...] = ()
    preview_info: SubscriptionInfo | None = None
    preview_ready: bool = False
    regex_errors: frozenset[RegexField] = frozenset()
    convert_generation: int = 0
    preview_generation: int = 0

    @property
    def status(self) -> SessionStatus:
        if self.converting:
            return SessionStatus.CONVERTING
        if self.previewing:
            return SessionStatus.PREVIEWING
        if self.error is not None:
            return SessionStatus.FAILED
        if self.result is not None:
            return SessionStatus.CONVERTED
        if self.preview_ready:
            return SessionStatus.PREVIEW_READY
        return SessionStatus.IDLE

    @property
    def has_subscription(self) -> bool:
        return bool(self.options.subscription.strip())

    @property
    def has_result(self) -> bool:
        return self.result is not None

    @property
    def has_preview(self) -> bool:
        return len(self.preview_nodes) > 0

    @property
    def effective_ini_url(self) -> str:
        return resolve_ini_url(
            self.options.selected_preset,
            self.options.custom_ini_url,
            self.presets,
        )


def update_options(state: SessionState, **changes: Any) -> SessionState:
    """Apply option changes with validation; unknown names raise."""

    unknown = set(changes) - set(Options.model_fields)
    if unknown:
        raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")
    options = Options.model_validate({**state.options.model_dump(), **changes})
    return replace(state, options=options)


def reject_empty_subscription(state: SessionState, message: str) -> SessionState:
    return replace(state, error=message)


def begin_convert(state: SessionState) -> SessionState:
    return replace(
        state,
        converting=True,
        error=None,
        result=None,
        preview_nodes=(),
        preview_info=None,
        preview_ready=False,
        convert_generation=state.convert_generation + 1,
    )


def convert_succeeded(state: SessionState, result: ConvertResult) -> SessionState:
    return replace(state, result=result, error=None, converting=False)


def convert_failed(state: SessionState, error: str) -> SessionState:
    return replace(state, error=error, converting=False)


def end_convert(state: SessionState) -> SessionState:
    return replace(state, converting=False)


def begin_preview(state: SessionState) -> SessionState:
    return replace(
        state,
        previewing=True,
        error=None,
        preview_nodes=(),
        preview_info=None,
        preview_ready=False,
        preview_generation=state.preview_generation + 1,
    )


def preview_succeeded(state: SessionState, parsed: ParseNodesResult) -> SessionState:
    return replace(
        state,
        preview_nodes=tuple(parsed.nodes),
        preview_info=parsed.subscription_info,
        preview_ready=True,
        error=None,
        previewing=False,
    )


def preview_failed(state: SessionState, error: str) -> SessionState:
    return replace(state, error=error, previewing=False)


def end_preview(state: SessionState) -> SessionState:
    return replace(state, previewing=False)


def presets_loaded(state: SessionState, presets: Iterable[PresetConfig]) -> SessionState:
    return replace(state, presets=tuple(presets))


def presets_failed(state: SessionState, error: str) -> SessionState:
    return replace(state, presets=(), error=error)


def regex_checked(state: SessionState, regex_field: RegexField, valid: bool) -> SessionState:
    errors = set(state.regex_errors)
    if valid:
        errors.discard(regex_field)
    else:
        errors.add(regex_field)
    return replace(state, regex_errors=frozenset(errors))


def clear_result(state: SessionState) -> SessionState:
    """Drop the conversion result and any error; preview and options stay."""

    return replace(state, result=None, error=None)


def reset(state: SessionState) -> SessionState:
    """Back to defaults, keeping only the preset reference list.

    Both generations advance so responses still in flight are recognisable
    as stale.
    """

    return SessionState(
        presets=state.presets,
        convert_generation=state.convert_generation + 1,
        preview_generation=state.preview_generation + 1,
    )
