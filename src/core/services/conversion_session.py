"""Conversion session orchestration.

`ConversionSession` owns a `SessionState`, checks preconditions, flips the
busy flags around the engine calls and reconciles outcomes into state. It is
UI-agnostic: the CLI, a TUI or tests drive it the same way.

Overlapping calls are allowed and nothing is cancelled. With
`discard_stale_responses` (the default) a settlement is applied only if no
`reset()` or newer request of the same kind happened meanwhile; without it
every settlement overwrites state unconditionally.
"""

from __future__ import annotations

import logging

from core.config import AppSettings
from core.domain import session as transitions
from core.domain.language import Language, message
from core.domain.models import ConvertResult, Options, ParseNodesResult, PresetConfig
from core.domain.session import RegexField, SessionState, SessionStatus
from core.errors import EmptySubscriptionError
from core.interfaces.engine import ConversionEngine
from core.services.regex_validator import RegexValidator
from core.services.request_builder import build_convert_request, build_parse_nodes_request


logger = logging.getLogger(__name__)


class ConversionSession:
    def __init__(
        self,
        engine: ConversionEngine,
        *,
        settings: AppSettings | None = None,
        state: SessionState | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._engine = engine
        self._validator = RegexValidator(engine)
        self._state = state or SessionState()

    # State access

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def options(self) -> Options:
        return self._state.options

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def language(self) -> Language:
        return self._settings.language

    @property
    def has_subscription(self) -> bool:
        return self._state.has_subscription

    @property
    def has_result(self) -> bool:
        return self._state.has_result

    @property
    def has_preview(self) -> bool:
        return self._state.has_preview

    @property
    def effective_ini_url(self) -> str:
        return self._state.effective_ini_url

    def update_options(self, **changes: object) -> Options:
        self._state = transitions.update_options(self._state, **changes)
        return self._state.options

    # Operations

    async def load_presets(self) -> list[PresetConfig]:
        """Fetch the preset list once; on failure the list stays empty."""

        try:
            presets = await self._engine.get_preset_configs()
        except Exception as exc:
            logger.warning("Loading presets failed: %s", exc)
            self._state = transitions.presets_failed(self._state, str(exc))
            return []
        self._state = transitions.presets_loaded(self._state, presets)
        logger.debug("Loaded %d presets", len(self._state.presets))
        return list(self._state.presets)

    async def convert(self) -> ConvertResult | None:
        """Run a full conversion; returns the result, or `None` on failure."""

        if not self._state.has_subscription:
            self._reject_empty_subscription()
            return None

        self._state = transitions.begin_convert(self._state)
        generation = self._state.convert_generation
        request = build_convert_request(
            self._state.options,
            self._state.presets,
            timeout_secs=self._settings.request_timeout_secs,
        )

        try:
            result = await self._engine.convert_subscription(request)
        except Exception as exc:
            logger.warning("Conversion failed: %s", exc)
            if self._accepts("convert", generation, self._state.convert_generation):
                self._state = transitions.convert_failed(self._state, str(exc))
            return None
        else:
            if not self._accepts("convert", generation, self._state.convert_generation):
                return None
            self._state = transitions.convert_succeeded(self._state, result)
            logger.info(
                "Converted %d/%d nodes into %d groups and %d rules",
                result.filtered_count,
                result.node_count,
                result.group_count,
                result.rule_count,
            )
            return result
        finally:
            # Also runs on cancellation, which bypasses the handlers above.
            if self._is_current(generation, self._state.convert_generation):
                self._state = transitions.end_convert(self._state)

    async def preview(self) -> ParseNodesResult | None:
        """Parse nodes without generating a config."""

        if not self._state.has_subscription:
            self._reject_empty_subscription()
            return None

        self._state = transitions.begin_preview(self._state)
        generation = self._state.preview_generation
        request = build_parse_nodes_request(
            self._state.options,
            timeout_secs=self._settings.request_timeout_secs,
        )

        try:
            parsed = await self._engine.parse_nodes(request)
        except Exception as exc:
            logger.warning("Preview failed: %s", exc)
            if self._accepts("preview", generation, self._state.preview_generation):
                self._state = transitions.preview_failed(self._state, str(exc))
            return None
        else:
            if not self._accepts("preview", generation, self._state.preview_generation):
                return None
            self._state = transitions.preview_succeeded(self._state, parsed)
            return parsed
        finally:
            if self._is_current(generation, self._state.preview_generation):
                self._state = transitions.end_preview(self._state)

    async def check_regex(self, regex_field: RegexField) -> bool:
        """Validate one pattern field and record its error flag."""

        pattern = getattr(self._state.options, regex_field.option_name)
        valid = await self._validator.validate(pattern)
        self._state = transitions.regex_checked(self._state, regex_field, valid)
        return valid

    def clear_result(self) -> None:
        self._state = transitions.clear_result(self._state)

    def reset(self) -> None:
        self._state = transitions.reset(self._state)

    # Helpers

    def _reject_empty_subscription(self) -> None:
        error = EmptySubscriptionError(message("subscription_required", self.language))
        self._state = transitions.reject_empty_subscription(self._state, str(error))

    def _is_current(self, generation: int, current: int) -> bool:
        return not self._settings.discard_stale_responses or generation == current

    def _accepts(self, kind: str, generation: int, current: int) -> bool:
        if self._is_current(generation, current):
            return True
        logger.debug("Discarding stale %s response (generation %d, current %d)", kind, generation, current)
        return False
