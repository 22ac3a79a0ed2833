"""HTTP adapter for the conversion engine.

Each operation is a JSON POST to `<engine_base_url>/<operation>`. Request
bodies use the engine's own field names; responses are validated into the
domain models before they reach the core.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from adapters.http_client import build_async_client, extract_error_message
from core.config import AppSettings
from core.domain.models import (
    ConvertRequest,
    ConvertResult,
    ParseNodesRequest,
    ParseNodesResult,
    PresetConfig,
)
from core.errors import EngineError, InvalidRegexError
from core.interfaces.engine import ConversionEngine


logger = logging.getLogger(__name__)

_PRESETS_ADAPTER = TypeAdapter(list[PresetConfig])


class HttpEngineClient(ConversionEngine):
    """`ConversionEngine` over HTTP.

    Usable as an async context manager; otherwise call `aclose()`.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client or build_async_client(self._settings)

    async def __aenter__(self) -> "HttpEngineClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def convert_subscription(self, request: ConvertRequest) -> ConvertResult:
        data = await self._call("convert_subscription", {"request": request.to_payload()})
        return self._parse("convert_subscription", ConvertResult.model_validate, data)

    async def parse_nodes(self, request: ParseNodesRequest) -> ParseNodesResult:
        data = await self._call("parse_nodes", request.to_payload())
        return self._parse("parse_nodes", ParseNodesResult.model_validate, data)

    async def validate_regex(self, pattern: str) -> bool:
        try:
            data = await self._call("validate_regex", {"pattern": pattern})
        except EngineError as exc:
            if exc.status_code is None:
                raise
            raise InvalidRegexError(pattern, str(exc)) from exc
        return data is not False

    async def get_preset_configs(self) -> list[PresetConfig]:
        data = await self._call("get_preset_configs", {})
        return self._parse("get_preset_configs", _PRESETS_ADAPTER.validate_python, data)

    async def _call(self, operation: str, body: dict[str, Any]) -> Any:
        logger.debug("POST %s", operation)
        try:
            response = await self._client.post(operation, json=body)
        except httpx.HTTPError as exc:
            raise EngineError(operation, f"{operation}: {exc}") from exc

        if response.is_error:
            raise EngineError(
                operation,
                extract_error_message(response),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise EngineError(
                operation,
                f"{operation}: engine returned invalid JSON",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(operation: str, validate: Any, data: Any) -> Any:
        try:
            return validate(data)
        except ValidationError as exc:
            raise EngineError(operation, f"{operation}: unexpected response shape ({exc.error_count()} errors)") from exc
