import asyncio
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import AppSettings
from core.domain.models import (
    ConvertResult,
    NodePreviewItem,
    ParseNodesResult,
    PresetConfig,
    SubscriptionInfo,
)
from core.errors import EngineError


class FakeEngine:
    """In-memory conversion engine recording every call.

    Set `gate` to an `asyncio.Event` to hold calls until the test releases it.
    """

    def __init__(self):
        self.convert_result = ConvertResult(
            yaml="proxies: []\n",
            node_count=3,
            filtered_count=3,
            group_count=2,
            rule_count=10,
            warnings=[],
        )
        self.parse_result = ParseNodesResult(
            nodes=[
                NodePreviewItem(name="HK 01", protocol="ss", server="hk.example.com", port=8388),
                NodePreviewItem(name="JP 01", protocol="trojan", server="jp.example.com", port=443),
            ],
            subscription_info=SubscriptionInfo(upload=1024, download=2048, total=10240, expire=0),
        )
        self.presets = [
            PresetConfig(name="ACL4SSR", url="https://example/acl.ini", description="ACL4SSR default"),
            PresetConfig(name="Mini", url="https://example/mini.ini", description="Few rules"),
        ]
        self.invalid_patterns = set()
        self.fail_with = None
        self.gate = None
        self.calls = []

    async def _maybe_wait(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def convert_subscription(self, request):
        self.calls.append(("convert_subscription", request))
        await self._maybe_wait()
        return self.convert_result

    async def parse_nodes(self, request):
        self.calls.append(("parse_nodes", request))
        await self._maybe_wait()
        return self.parse_result

    async def validate_regex(self, pattern):
        self.calls.append(("validate_regex", pattern))
        if pattern in self.invalid_patterns:
            raise EngineError("validate_regex", f"regex parse error: {pattern}", status_code=400)
        return True

    async def get_preset_configs(self):
        self.calls.append(("get_preset_configs", None))
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.presets)

    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def settings():
    return AppSettings(
        _env_file=None,
        engine_base_url="http://engine.test/api",
        language="en",
        discard_stale_responses=True,
    )


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def release():
    """Let queued coroutines reach their first suspension point."""

    async def _release(steps=3):
        for _ in range(steps):
            await asyncio.sleep(0)

    return _release
