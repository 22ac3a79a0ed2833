"""
CLI Tests
=========
Rich components, exporters and the typer commands over a fake engine.
"""

import json
from functools import partial

import pytest
from rich.console import Console
from typer.testing import CliRunner

import cli.main as cli_main
from cli import doctor
from adapters.result_exporter import export_result_summary, export_result_yaml
from cli.ui_components import build_preview_table, build_quota_panel, build_result_table, build_warnings_panel
from core.config import write_user_env_vars
from core.domain.models import ConvertResult, SubscriptionInfo
from core.errors import EngineError

runner = CliRunner()


def _render(renderable):
    console = Console(width=120, record=True)
    console.print(renderable)
    return console.export_text()


@pytest.fixture
def patched_engine(monkeypatch, fake_engine):
    class _EngineContext:
        def __init__(self, settings=None):
            pass

        async def __aenter__(self):
            return fake_engine

        async def __aexit__(self, *exc_info):
            return None

    monkeypatch.setattr(cli_main, "HttpEngineClient", _EngineContext)
    monkeypatch.setattr(doctor, "HttpEngineClient", _EngineContext)
    monkeypatch.setenv("LOCALSUB_LANGUAGE", "en")
    return fake_engine


class TestComponents:
    def test_result_table(self, fake_engine):
        text = _render(build_result_table(fake_engine.convert_result))
        assert "Parsed nodes" in text
        assert "10" in text

    def test_no_warnings_no_panel(self):
        assert build_warnings_panel([]) is None
        assert "bad node" in _render(build_warnings_panel(["bad node"]))

    def test_quota_panel_suppressed_without_metadata(self):
        assert build_quota_panel(None) is None
        assert build_quota_panel(SubscriptionInfo(upload=1, download=2)) is None

    def test_quota_panel_without_total_has_no_usage(self):
        text = _render(build_quota_panel(SubscriptionInfo(expire=0)))
        assert "never expires" in text
        assert "Used" not in text

    def test_quota_panel_with_usage(self):
        text = _render(build_quota_panel(SubscriptionInfo(upload=512, download=512, total=2048, expire=0)))
        assert "50%" in text
        assert "2.00 KB" in text

    def test_preview_table_keeps_order(self, fake_engine):
        text = _render(build_preview_table(fake_engine.parse_result.nodes))
        assert text.index("HK 01") < text.index("JP 01")


class TestExporters:
    def test_yaml_written_verbatim(self, tmp_path, fake_engine):
        path = export_result_yaml(result=fake_engine.convert_result, output_path=tmp_path / "out" / "config.yaml")
        assert path.read_text(encoding="utf-8") == "proxies: []\n"

    def test_summary_excludes_config(self, tmp_path):
        result = ConvertResult(
            yaml="big",
            node_count=1,
            filtered_count=1,
            group_count=1,
            rule_count=1,
            warnings=["w"],
            subscription_info=SubscriptionInfo(total=5),
        )
        path = export_result_summary(result=result, output_path=tmp_path / "summary.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert "yaml" not in data
        assert data["warnings"] == ["w"]
        assert data["subscription_info"]["total"] == 5


class TestCommands:
    def test_convert_to_file(self, tmp_path, patched_engine):
        out = tmp_path / "config.yaml"
        result = runner.invoke(cli_main.app, ["convert", "ss://abc", "--include", "HK", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8") == "proxies: []\n"
        name, request = patched_engine.calls[-1]
        assert name == "convert_subscription"
        assert request.include_regex == "HK"

    def test_convert_with_preset(self, tmp_path, patched_engine):
        out = tmp_path / "config.yaml"
        result = runner.invoke(
            cli_main.app,
            ["convert", "ss://abc", "--preset", "ACL4SSR", "--ini-url", "https://other/x.ini", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert patched_engine.calls[-1][1].ini_url == "https://example/acl.ini"

    def test_convert_blank_subscription_fails(self, patched_engine):
        result = runner.invoke(cli_main.app, ["convert", "   "])
        assert result.exit_code == 1
        assert patched_engine.calls == []

    def test_preview(self, patched_engine):
        result = runner.invoke(cli_main.app, ["preview", "ss://abc"])
        assert result.exit_code == 0, result.output
        assert "HK 01" in result.stdout
        assert patched_engine.call_names() == ["parse_nodes"]

    def test_presets(self, patched_engine):
        result = runner.invoke(cli_main.app, ["presets"])
        assert result.exit_code == 0, result.output
        assert "ACL4SSR" in result.stdout

    def test_check_regex_invalid(self, patched_engine):
        patched_engine.invalid_patterns.add("(")
        result = runner.invoke(cli_main.app, ["check-regex", "("])
        assert result.exit_code == 1

    def test_convert_forwards_rule_provider_and_reality_flags(self, tmp_path, patched_engine):
        out = tmp_path / "config.yaml"
        result = runner.invoke(
            cli_main.app,
            [
                "convert",
                "vless://abc",
                "--reality-short-id",
                "0a1b",
                "--rule-provider-header",
                "Authorization: Bearer t",
                "--rule-provider-size-limit",
                "1048576",
                "--rule-provider-path-omit",
                "--rule-provider-path-template",
                "./rules/{name}.yaml",
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        payload = patched_engine.calls[-1][1].to_payload()
        assert payload["vless_reality_short_id_override"] == "0a1b"
        assert payload["rule_provider_header"] == "Authorization: Bearer t"
        assert payload["rule_provider_size_limit"] == 1048576
        assert payload["rule_provider_path_omit"] is True
        assert payload["rule_provider_path_template"] == "./rules/{name}.yaml"

    def test_convert_without_rule_provider_flags_omits_them(self, patched_engine):
        result = runner.invoke(cli_main.app, ["convert", "ss://abc"])
        assert result.exit_code == 0, result.output
        payload = patched_engine.calls[-1][1].to_payload()
        assert "rule_provider_size_limit" not in payload
        assert "vless_reality_short_id_override" not in payload
        assert payload["rule_provider_path_omit"] is False

    def test_convert_reads_subscription_file(self, tmp_path, patched_engine):
        source = tmp_path / "sub.txt"
        source.write_text("ss://from-file\n", encoding="utf-8")
        result = runner.invoke(cli_main.app, ["convert", f"@{source}"])
        assert result.exit_code == 0, result.output
        assert patched_engine.calls[-1][1].subscription == "ss://from-file\n"

    def test_convert_missing_subscription_file_is_a_usage_error(self, tmp_path, patched_engine):
        result = runner.invoke(cli_main.app, ["convert", f"@{tmp_path / 'missing.txt'}"])
        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)
        assert patched_engine.calls == []

    def test_convert_reports_preset_load_failure(self, tmp_path, monkeypatch, patched_engine):
        async def _offline():
            raise EngineError("get_preset_configs", "engine offline")

        monkeypatch.setattr(patched_engine, "get_preset_configs", _offline)
        out = tmp_path / "config.yaml"
        result = runner.invoke(cli_main.app, ["convert", "ss://abc", "--preset", "ACL4SSR", "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "engine offline" in result.output
        assert "unknown preset" not in result.output
        assert "ini_url" not in patched_engine.calls[-1][1].to_payload()


class TestDoctor:
    def test_run_reports_engine_checks(self, monkeypatch, patched_engine):
        monkeypatch.setenv("LOCALSUB_ENGINE_BASE_URL", "http://engine.test/api")
        result = runner.invoke(cli_main.app, ["doctor", "run"])

        assert result.exit_code == 0, result.output
        assert "2 presets available" in result.output
        assert "http://engine.test/api" in result.output
        assert patched_engine.call_names() == ["get_preset_configs", "validate_regex"]

    def test_run_with_unreachable_engine_still_exits_cleanly(self, monkeypatch, patched_engine):
        patched_engine.fail_with = EngineError("get_preset_configs", "connection refused")
        result = runner.invoke(cli_main.app, ["doctor", "run"])

        assert result.exit_code == 0, result.output
        assert "FAIL" in result.output
        assert "--ini-url" in result.output

    def test_setup_engine_writes_user_env(self, tmp_path, monkeypatch):
        env_path = tmp_path / "localsub" / ".env"
        monkeypatch.setattr(doctor, "write_user_env_vars", partial(write_user_env_vars, env_path=env_path))
        result = runner.invoke(cli_main.app, ["doctor", "setup-engine"], input="http://10.0.0.2:7878/api\nzh\n")

        assert result.exit_code == 0, result.output
        lines = env_path.read_text(encoding="utf-8").splitlines()
        assert "LOCALSUB_ENGINE_BASE_URL=http://10.0.0.2:7878/api" in lines
        assert "LOCALSUB_LANGUAGE=zh" in lines

    def test_setup_engine_rejects_unknown_language(self, tmp_path, monkeypatch):
        env_path = tmp_path / ".env"
        monkeypatch.setattr(doctor, "write_user_env_vars", partial(write_user_env_vars, env_path=env_path))
        result = runner.invoke(cli_main.app, ["doctor", "setup-engine"], input="http://engine/api\nfr\n")

        assert result.exit_code == 2
        assert not env_path.exists()
