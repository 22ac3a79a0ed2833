"""Command line interface (typer + rich).

Each command builds a `ConversionSession` over the HTTP engine client and
renders the resulting state; no conversion logic lives here.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.engine_client import HttpEngineClient
from adapters.result_exporter import export_result_summary, export_result_yaml
from cli import doctor
from cli.ui_components import (
    build_preview_table,
    build_presets_table,
    build_quota_panel,
    build_result_table,
    build_warnings_panel,
    print_banner,
)
from core.config import AppSettings
from core.domain.session import RegexField
from core.services.conversion_session import ConversionSession
from core.services.regex_validator import RegexValidator

app = typer.Typer(no_args_is_help=True, help="Convert proxy subscriptions through a LocalSub engine.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine calls at debug level."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)


def _read_subscription(value: str) -> str:
    """`-` reads stdin, `@path` reads a file, anything else is used verbatim."""

    if value == "-":
        return sys.stdin.read()
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise typer.BadParameter(f"cannot read {path}: {exc.strerror or exc}") from exc
    return value


async def _report_invalid_patterns(session: ConversionSession) -> None:
    fields = [RegexField.INCLUDE, RegexField.EXCLUDE, RegexField.RENAME]
    results = await asyncio.gather(*(session.check_regex(field) for field in fields))
    for field, valid in zip(fields, results):
        if not valid:
            _err_console.print(f"[yellow]Warning:[/yellow] {field.value} pattern was rejected by the engine")


def _fail(session: ConversionSession) -> None:
    _err_console.print(f"[red]Error:[/red] {session.state.error}")
    raise typer.Exit(code=1)


async def _convert(
    settings: AppSettings,
    changes: dict[str, object],
    output: Path | None,
    summary: Path | None,
) -> None:
    async with HttpEngineClient(settings) as engine:
        session = ConversionSession(engine, settings=settings)
        session.update_options(**changes)
        if session.options.selected_preset:
            await session.load_presets()
            if session.state.error:
                _err_console.print(
                    f"[yellow]Warning:[/yellow] could not load presets ({session.state.error}), using engine defaults"
                )
            elif not session.effective_ini_url:
                _err_console.print(
                    f"[yellow]Warning:[/yellow] unknown preset {session.options.selected_preset!r}, using engine defaults"
                )
        await _report_invalid_patterns(session)

        with _console.status("Converting...", spinner="dots"):
            result = await session.convert()

    if result is None:
        _fail(session)
        return

    if output is None:
        sys.stdout.write(result.yaml)
        if not result.yaml.endswith("\n"):
            sys.stdout.write("\n")
        console = _err_console
    else:
        export_result_yaml(result=result, output_path=output)
        console = _console
        console.print(f"[green]Saved config to:[/green] {output}")

    if summary is not None:
        export_result_summary(result=result, output_path=summary)

    console.print(build_result_table(result))
    warnings_panel = build_warnings_panel(result.warnings)
    if warnings_panel is not None:
        console.print(warnings_panel)
    quota = build_quota_panel(result.subscription_info, language=session.language)
    if quota is not None:
        console.print(quota)


@app.command()
def convert(
    subscription: str = typer.Argument(..., help="Subscription URL(s)/links; '-' for stdin, '@file' to read a file."),
    preset: Optional[str] = typer.Option(None, "--preset", "-p", help="Preset name (wins over --ini-url)."),
    ini_url: str = typer.Option("", "--ini-url", help="Remote config URL."),
    include: str = typer.Option("", "--include", help="Keep nodes whose name matches this regex."),
    exclude: str = typer.Option("", "--exclude", help="Drop nodes whose name matches this regex."),
    rename_pattern: str = typer.Option("", "--rename-pattern", help="Regex applied to node names."),
    rename_replacement: str = typer.Option("", "--rename-replacement", help="Replacement for --rename-pattern."),
    tun: bool = typer.Option(False, "--tun", help="Emit a TUN section."),
    udp: bool = typer.Option(True, "--udp/--no-udp", help="Enable UDP on every node."),
    tfo: bool = typer.Option(False, "--tfo", help="Enable TCP fast open on every node."),
    skip_cert_verify: bool = typer.Option(False, "--skip-cert-verify", help="Skip TLS certificate checks."),
    user_agent: str = typer.Option("", "--user-agent", help="User-Agent for subscription downloads."),
    reality_short_id: str = typer.Option("", "--reality-short-id", help="Override the short id of VLESS Reality nodes."),
    api_lan: bool = typer.Option(False, "--api-lan", help="Expose the controller API on the LAN."),
    rule_provider_proxy: str = typer.Option("", "--rule-provider-proxy", help="Proxy used to fetch rule providers."),
    rule_provider_header: str = typer.Option("", "--rule-provider-header", help="Header sent when fetching rule providers."),
    rule_provider_size_limit: Optional[int] = typer.Option(
        None, "--rule-provider-size-limit", min=0, help="Size limit in bytes for rule providers."
    ),
    rule_provider_path_omit: bool = typer.Option(
        False, "--rule-provider-path-omit", help="Leave out the local path of rule providers."
    ),
    rule_provider_path_template: str = typer.Option(
        "", "--rule-provider-path-template", help="Template for rule provider local paths."
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the config here instead of stdout."),
    summary: Optional[Path] = typer.Option(None, "--summary", help="Also write a JSON summary."),
) -> None:
    """Convert a subscription into a full config."""

    settings = AppSettings()
    if output is not None:
        print_banner(_console)
    changes: dict[str, object] = {
        "subscription": _read_subscription(subscription),
        "selected_preset": preset,
        "custom_ini_url": ini_url,
        "include_regex": include,
        "exclude_regex": exclude,
        "rename_pattern": rename_pattern,
        "rename_replacement": rename_replacement,
        "enable_tun": tun,
        "enable_udp": udp,
        "enable_tfo": tfo,
        "skip_cert_verify": skip_cert_verify,
        "custom_user_agent": user_agent,
        "vless_reality_short_id_override": reality_short_id,
        "api_listen_lan": api_lan,
        "rule_provider_proxy": rule_provider_proxy,
        "rule_provider_header": rule_provider_header,
        "rule_provider_size_limit": rule_provider_size_limit,
        "rule_provider_path_omit": rule_provider_path_omit,
        "rule_provider_path_template": rule_provider_path_template,
    }
    asyncio.run(_convert(settings, changes, output, summary))


async def _preview(settings: AppSettings, changes: dict[str, object]) -> None:
    async with HttpEngineClient(settings) as engine:
        session = ConversionSession(engine, settings=settings)
        session.update_options(**changes)
        await _report_invalid_patterns(session)
        with _console.status("Parsing nodes...", spinner="dots"):
            parsed = await session.preview()

    if parsed is None:
        _fail(session)
        return

    _console.print(build_preview_table(session.state.preview_nodes))
    _console.print(f"[dim]{len(session.state.preview_nodes)} node(s)[/dim]")
    quota = build_quota_panel(session.state.preview_info, language=session.language)
    if quota is not None:
        _console.print(quota)


@app.command()
def preview(
    subscription: str = typer.Argument(..., help="Subscription URL(s)/links; '-' for stdin, '@file' to read a file."),
    include: str = typer.Option("", "--include", help="Keep nodes whose name matches this regex."),
    exclude: str = typer.Option("", "--exclude", help="Drop nodes whose name matches this regex."),
    user_agent: str = typer.Option("", "--user-agent", help="User-Agent for subscription downloads."),
) -> None:
    """List the nodes a subscription yields, without generating a config."""

    settings = AppSettings()
    changes: dict[str, object] = {
        "subscription": _read_subscription(subscription),
        "include_regex": include,
        "exclude_regex": exclude,
        "custom_user_agent": user_agent,
    }
    asyncio.run(_preview(settings, changes))


async def _presets(settings: AppSettings) -> None:
    async with HttpEngineClient(settings) as engine:
        session = ConversionSession(engine, settings=settings)
        presets = await session.load_presets()
    if session.state.error:
        _fail(session)
    _console.print(build_presets_table(presets))


@app.command()
def presets() -> None:
    """Show the preset remote configs registered on the engine."""

    asyncio.run(_presets(AppSettings()))


async def _check_regex(settings: AppSettings, pattern: str) -> bool:
    async with HttpEngineClient(settings) as engine:
        return await RegexValidator(engine).validate(pattern)


@app.command(name="check-regex")
def check_regex(pattern: str = typer.Argument(..., help="Pattern to compile on the engine.")) -> None:
    """Check whether the engine accepts a pattern."""

    if asyncio.run(_check_regex(AppSettings(), pattern)):
        _console.print("[green]valid[/green]")
        return
    _console.print("[red]invalid (or engine unreachable)[/red]")
    raise typer.Exit(code=1)


def run() -> None:
    app()
