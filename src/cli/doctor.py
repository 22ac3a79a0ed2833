"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.engine_client import HttpEngineClient
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_engine(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with HttpEngineClient(settings) as engine:
            presets = await engine.get_preset_configs()
        return True, f"{len(presets)} presets available"
    except Exception as exc:
        return False, str(exc)


async def _check_regex_endpoint(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with HttpEngineClient(settings) as engine:
            await engine.validate_regex("^HK")
        return True, "OK"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics against the configured engine."""

    settings = AppSettings()

    table = Table(title="LocalSub Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Engine URL", "OK", settings.engine_base_url)
    table.add_row("Language", "OK", settings.language.label())
    table.add_row(
        "Stale responses",
        "OK",
        "discarded" if settings.discard_stale_responses else "applied (last settlement wins)",
    )

    ok_engine, detail_engine = asyncio.run(_check_engine(settings))
    table.add_row("Engine presets", "OK" if ok_engine else "FAIL", detail_engine)

    ok_regex, detail_regex = asyncio.run(_check_regex_endpoint(settings))
    table.add_row("Regex validation", "OK" if ok_regex else "FAIL", detail_regex)

    _console.print(table)

    if not ok_engine:
        _console.print(
            "\n[yellow]Note:[/yellow] Without presets you can still pass a remote config with `--ini-url`."
        )


@app.command(name="setup-engine")
def setup_engine() -> None:
    """Interactive engine setup (stored in the user config .env)."""

    current = AppSettings()
    base_url = typer.prompt("Engine base URL", default=current.engine_base_url, show_default=True).strip()
    language = typer.prompt("Language (en/zh)", default=current.language.value, show_default=True).strip().lower()

    if not base_url:
        raise typer.BadParameter("base URL is required")
    if language not in ("en", "zh"):
        raise typer.BadParameter("language must be 'en' or 'zh'")

    env_path = write_user_env_vars(
        {
            "LOCALSUB_ENGINE_BASE_URL": base_url,
            "LOCALSUB_LANGUAGE": language,
        }
    )

    _console.print(f"[green]Saved engine config to:[/green] {env_path}")
