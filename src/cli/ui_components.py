"""Rich components for the CLI.

Kept apart from the commands so tables and panels can be reused and tested
without running the engine.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.language import Language
from core.domain.models import ConvertResult, NodePreviewItem, PresetConfig, SubscriptionInfo
from core.formatting import format_bytes, format_expire, has_quota_info, usage_percentage


def print_banner(console: Console) -> None:
    """Print the welcome banner (skipped in non-interactive output modes)."""

    title = Text("LocalSub", style="bold cyan")
    subtitle = Text("Subscription conversion • Node preview • Quota", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_result_table(result: ConvertResult) -> Table:
    table = Table(title="Conversion")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="white", justify="right")
    table.add_row("Parsed nodes", str(result.node_count))
    table.add_row("After filters", str(result.filtered_count))
    table.add_row("Policy groups", str(result.group_count))
    table.add_row("Rules", str(result.rule_count))
    return table


def build_warnings_panel(warnings: Sequence[str]) -> Panel | None:
    if not warnings:
        return None
    body = Text()
    for warning in warnings:
        body.append(f"- {warning}\n")
    return Panel(body, title=Text("Warnings", style="bold yellow"), border_style="yellow")


def build_preview_table(nodes: Iterable[NodePreviewItem]) -> Table:
    """Node list in engine order; duplicates are shown as-is."""

    table = Table(title="Nodes")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Protocol", style="magenta", no_wrap=True)
    table.add_column("Server", style="cyan")
    table.add_column("Port", justify="right")
    for index, node in enumerate(nodes, start=1):
        table.add_row(str(index), node.name, node.protocol, node.server, str(node.port))
    return table


def build_presets_table(presets: Iterable[PresetConfig]) -> Table:
    table = Table(title="Presets")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("URL", style="dim")
    for preset in presets:
        table.add_row(preset.name, preset.description, preset.url)
    return table


def build_quota_panel(
    info: SubscriptionInfo | None,
    *,
    language: Language = Language.ENGLISH,
    now: float | None = None,
) -> Panel | None:
    """Quota panel, or `None` when the provider sent no quota metadata.

    The usage line only appears when a positive total is known.
    """

    if info is None or not has_quota_info(info):
        return None

    body = Text()
    body.append(f"Upload:   {format_bytes(info.upload)}\n")
    body.append(f"Download: {format_bytes(info.download)}\n")
    body.append(f"Total:    {format_bytes(info.total)}\n")
    percent = usage_percentage(info)
    if percent is not None:
        style = "red" if percent >= 90 else "yellow" if percent >= 70 else "green"
        body.append("Used:     ")
        body.append(f"{percent}%\n", style=style)
    body.append(f"Expires:  {format_expire(info.expire, now=now, language=language)}")
    return Panel(body, title=Text("Subscription", style="bold green"), border_style="green")
