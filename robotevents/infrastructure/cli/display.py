import logging
from typing import Any, List, Mapping, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from robotevents.domain.interfaces.user_interface import UserInterface
from robotevents.domain.models.pagination import PageMeta

logger = logging.getLogger(__name__)

# Columns tried, in order, when previewing items
PREVIEW_FIELDS = ("id", "number", "name", "team_name", "sku", "organization", "program", "season")
MAX_CELL_WIDTH = 40


def _cell(value: Any) -> str:
    if isinstance(value, Mapping):
        # nested references such as {"id": 1, "name": "VRC"}
        value = value.get("name") or value.get("code") or value.get("id")
    text = "" if value is None else str(value)
    return text if len(text) <= MAX_CELL_WIDTH else text[: MAX_CELL_WIDTH - 1] + "…"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_page_meta(self, resource: str, meta: PageMeta) -> None:
        """Renders a page's metadata as a two-column table."""
        table = Table(title=f"[bold cyan]{resource}[/bold cyan]", show_header=False, box=ROUNDED, border_style="cyan")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Page", f"{meta.current_page} of {meta.last_page}")
        table.add_row("Per page", str(meta.per_page))
        table.add_row("Total items", str(meta.total))
        if meta.from_item is not None and meta.to_item is not None:
            table.add_row("Items", f"{meta.from_item}-{meta.to_item}")
        if meta.next_page_url:
            table.add_row("Next", meta.next_page_url)
        if meta.prev_page_url:
            table.add_row("Previous", meta.prev_page_url)
        if not meta.is_consistent():
            table.add_row("[yellow]Note[/yellow]", f"expected {meta.expected_last_page()} page(s) from total/per_page")
        self.console.print(table)

    def display_items(self, resource: str, items: Sequence[Mapping[str, Any]], limit: int = 20) -> None:
        """Renders the first ``limit`` items with whichever preview fields they carry."""
        if not items:
            self.display_info(f"No items in {resource}.")
            return

        sample = items[:limit]
        columns: List[str] = [
            name for name in PREVIEW_FIELDS
            if any(isinstance(item, Mapping) and name in item for item in sample)
        ]
        table = Table(
            title=f"[bold cyan]{resource}[/bold cyan] ({len(items)} item(s))",
            box=ROUNDED,
            border_style="cyan",
        )
        table.add_column("#", justify="right", style="dim")
        for name in columns or ["value"]:
            table.add_column(name)

        for index, item in enumerate(sample, start=1):
            if columns and isinstance(item, Mapping):
                row = [_cell(item.get(name)) for name in columns]
            else:
                row = [_cell(item)]
            table.add_row(str(index), *row)

        self.console.print(table)
        if len(items) > limit:
            self.console.print(f"[dim]... {len(items) - limit} more item(s) not shown[/dim]")

    def display_resources(self, resources: Mapping[str, List[str]]) -> None:
        table = Table(title="[bold cyan]Collections[/bold cyan]", box=SIMPLE)
        table.add_column("Resource", style="bold")
        table.add_column("Required ids")
        for name, ids in sorted(resources.items()):
            table.add_row(name, ", ".join(f"--{field.replace('_', '-')}" for field in ids) or "-")
        self.console.print(table)
