"""Main entry point for the robotevents command line client.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

from robotevents.core.client import RobotEventsClient
from robotevents.core.command_handler import CommandHandler
from robotevents.domain.exceptions import ConfigurationError
from robotevents.infrastructure.cli.display import ConsoleDisplay
from robotevents.infrastructure.config.settings import (
    ClientSettings, get_client_settings, get_config, load_configuration,
)
from robotevents.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Injection (Manual) ---

def build_client(settings: ClientSettings, max_concurrency: Optional[int] = None) -> RobotEventsClient:
    """Builds the client for one command, applying command-line overrides."""
    if max_concurrency is not None:
        settings = dataclasses.replace(settings, max_concurrency=max_concurrency)
    return RobotEventsClient.from_settings(settings)


def create_dependencies(verbose: bool = False, max_concurrency: Optional[int] = None) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command.

    This acts as the Composition Root.
    """
    load_configuration()
    log_level = "DEBUG" if verbose else get_config("logging.level", "WARNING")
    setup_logging(
        log_level=log_level,
        log_format=get_config("logging.format", DEFAULT_LOG_FORMAT),
        log_file=get_config("logging.file"),
    )

    dependencies: Dict[str, Any] = {}
    dependencies["ui"] = ConsoleDisplay()
    try:
        dependencies["settings"] = get_client_settings()
    except ConfigurationError as e:
        logger.error(f"Configuration rejected: {e}")
        dependencies["ui"].display_error(str(e))
        raise typer.Exit(code=1) from e
    dependencies["command_handler"] = CommandHandler(
        client_factory=lambda: build_client(dependencies["settings"], max_concurrency),
        ui=dependencies["ui"],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies

# --- Typer App Definition ---
app = typer.Typer(
    name="robotevents",
    help="Fetch paginated collections from the RobotEvents API, surviving rate limits.",
    add_completion=False,
)

_state: Dict[str, Any] = {"verbose": False}


def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs an async command and turns a failed outcome into exit status 1."""
    succeeded = asyncio.run(coro)
    if not succeeded:
        raise typer.Exit(code=1)

# --- CLI Options ---

TeamIdOption = Annotated[Optional[int], typer.Option("--team-id", help="Team id for team-* resources.")]
EventIdOption = Annotated[Optional[int], typer.Option("--event-id", help="Event id for event-*/division-* resources.")]
SeasonIdOption = Annotated[Optional[int], typer.Option("--season-id", help="Season id for season-* resources.")]
DivisionIdOption = Annotated[Optional[int], typer.Option("--division-id", help="Division id for division-* resources.")]
ParamOption = Annotated[
    Optional[List[str]],
    typer.Option("--param", "-q", help="Query parameter as key=value. Repeat for lists (e.g. -q season=181 -q season=182)."),
]
PerPageOption = Annotated[Optional[int], typer.Option("--per-page", min=1, help="Items per page.")]


def _ids(team_id: Optional[int], event_id: Optional[int], season_id: Optional[int], division_id: Optional[int]) -> Dict[str, int]:
    given = {"team_id": team_id, "event_id": event_id, "season_id": season_id, "division_id": division_id}
    return {name: value for name, value in given.items() if value is not None}

# --- CLI Commands ---

@app.command()
def collect(
    resource: Annotated[str, typer.Argument(help="Collection name, see the 'resources' command.")],
    team_id: TeamIdOption = None,
    event_id: EventIdOption = None,
    season_id: SeasonIdOption = None,
    division_id: DivisionIdOption = None,
    param: ParamOption = None,
    per_page: PerPageOption = None,
    max_concurrency: Annotated[
        Optional[int], typer.Option("--max-concurrency", min=1, help="Limit concurrent page requests.")
    ] = None,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", dir_okay=False, help="Write all items to this JSON file.")
    ] = None,
):
    """Collect every page of a resource into one ordered list."""
    dependencies = create_dependencies(verbose=_state["verbose"], max_concurrency=max_concurrency)
    handler: CommandHandler = dependencies["command_handler"]
    run_async(handler.handle_collect(
        resource, _ids(team_id, event_id, season_id, division_id), param or [], per_page, output,
    ))


@app.command()
def page(
    resource: Annotated[str, typer.Argument(help="Collection name, see the 'resources' command.")],
    team_id: TeamIdOption = None,
    event_id: EventIdOption = None,
    season_id: SeasonIdOption = None,
    division_id: DivisionIdOption = None,
    param: ParamOption = None,
    page_number: Annotated[int, typer.Option("--page", "-p", min=1, help="Page to fetch.")] = 1,
    per_page: PerPageOption = None,
):
    """Fetch a single page of a resource and show its metadata."""
    dependencies = create_dependencies(verbose=_state["verbose"])
    handler: CommandHandler = dependencies["command_handler"]
    run_async(handler.handle_page(
        resource, _ids(team_id, event_id, season_id, division_id), param or [], page_number, per_page,
    ))


@app.command()
def resources():
    """List the collections this client can fetch."""
    dependencies = create_dependencies(verbose=_state["verbose"])
    dependencies["command_handler"].handle_list_resources()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every request and retry.")] = False,
):
    """RobotEvents API client."""
    _state["verbose"] = verbose

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
