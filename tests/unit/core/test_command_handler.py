import json
from unittest.mock import MagicMock

import pytest

from helpers import BASE, ScriptedTransport, paged_script, status
from robotevents.core.client import RobotEventsClient
from robotevents.core.command_handler import CommandHandler
from robotevents.domain.interfaces.user_interface import UserInterface
from robotevents.domain.models.pagination import PageMeta

@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)

def make_handler(transport, sleeper, ui):
    """Builds a CommandHandler whose clients all talk to the given transport."""
    return CommandHandler(
        client_factory=lambda: RobotEventsClient(transport, base_url=BASE, sleep=sleeper),
        ui=ui,
    )

async def test_handle_collect_displays_all_items(sleeper, mock_ui: MagicMock):
    transport = ScriptedTransport(paged_script([2, 1], per_page=2, path="/events/7/teams"))
    handler = make_handler(transport, sleeper, mock_ui)

    assert await handler.handle_collect("event-teams", {"event_id": 7}, ["registered=true"])

    assert transport.calls[0] == "/events/7/teams?registered=true&page=1"
    mock_ui.display_items.assert_called_once()
    resource, items = mock_ui.display_items.call_args.args
    assert resource == "/events/7/teams"
    assert [item["id"] for item in items] == [1000, 1001, 2000]
    mock_ui.display_error.assert_not_called()
    assert transport.closed

async def test_handle_collect_writes_output_file(sleeper, mock_ui: MagicMock, tmp_path):
    transport = ScriptedTransport(paged_script([2, 2], per_page=2))
    handler = make_handler(transport, sleeper, mock_ui)
    output = tmp_path / "teams.json"

    assert await handler.handle_collect("teams", {}, output=output)

    written = json.loads(output.read_text(encoding="utf-8"))
    assert [item["id"] for item in written] == [1000, 1001, 2000, 2001]
    mock_ui.display_info.assert_called_once_with(f"Wrote 4 item(s) to {output}")

async def test_handle_collect_reports_unwritable_output(sleeper, mock_ui: MagicMock, tmp_path):
    transport = ScriptedTransport(paged_script([1]))
    handler = make_handler(transport, sleeper, mock_ui)

    assert not await handler.handle_collect("teams", {}, output=tmp_path / "missing" / "teams.json")

    mock_ui.display_error.assert_called_once()
    assert "Could not write output file" in mock_ui.display_error.call_args.args[0]

async def test_handle_collect_applies_per_page(sleeper, mock_ui: MagicMock):
    transport = ScriptedTransport(paged_script([1]))
    handler = make_handler(transport, sleeper, mock_ui)

    await handler.handle_collect("teams", {}, per_page=10)

    assert transport.calls == ["/teams?per_page=10&page=1"]

async def test_handle_collect_reports_api_failure(sleeper, mock_ui: MagicMock):
    """Test that a failed collection shows the error and displays no items."""
    script = paged_script([1, 1], per_page=1)
    script[2] = [status(500)]
    transport = ScriptedTransport(script)
    handler = make_handler(transport, sleeper, mock_ui)

    assert not await handler.handle_collect("teams", {})

    mock_ui.display_items.assert_not_called()
    message = mock_ui.display_error.call_args.args[0]
    assert message.startswith("Collection of /teams failed:")
    assert "status 500" in message
    assert transport.closed

@pytest.mark.parametrize("resource, ids, params, fragment", [
    ("robots", {}, [], "Unknown resource 'robots'"),
    ("team-events", {}, [], "requires: team_id"),
    ("teams", {}, ["season"], "expected key=value"),
])
async def test_handle_collect_rejects_bad_input(sleeper, mock_ui: MagicMock, resource, ids, params, fragment):
    transport = ScriptedTransport({})
    handler = make_handler(transport, sleeper, mock_ui)

    assert not await handler.handle_collect(resource, ids, params)

    assert fragment in mock_ui.display_error.call_args.args[0]
    assert transport.calls == []

async def test_handle_page_shows_meta_and_items(sleeper, mock_ui: MagicMock):
    transport = ScriptedTransport(paged_script([3, 3, 1], per_page=3, path="/teams/5/matches"))
    handler = make_handler(transport, sleeper, mock_ui)

    assert await handler.handle_page("team-matches", {"team_id": 5}, page=2)

    assert transport.calls == ["/teams/5/matches?page=2"]
    resource, meta = mock_ui.display_page_meta.call_args.args
    assert resource == "/teams/5/matches"
    assert isinstance(meta, PageMeta)
    assert meta.current_page == 2
    assert [item["id"] for item in mock_ui.display_items.call_args.args[1]] == [2000, 2001, 2002]

async def test_handle_page_reports_failure(sleeper, mock_ui: MagicMock):
    transport = ScriptedTransport({4: [status(404)]})
    handler = make_handler(transport, sleeper, mock_ui)

    assert not await handler.handle_page("teams", {}, page=4)

    assert mock_ui.display_error.call_args.args[0].startswith("Fetching page 4 of /teams failed:")
    mock_ui.display_page_meta.assert_not_called()

def test_handle_list_resources(sleeper, mock_ui: MagicMock):
    handler = make_handler(ScriptedTransport({}), sleeper, mock_ui)

    handler.handle_list_resources()

    listed = mock_ui.display_resources.call_args.args[0]
    assert listed["teams"] == []
    assert listed["division-rankings"] == ["event_id", "division_id"]
