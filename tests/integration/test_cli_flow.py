import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from helpers import BASE, RecordingSleep, ScriptedTransport, paged_script, status, throttled
from robotevents.core.client import RobotEventsClient
from robotevents.domain.interfaces.user_interface import UserInterface
from robotevents.main import app

# runner: CliRunner is defined in tests/conftest.py

@pytest.fixture
def mock_console_display(mocker) -> MagicMock:
    """Patches ConsoleDisplay so the commands report into a mock."""
    display = MagicMock(spec=UserInterface)
    mocker.patch("robotevents.main.ConsoleDisplay", return_value=display)
    return display

@pytest.fixture(autouse=True)
def quiet_startup(mocker):
    """Keeps the home config file and root logger untouched."""
    mocker.patch("robotevents.main.load_configuration")
    mocker.patch("robotevents.main.setup_logging")

@pytest.fixture
def scripted_client(mocker):
    """Routes every client the CLI builds to a ScriptedTransport."""
    state = {}

    def install(script):
        transport = ScriptedTransport(script)
        state["transport"] = transport

        def build(settings, max_concurrency=None):
            state["max_concurrency"] = max_concurrency
            return RobotEventsClient(
                transport, base_url=BASE, per_page=settings.per_page,
                max_concurrency=max_concurrency, sleep=RecordingSleep(),
            )

        mocker.patch("robotevents.main.build_client", side_effect=build)
        return state

    return install

def test_collect_command_flow(runner: CliRunner, mock_console_display: MagicMock, scripted_client, tmp_path: Path):
    """Test the full flow for 'collect' with a throttled page and an output file."""
    script = paged_script([2, 2, 1], per_page=2, path="/events/51488/teams")
    script[2].insert(0, throttled("1"))
    state = scripted_client(script)
    output = tmp_path / "teams.json"

    result = runner.invoke(app, [
        "collect", "event-teams", "--event-id", "51488",
        "-q", "registered=true", "--max-concurrency", "2", "-o", str(output),
    ])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    transport = state["transport"]
    assert transport.calls[0] == "/events/51488/teams?registered=true&per_page=250&page=1"
    assert transport.calls_for(2) == 2
    assert state["max_concurrency"] == 2
    assert [item["id"] for item in json.loads(output.read_text(encoding="utf-8"))] == [
        1000, 1001, 2000, 2001, 3000,
    ]
    mock_console_display.display_info.assert_called_once_with(f"Wrote 5 item(s) to {output}")
    mock_console_display.display_error.assert_not_called()
    assert transport.closed

def test_collect_failure_exits_with_error(runner: CliRunner, mock_console_display: MagicMock, scripted_client):
    script = paged_script([1, 1], per_page=1)
    script[2] = [status(500)]
    scripted_client(script)

    result = runner.invoke(app, ["collect", "teams"])

    assert result.exit_code == 1
    mock_console_display.display_items.assert_not_called()
    assert "status 500" in mock_console_display.display_error.call_args.args[0]

def test_page_command_flow(runner: CliRunner, mock_console_display: MagicMock, scripted_client):
    state = scripted_client(paged_script([3, 3, 1], per_page=3, path="/teams/139/awards"))

    result = runner.invoke(app, ["page", "team-awards", "--team-id", "139", "--page", "3", "--per-page", "3"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert state["transport"].calls == ["/teams/139/awards?per_page=3&page=3"]
    meta = mock_console_display.display_page_meta.call_args.args[1]
    assert meta.current_page == 3
    assert len(mock_console_display.display_items.call_args.args[1]) == 1

def test_missing_id_exits_with_error(runner: CliRunner, mock_console_display: MagicMock, scripted_client):
    state = scripted_client({})

    result = runner.invoke(app, ["collect", "division-matches", "--event-id", "1"])

    assert result.exit_code == 1
    assert "division_id" in mock_console_display.display_error.call_args.args[0]
    assert state["transport"].calls == []

def test_missing_token_exits_with_error(runner: CliRunner, mock_console_display: MagicMock):
    """Test that the real client factory refuses to run without a token."""
    result = runner.invoke(app, ["collect", "teams"])

    assert result.exit_code == 1
    assert "token" in mock_console_display.display_error.call_args.args[0]

def test_resources_command(runner: CliRunner, mock_console_display: MagicMock):
    result = runner.invoke(app, ["resources"])

    assert result.exit_code == 0
    listed = mock_console_display.display_resources.call_args.args[0]
    assert "event-teams" in listed

def test_resources_command_renders_table(runner: CliRunner):
    result = runner.invoke(app, ["resources"])

    assert result.exit_code == 0
    assert "division-finalist-rankings" in result.stdout
    assert "--team-id" in result.stdout

@pytest.mark.parametrize("variable, value, key", [
    ("ROBOTEVENTS_PAGINATION_PER_PAGE", "abc", "pagination.per_page"),
    ("ROBOTEVENTS_RETRY_MAX_ATTEMPTS", "0", "retry.max_attempts"),
])
def test_bad_configuration_exits_with_error(
    runner: CliRunner, mock_console_display: MagicMock, monkeypatch, variable, value, key,
):
    """Test that a rejected setting is reported through the display instead of a traceback."""
    monkeypatch.setenv("ROBOTEVENTS_TOKEN", "secret")
    monkeypatch.setenv(variable, value)

    result = runner.invoke(app, ["collect", "teams"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    message = mock_console_display.display_error.call_args.args[0]
    assert "Invalid client configuration" in message
    assert key in message or value in message
