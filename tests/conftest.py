from typing import List

import pytest
from typer.testing import CliRunner

from helpers import RecordingSleep
from robotevents.domain.events.api_events import DomainEvent
from robotevents.infrastructure.config import settings as settings_module


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def events() -> List[DomainEvent]:
    return []


@pytest.fixture
def event_sink(events):
    return events.append


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps the real environment and home config out of every test."""
    for name in list(settings_module.os.environ):
        if name.startswith(settings_module.ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    settings_module.reset_configuration()
    settings_module.clear_test_config()
    yield
    settings_module.reset_configuration()
    settings_module.clear_test_config()
