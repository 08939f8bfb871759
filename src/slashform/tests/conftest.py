"""
Shared pytest configuration for slashform tests.

The fixtures build a small Jira-like command tree:

    /jira issue create <project> [--summary] [--priority] [--assignee]
                       [--channel] [--urgent] [--epic]
    /jira issue view                 (form fetched from the app)
    /jira help                       (call only)
"""

from typing import Any, Dict, List, Tuple

import pytest

from slashform.apps.interfaces import AppsClient
from slashform.apps.state import CommandContext, EntityStore
from slashform.apps.types import (
    AppBinding,
    AppCall,
    AppCallRequest,
    AppCallResponse,
    AppCallType,
    AppField,
    AppFieldType,
    AppForm,
    AppSelectOption,
    Channel,
    Team,
    User,
)
from slashform.parser import AppCommandParser


class FakeAppsClient(AppsClient):
    """Answers calls from a table keyed by (path, call type) and records them."""

    def __init__(self):
        self.responses: Dict[Tuple[str, AppCallType], List[Any]] = {}
        self.calls: List[Tuple[AppCallRequest, AppCallType]] = []

    def add_response(self, path: str, call_type: AppCallType, response: Any):
        self.responses.setdefault((path, call_type), []).append(response)

    def calls_of(self, call_type: AppCallType) -> List[AppCallRequest]:
        return [call for call, t in self.calls if t is call_type]

    async def do_app_call(self, call: AppCallRequest, call_type: AppCallType) -> AppCallResponse:
        self.calls.append((call, call_type))
        queued = self.responses.get((call.path, call_type))
        if not queued:
            raise ConnectionError(f"no response for {call.path}")

        # the last response repeats
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def create_form():
    return AppForm(
        title="Create issue",
        call=AppCall(path="/create"),
        fields=[
            AppField(name="project", position=1, is_required=True, description="Project key"),
            AppField(name="summary", hint="Short summary"),
            AppField(
                name="priority",
                type=AppFieldType.STATIC_SELECT,
                options=[
                    AppSelectOption(label="High", value="high"),
                    AppSelectOption(label="Low", value="low"),
                    AppSelectOption(label="Very High", value="very high"),
                ],
            ),
            AppField(name="assignee", type=AppFieldType.USER),
            AppField(name="channel", type=AppFieldType.CHANNEL),
            AppField(name="urgent", type=AppFieldType.BOOL),
            AppField(name="epic", type=AppFieldType.DYNAMIC_SELECT),
            AppField(name="reporter", readonly=True, value="jira-bot"),
        ],
    )


@pytest.fixture
def jira_binding(create_form):
    return AppBinding(
        app_id="jira",
        label="jira",
        description="Interact with Jira",
        bindings=[
            AppBinding(
                label="issue",
                description="Work with issues",
                bindings=[
                    AppBinding(label="create", description="Create a new issue", form=create_form),
                    AppBinding(label="view", call=AppCall(path="/view-form")),
                ],
            ),
            AppBinding(label="help", call=AppCall(path="/help")),
        ],
    )


@pytest.fixture
def team():
    return Team(id="t1", name="core", display_name="Core Team")


@pytest.fixture
def entity_store(team):
    return EntityStore(
        users=[
            User(id="u1", username="alice"),
            User(id="u2", username="bob"),
        ],
        channels=[
            Channel(id="c1", name="town-square", display_name="Town Square", team_id="t1"),
            Channel(id="c2", name="dev", display_name="Development", team_id="t1"),
        ],
        teams=[team],
    )


@pytest.fixture
def command_context(jira_binding, team):
    return CommandContext(bindings=[jira_binding], channel_id="c1", team=team)


@pytest.fixture
def apps_client():
    return FakeAppsClient()


@pytest.fixture
def parser(command_context, entity_store, apps_client):
    """Provide a parser over the Jira command tree."""
    return AppCommandParser(command_context, entity_store, client=apps_client)


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
