"""
Test suite for AppCommandParser call composition and form handling.
"""

import pytest

from slashform.apps.state import CommandContext, EntityStore
from slashform.apps.types import (
    AppBinding,
    AppCall,
    AppCallResponse,
    AppCallType,
    AppField,
    AppFieldType,
    AppForm,
    AppSelectOption,
    User,
)
from slashform.config.models import ParserConfig, SlashFormConfig
from slashform.intl import Intl
from slashform.parser import AppCommandParser
from slashform.utils.error_handling import AppCallError


def view_form_response():
    return AppCallResponse(
        type="form",
        form={
            "title": "View issue",
            "call": {"path": "/view"},
            "fields": [{"name": "key", "position": 1, "is_required": True}],
        },
    )


@pytest.mark.unit
class TestComposeCall:
    """Composing submit calls from complete commands."""

    @pytest.mark.asyncio
    async def test_scenario_positional_and_static_select(self, entity_store):
        binding = AppBinding(
            app_id="jira",
            label="jira",
            call=AppCall(path="/jira"),
            form=AppForm(fields=[
                AppField(name="project", position=1, type=AppFieldType.TEXT, is_required=True),
                AppField(
                    name="priority",
                    label="priority",
                    type=AppFieldType.STATIC_SELECT,
                    options=[AppSelectOption(label="High", value="high")],
                ),
            ]),
        )
        parser = AppCommandParser(CommandContext(bindings=[binding]), entity_store)

        result = await parser.compose_call_from_command("/jira myproj --priority high")

        assert result.error_message is None
        assert result.ok
        assert result.call.path == "/jira"
        assert result.call.values == {
            "project": "myproj",
            "priority": AppSelectOption(label="High", value="high"),
        }

    @pytest.mark.asyncio
    async def test_call_carries_context_and_raw_command(self, parser):
        command = '/jira issue create KT --summary "Login fails"'

        result = await parser.compose_call_from_command(command)

        assert result.ok
        assert result.call.path == "/create"
        assert result.call.raw_command == command
        assert result.call.values == {"project": "KT", "summary": "Login fails", "reporter": "jira-bot"}
        context = result.call.context
        assert context.app_id == "jira"
        assert context.location == "/command"
        assert context.channel_id == "c1"
        assert context.team_id == "t1"

    @pytest.mark.asyncio
    async def test_parse_error_points_at_offset(self, parser):
        result = await parser.compose_call_from_command('/jira issue create ""')

        assert result.call is None
        assert result.error_message == (
            "Parsing error: empty values are not allowed.\n"
            "```\n"
            '/jira issue create ""\n'
            + " " * 20 + "^\n"
            "```"
        )

    @pytest.mark.asyncio
    async def test_unknown_flag(self, parser):
        result = await parser.compose_call_from_command("/jira issue create KT --bogus")

        assert result.call is None
        assert "Command does not accept flag `bogus`." in result.error_message

    @pytest.mark.asyncio
    async def test_no_bindings(self, entity_store):
        parser = AppCommandParser(CommandContext(), entity_store)

        result = await parser.compose_call_from_command("/jira")

        assert "No command bindings." in result.error_message

    @pytest.mark.asyncio
    async def test_missing_required_field(self, parser):
        result = await parser.compose_call_from_command("/jira issue create --summary x")

        assert result.call is None
        assert result.error_message == "Required fields missing: `project`."

    @pytest.mark.asyncio
    async def test_missing_call(self, parser):
        result = await parser.compose_call_from_command("/jira issue crate")

        assert result.error_message == "Missing binding call."

    @pytest.mark.asyncio
    async def test_binding_call_without_form(self, parser, apps_client):
        apps_client.add_response("/help", AppCallType.FORM, AppCallResponse(type="form", form={"fields": []}))

        result = await parser.compose_call_from_command("/jira help")

        assert result.ok
        assert result.call.path == "/help"
        assert result.call.values == {}

    @pytest.mark.asyncio
    async def test_boolean_flags(self, parser):
        result = await parser.compose_call_from_command("/jira issue create KT --urgent --summary x")

        assert result.call.values["urgent"] == "true"
        assert result.call.values["summary"] == "x"

    @pytest.mark.asyncio
    async def test_user_and_channel_references(self, parser):
        result = await parser.compose_call_from_command("/jira issue create KT --assignee @alice --channel ~dev")

        assert result.ok
        assert result.call.values["assignee"] == AppSelectOption(label="alice", value="u1")
        assert result.call.values["channel"] == AppSelectOption(label="Development", value="c2")

    @pytest.mark.asyncio
    async def test_references_without_prefix(self, parser):
        result = await parser.compose_call_from_command("/jira issue create KT --assignee bob --channel town-square")

        assert result.call.values["assignee"] == AppSelectOption(label="bob", value="u2")
        assert result.call.values["channel"] == AppSelectOption(label="Town Square", value="c1")

    @pytest.mark.asyncio
    async def test_dynamic_select_value(self, parser):
        result = await parser.compose_call_from_command("/jira issue create KT --epic EP-1")

        assert result.call.values["epic"] == AppSelectOption(label="", value="EP-1")

    @pytest.mark.asyncio
    async def test_expansion_errors_are_joined(self, parser):
        result = await parser.compose_call_from_command(
            "/jira issue create KT --assignee @nobody --priority urgent --channel ~nowhere")

        assert result.call is None
        assert result.error_message == (
            "Unknown option for field `priority`: `urgent`.\n"
            "Unknown user for field `assignee`: `@nobody`.\n"
            "Unknown channel for field `channel`: `~nowhere`.\n"
        )

    @pytest.mark.asyncio
    async def test_user_fetched_from_remote(self, command_context, apps_client):
        class Directory(EntityStore):
            async def fetch_user_by_username(self, username):
                return User(id="u9", username=username)

        store = EntityStore(remote=Directory())
        parser = AppCommandParser(command_context, store, client=apps_client)

        result = await parser.compose_call_from_command("/jira issue create KT --assignee @carol")

        assert result.call.values["assignee"] == AppSelectOption(label="carol", value="u9")
        assert store.get_user_by_username("carol").id == "u9"

    @pytest.mark.asyncio
    async def test_parsed_values_are_not_expanded_in_place(self, parser):
        from slashform.parser import ParsedCommand

        parsed = ParsedCommand("/jira issue create KT --priority high", parser.forms, parser.intl)
        parsed = (await parsed.match_binding(parser.get_command_bindings())).parse_form()

        first = await parser.compose_call_from_parsed(parsed)
        second = await parser.compose_call_from_parsed(parsed)

        assert parsed.values["priority"] == "high"
        assert first.call.values["priority"] == second.call.values["priority"]

    @pytest.mark.asyncio
    async def test_expanded_values_are_left_alone(self, parser):
        from slashform.parser import ParsedCommand

        parsed = ParsedCommand("/jira issue create KT", parser.forms, parser.intl)
        parsed = (await parsed.match_binding(parser.get_command_bindings())).parse_form()
        option = AppSelectOption(label="High", value="high")
        values = {"project": "KT", "priority": option}

        error = await parser.expand_options(parsed, values)

        assert error is None
        assert values["priority"] is option

    @pytest.mark.asyncio
    async def test_localized_messages(self, command_context, entity_store):
        intl = Intl({"apps.error.command.field_missing": "Champs requis manquants : {fieldName}"}, locale="fr")
        parser = AppCommandParser(command_context, entity_store, intl=intl)

        result = await parser.compose_call_from_command("/jira issue create")

        assert result.error_message == "Champs requis manquants : project"


@pytest.mark.unit
class TestDefaultValues:
    """Read-only fields carrying a value."""

    def make_parser(self, fields, entity_store):
        binding = AppBinding(
            app_id="ops",
            label="ops",
            form=AppForm(call=AppCall(path="/ops"), fields=fields),
        )
        return AppCommandParser(CommandContext(bindings=[binding]), entity_store)

    @pytest.mark.asyncio
    async def test_readonly_defaults_by_type(self, entity_store):
        parser = self.make_parser([
            AppField(name="text", readonly=True, value="fixed"),
            AppField(name="flag", type=AppFieldType.BOOL, readonly=True, value=True),
            AppField(name="owner", type=AppFieldType.USER, readonly=True,
                     value=AppSelectOption(label="Bob", value="u2")),
            AppField(name="room", type=AppFieldType.CHANNEL, readonly=True,
                     value=AppSelectOption(label="Town Square", value="c1")),
            AppField(name="level", type=AppFieldType.STATIC_SELECT, readonly=True,
                     value=AppSelectOption(label="Low", value="low"),
                     options=[AppSelectOption(label="Low", value="low")]),
        ], entity_store)

        result = await parser.compose_call_from_command("/ops")

        assert result.ok
        assert result.call.values == {
            "text": "fixed",
            "flag": "true",
            "owner": AppSelectOption(label="bob", value="u2"),
            "room": AppSelectOption(label="Town Square", value="c1"),
            "level": AppSelectOption(label="Low", value="low"),
        }

    @pytest.mark.asyncio
    async def test_editable_fields_keep_no_default(self, entity_store):
        parser = self.make_parser([AppField(name="text", value="suggested")], entity_store)

        result = await parser.compose_call_from_command("/ops")

        assert result.call.values == {}

    @pytest.mark.asyncio
    async def test_unresolvable_default_is_skipped(self, entity_store):
        parser = self.make_parser([
            AppField(name="owner", type=AppFieldType.USER, readonly=True,
                     value=AppSelectOption(value="ghost")),
        ], entity_store)

        result = await parser.compose_call_from_command("/ops")

        assert result.ok
        assert "owner" not in result.call.values

    @pytest.mark.asyncio
    async def test_required_readonly_field_is_satisfied_by_default(self, entity_store):
        parser = self.make_parser([
            AppField(name="text", readonly=True, is_required=True, value="fixed"),
        ], entity_store)

        result = await parser.compose_call_from_command("/ops")

        assert result.ok


@pytest.mark.unit
class TestForms:
    """Fetching and caching forms."""

    @pytest.mark.asyncio
    async def test_fetched_form_is_used(self, parser, apps_client):
        apps_client.add_response("/view-form", AppCallType.FORM, view_form_response())

        result = await parser.compose_call_from_command("/jira issue view KT-1")

        assert result.ok
        assert result.call.path == "/view"
        assert result.call.values == {"key": "KT-1"}
        form_call = apps_client.calls_of(AppCallType.FORM)[0]
        assert form_call.path == "/view-form"
        assert form_call.context.app_id == "jira"

    @pytest.mark.asyncio
    async def test_forms_are_cached(self, parser, apps_client):
        apps_client.add_response("/view-form", AppCallType.FORM, view_form_response())

        await parser.compose_call_from_command("/jira issue view KT-1")
        await parser.compose_call_from_command("/jira issue view KT-2")

        assert len(apps_client.calls_of(AppCallType.FORM)) == 1
        assert "/jira/issue/view" in parser.forms

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self, parser, apps_client):
        apps_client.add_response(
            "/view-form", AppCallType.FORM,
            AppCallError("boom", response=AppCallResponse(type="error", error="App crashed")))
        apps_client.add_response("/view-form", AppCallType.FORM, view_form_response())

        first = await parser.compose_call_from_command("/jira issue view KT-1")
        second = await parser.compose_call_from_command("/jira issue view KT-1")

        assert "App crashed" in first.error_message
        assert second.ok
        assert len(apps_client.calls_of(AppCallType.FORM)) == 2

    @pytest.mark.asyncio
    async def test_fetch_form_without_call(self, parser):
        result = await parser.fetch_form(AppBinding(label="empty"))

        assert result.form is None
        assert result.error is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response_type,message", [
        ("ok", "App response type was not expected. Response type: ok"),
        ("navigate", "App response type was not expected. Response type: navigate"),
        ("stream", "App response type not supported. Response type: stream."),
    ])
    async def test_fetch_form_wrong_response_type(self, parser, apps_client, response_type, message):
        apps_client.add_response("/view-form", AppCallType.FORM, AppCallResponse(type=response_type))
        view = parser.get_command_bindings()[0].bindings[0].bindings[1]

        result = await parser.fetch_form(view)

        assert result.error == message

    @pytest.mark.asyncio
    async def test_fetch_form_malformed(self, parser, apps_client):
        apps_client.add_response("/view-form", AppCallType.FORM, AppCallResponse(
            type="form",
            form={"fields": [{"name": "key", "position": 2}]},
        ))
        view = parser.get_command_bindings()[0].bindings[0].bindings[1]

        result = await parser.fetch_form(view)

        assert result.form is None
        assert result.error.startswith("App returned a malformed form:")

    @pytest.mark.asyncio
    async def test_raw_mapping_response_is_validated(self, parser, apps_client):
        apps_client.add_response("/view-form", AppCallType.FORM, {
            "type": "form",
            "form": {"call": {"path": "/view"}, "fields": [{"name": "key", "position": 1}]},
        })

        result = await parser.compose_call_from_command("/jira issue view KT-1")

        assert result.ok
        assert result.call.values == {"key": "KT-1"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not a response", {"form": {}}, ["x"]])
    async def test_invalid_raw_response(self, parser, apps_client, raw):
        apps_client.add_response("/view-form", AppCallType.FORM, raw)
        view = parser.get_command_bindings()[0].bindings[0].bindings[1]

        result = await parser.fetch_form(view)

        assert result.form is None
        assert result.error == "form_call failed: malformed response"
        assert "/jira/issue/view" not in parser.forms

    @pytest.mark.asyncio
    async def test_fetch_form_app_error_without_text(self, parser, apps_client):
        apps_client.add_response("/view-form", AppCallType.FORM, AppCallError("failed"))
        view = parser.get_command_bindings()[0].bindings[0].bindings[1]

        result = await parser.fetch_form(view)

        assert result.error == "Unknown error."

    @pytest.mark.asyncio
    async def test_fetch_form_without_client(self, command_context, entity_store):
        parser = AppCommandParser(command_context, entity_store)
        view = parser.get_command_bindings()[0].bindings[0].bindings[1]

        result = await parser.fetch_form(view)

        assert result.error == "No apps client configured"


@pytest.mark.unit
class TestSession:
    """Execution context and command detection."""

    def test_app_context_in_known_channel(self, parser):
        context = parser.get_app_context("jira")

        assert context.app_id == "jira"
        assert context.location == "/command"
        assert context.channel_id == "c1"
        assert context.team_id == "t1"
        assert context.root_id is None

    def test_set_channel_context(self, parser):
        parser.set_channel_context("c2", "post1")

        context = parser.get_app_context("jira")

        assert context.channel_id == "c2"
        assert context.root_id == "post1"

    def test_unknown_channel(self, parser):
        parser.set_channel_context("gone")

        context = parser.get_app_context("jira")

        assert context.channel_id is None
        assert context.team_id is None

    @pytest.mark.parametrize("pretext,expected", [
        ("/jira issue", True),
        ("/JIRA ", True),
        ("/jira", False),
        ("/jiraa x", False),
        ("jira issue", False),
    ])
    def test_is_app_command(self, parser, pretext, expected):
        assert parser.is_app_command(pretext) is expected

    def test_parser_reads_config(self, command_context, entity_store):
        config = SlashFormConfig(parser=ParserConfig(call_timeout_seconds=5, locale="de"))

        parser = AppCommandParser(command_context, entity_store, config=config)

        assert parser.intl.locale == "de"
        assert parser.config.parser.call_timeout_seconds == 5
