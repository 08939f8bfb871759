"""
Command schema files.

A schema file is YAML describing the command bindings of one or more apps,
plus the users, channels and teams references resolve against:

    bindings:
      - app_id: jira
        label: jira
        form:
          call: {path: /create}
          fields:
            - {name: project, position: 1, is_required: true}
    users:
      - {id: u1, username: alice}
    channels:
      - {id: c1, name: town-square, display_name: Town Square, team_id: t1}
    teams:
      - {id: t1, name: core}
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .state import CommandContext, EntityStore
from .types import AppBinding, Channel, Team, User
from ..utils.error_handling import SchemaError, handle_configuration_operation


class CommandSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bindings: List[AppBinding] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    channels: List[Channel] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)

    def create_store(self) -> EntityStore:
        return EntityStore(users=self.users, channels=self.channels, teams=self.teams)

    def create_context(self, channel: Optional[str] = None, team: Optional[str] = None) -> CommandContext:
        """Context for a session in ``channel`` (id or name) of ``team`` (name).

        Without a team name the channel's team, or the only team, is used.
        """
        selected_team = next((t for t in self.teams if t.name == team), None) if team else None

        selected_channel = None
        if channel:
            selected_channel = next(
                (c for c in self.channels if channel in (c.id, c.name)
                 and (selected_team is None or c.team_id in (None, selected_team.id))),
                None,
            )

        if selected_team is None:
            if selected_channel is not None and selected_channel.team_id:
                selected_team = next((t for t in self.teams if t.id == selected_channel.team_id), None)
            elif len(self.teams) == 1:
                selected_team = self.teams[0]

        return CommandContext(
            bindings=list(self.bindings),
            channel_id=selected_channel.id if selected_channel else "",
            team=selected_team,
        )


@handle_configuration_operation("load_schema")
def load_schema(path: Union[str, Path]) -> CommandSchema:
    """Load and validate a schema file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SchemaError(f"Schema file {path} must contain a mapping")

    try:
        return CommandSchema.model_validate(data)
    except ValidationError as e:
        errors = [
            f"  {'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise SchemaError(
            f"Invalid schema in {path}:\n" + "\n".join(errors),
            details={"error_type": "validation", "errors": e.errors()}
        ) from e
