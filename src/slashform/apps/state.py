"""
Explicit session context and an in-memory reference store.

The parser never reaches into global state: everything it needs about the
current session (known command bindings, channel, team, thread) travels in a
CommandContext, and user/channel lookups go through a ReferenceResolver.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .interfaces import ReferenceResolver
from .types import AppBinding, Channel, Team, User
from ..utils.error_handling import ReferenceNotFoundError
from ..utils.logging import get_logger


@dataclass
class CommandContext:
    """Session information a parser instance works against."""

    bindings: List[AppBinding] = field(default_factory=list)
    channel_id: str = ""
    root_post_id: str = ""
    team: Optional[Team] = None

    def get_command_bindings(self) -> List[AppBinding]:
        """Top-level command bindings, one per app."""
        return list(self.bindings)

    @property
    def team_id(self) -> str:
        return self.team.id if self.team else ""

    @property
    def team_name(self) -> str:
        return self.team.name if self.team else ""


class EntityStore(ReferenceResolver):
    """In-memory users, channels and teams.

    Misses on the ``fetch_*`` path are delegated to ``remote`` when one is
    configured, and whatever it returns is remembered locally.
    """

    def __init__(self,
                 users: Iterable[User] = (),
                 channels: Iterable[Channel] = (),
                 teams: Iterable[Team] = (),
                 remote: Optional[ReferenceResolver] = None):
        self.logger = get_logger(__name__)
        self.users: Dict[str, User] = {}
        self.channels: Dict[str, Channel] = {}
        self.teams: Dict[str, Team] = {}
        self.remote = remote

        for user in users:
            self.add_user(user)
        for channel in channels:
            self.add_channel(channel)
        for team in teams:
            self.add_team(team)

    def add_user(self, user: User) -> None:
        self.users[user.id] = user

    def add_channel(self, channel: Channel) -> None:
        self.channels[channel.id] = channel

    def add_team(self, team: Team) -> None:
        self.teams[team.id] = team

    def get_team_by_name(self, name: str) -> Optional[Team]:
        for team in self.teams.values():
            if team.name == name:
                return team
        return None

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        return self.channels.get(channel_id)

    def get_channel_by_name(self, name: str, team_id: Optional[str] = None) -> Optional[Channel]:
        for channel in self.channels.values():
            if channel.name != name:
                continue
            # channels without a team (direct messages) match any team
            if team_id and channel.team_id and channel.team_id != team_id:
                continue
            return channel
        return None

    async def fetch_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user:
            return user
        if self.remote is None:
            raise ReferenceNotFoundError("user", user_id)

        user = await self.remote.fetch_user(user_id)
        self.add_user(user)
        return user

    async def fetch_user_by_username(self, username: str) -> User:
        user = self.get_user_by_username(username)
        if user:
            return user
        if self.remote is None:
            raise ReferenceNotFoundError("user", username)

        user = await self.remote.fetch_user_by_username(username)
        self.add_user(user)
        return user

    async def fetch_channel(self, channel_id: str) -> Channel:
        channel = self.get_channel(channel_id)
        if channel:
            return channel
        if self.remote is None:
            raise ReferenceNotFoundError("channel", channel_id)

        channel = await self.remote.fetch_channel(channel_id)
        self.add_channel(channel)
        return channel

    async def fetch_channel_by_name(self, team_name: str, name: str) -> Channel:
        team = self.get_team_by_name(team_name)
        channel = self.get_channel_by_name(name, team.id if team else None)
        if channel:
            return channel
        if self.remote is None:
            raise ReferenceNotFoundError("channel", f"{team_name}/{name}")

        self.logger.debug(f"Fetching channel {name} of team {team_name}")
        channel = await self.remote.fetch_channel_by_name(team_name, name)
        self.add_channel(channel)
        return channel
