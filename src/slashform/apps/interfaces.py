"""
Interfaces of the collaborators the command parser depends on.

Implementations raise ExternalCallError (or a subclass) on failure; the
parser never lets these escape its public methods.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .types import AppCallRequest, AppCallResponse, AppCallType, Channel, User


class AppsClient(ABC):
    """Performs calls against remote apps."""

    @abstractmethod
    async def do_app_call(self, call: AppCallRequest, call_type: AppCallType) -> AppCallResponse:
        """Perform a call.

        Args:
            call: Fully composed call request
            call_type: SUBMIT, FORM or LOOKUP

        Returns:
            The app's response, whatever its type. A plain mapping is
            validated into an AppCallResponse.

        Raises:
            AppCallError: The app answered with an error response
            ExternalCallError: The call could not be performed
        """


class ReferenceResolver(ABC):
    """Resolves user and channel references.

    The ``get_*`` lookups only consult locally known entities and return None
    on a miss. The ``fetch_*`` coroutines go to the source of truth and raise
    ReferenceNotFoundError when nothing matches.
    """

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_channel(self, channel_id: str) -> Optional[Channel]:
        ...

    @abstractmethod
    def get_channel_by_name(self, name: str, team_id: Optional[str] = None) -> Optional[Channel]:
        ...

    @abstractmethod
    async def fetch_user(self, user_id: str) -> User:
        ...

    @abstractmethod
    async def fetch_user_by_username(self, username: str) -> User:
        ...

    @abstractmethod
    async def fetch_channel(self, channel_id: str) -> Channel:
        ...

    @abstractmethod
    async def fetch_channel_by_name(self, team_name: str, name: str) -> Channel:
        ...
