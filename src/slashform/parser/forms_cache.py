"""
Per-parser form cache.
"""

from typing import Awaitable, Callable, Dict, Optional

from ..apps.types import AppBinding, AppForm, FormResult
from ..utils.logging import get_logger

FormFetcher = Callable[[AppBinding], Awaitable[FormResult]]


class FormsCache:
    """Memoizes fetched forms by location (``/cmd/sub``) for one parser instance.

    Only successful fetches are stored, so a failed fetch is retried on the
    next access. Entries are never invalidated: a new parser instance starts
    with an empty cache.
    """

    def __init__(self, fetcher: FormFetcher):
        self._fetcher = fetcher
        self._forms: Dict[str, AppForm] = {}
        self.logger = get_logger(__name__)

    def __contains__(self, location: str) -> bool:
        return location in self._forms

    def __len__(self) -> int:
        return len(self._forms)

    def get_cached(self, location: str) -> Optional[AppForm]:
        return self._forms.get(location)

    async def get_form(self, location: str, binding: AppBinding) -> FormResult:
        form = self._forms.get(location)
        if form is not None:
            self.logger.debug(f"Form cache hit for {location}")
            return FormResult(form=form)

        self.logger.debug(f"Form cache miss for {location}")
        fetched = await self._fetcher(binding)
        if fetched.form is not None:
            self._forms[location] = fetched.form
        return fetched
