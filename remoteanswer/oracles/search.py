"""
Search coordination.

Every search submission gets a token. Only the result for the newest
token may be applied; anything older is stale and dropped.
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class SearchCoordinator:
    """Tracks which oracle search is current."""

    def __init__(self):
        self._generation = 0
        self.pending: Optional[int] = None

    def begin(self) -> int:
        """Start a new search, superseding any in flight. Returns its token."""
        self._generation += 1
        self.pending = self._generation
        return self._generation

    def cancel(self) -> None:
        """Supersede any in-flight search without starting a new one."""
        self._generation += 1
        self.pending = None

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def accept(self, token: int, ids: List[str]) -> Optional[List[str]]:
        """
        Settle a search.

        Returns:
            The ids if the token is still current, else None
        """
        if not self.is_current(token):
            logger.info(f"Dropping stale search result (token {token}, current {self._generation})")
            return None
        self.pending = None
        return list(ids)

    @property
    def is_loading(self) -> bool:
        return self.pending is not None
