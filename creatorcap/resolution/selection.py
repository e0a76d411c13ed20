"""Holder for one side of a comparison.

A caller may change the selection while a resolve is still pending. When
the stale response arrives it is discarded: results are matched to the
identifier they were requested for, not to the order calls complete in.
"""

import logging
from typing import Protocol

from ..core.models import TokenData

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def resolve(self, identifier: str) -> TokenData | None: ...


class SelectionHolder:
    """Current identifier and resolved token for one comparison side."""

    def __init__(self, label: str = "token"):
        self.label = label
        self._identifier: str | None = None
        self._token: TokenData | None = None

    @property
    def identifier(self) -> str | None:
        return self._identifier

    @property
    def token(self) -> TokenData | None:
        return self._token

    def select(self, identifier: str) -> None:
        """Switch selection; the previous token is dropped immediately."""
        key = identifier.strip().lower()
        if key != self._identifier:
            self._identifier = key
            self._token = None

    def clear(self) -> None:
        self._identifier = None
        self._token = None

    def apply(self, identifier: str, token: TokenData | None) -> bool:
        """
        Store ``token`` if ``identifier`` is still the current selection.

        Returns:
            True if applied, False if the response was stale
        """
        if identifier.strip().lower() != self._identifier:
            logger.debug(f"[{self.label}] Discarding stale result for {identifier!r}")
            return False
        self._token = token
        return True

    async def resolve(self, resolver: Resolver, identifier: str) -> TokenData | None:
        """Select ``identifier``, resolve it, and apply the result if still current."""
        self.select(identifier)
        token = await resolver.resolve(identifier)
        self.apply(identifier, token)
        return self._token
