"""Structural classification of raw token identifiers."""

import re

from ..core.models import ResolutionQuery
from ..core.types import IdentifierKind

ADDRESS_LENGTH = 42
_HEX_BODY = re.compile(r"^[0-9a-fA-F]{40}$")
_SLUG = re.compile(r"^[a-z0-9][a-z0-9-]*$")


def classify(identifier: str) -> ResolutionQuery:
    """
    Infer the kind of an identifier from its shape alone.

    - ``0x`` + 40 hex chars: address
    - any other ``0x...``: invalid address (never sent upstream)
    - ``*.eth``: ENS-like name (``*.base.eth`` is a basename)
    - lower-case slug (``bitcoin``, ``usd-coin``, ``ETH``): symbol or id
    - anything else: free text (handles, names with spaces)
    """
    raw = identifier
    text = identifier.strip()
    lowered = text.lower()

    if lowered.startswith("0x"):
        if len(text) == ADDRESS_LENGTH and _HEX_BODY.match(text[2:]):
            return ResolutionQuery(raw=raw, normalized=lowered, kind=IdentifierKind.ADDRESS)
        return ResolutionQuery(raw=raw, normalized=lowered, kind=IdentifierKind.INVALID_ADDRESS)

    if lowered.endswith(".eth") and len(lowered) > len(".eth"):
        return ResolutionQuery(raw=raw, normalized=lowered, kind=IdentifierKind.ENS_NAME)

    if _SLUG.match(lowered):
        return ResolutionQuery(raw=raw, normalized=lowered, kind=IdentifierKind.SYMBOL_OR_ID)

    return ResolutionQuery(raw=raw, normalized=lowered, kind=IdentifierKind.FREE_TEXT)


def is_address(identifier: str) -> bool:
    return classify(identifier).kind == IdentifierKind.ADDRESS
