"""Append-only merging of qualified pairs into an ordered token list."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from ..datalake.schemas import CanonicalToken, ListVersion, TokenList
from .primary import PrimarySide

DEFAULT_NAME_TEMPLATE = "Trust Wallet: {chain}"


def orient(
    token0: CanonicalToken, token1: CanonicalToken, side: PrimarySide
) -> Tuple[CanonicalToken, CanonicalToken]:
    """Order a pair so the primary token comes first."""

    if side is PrimarySide.SECOND:
        return token1, token0
    return token0, token1


def add_token_if_needed(token: CanonicalToken, token_list: TokenList) -> bool:
    if token_list.find(token.address) is not None:
        return False
    token_list.tokens.append(token)
    return True


def merge_pair(
    token_a: CanonicalToken, token_b: CanonicalToken, token_list: TokenList
) -> List[CanonicalToken]:
    """Ensure both tokens are in ``token_list``, appending absent ones in order.

    Entries already present are left exactly as they are, even when the
    upstream name, symbol or logo changed since they were listed.
    Returns the tokens that were appended.
    """

    added: List[CanonicalToken] = []
    for token in (token_a, token_b):
        if add_token_if_needed(token, token_list):
            added.append(token)
    return added


def merge_all(
    pairs: Iterable[Tuple[CanonicalToken, CanonicalToken]], token_list: TokenList
) -> List[CanonicalToken]:
    added: List[CanonicalToken] = []
    for token_a, token_b in pairs:
        added.extend(merge_pair(token_a, token_b, token_list))
    return added


def build_list(
    chain_display_name: str,
    tokens: Sequence[CanonicalToken],
    timestamp: str,
    major: int,
    minor: int,
    patch: int,
    *,
    name_template: str = DEFAULT_NAME_TEMPLATE,
    logo_uri: str = "",
) -> TokenList:
    # The timestamp is supplied by the caller so regenerated files stay diffable.
    return TokenList(
        name=name_template.format(chain=chain_display_name),
        timestamp=timestamp,
        version=ListVersion(major=major, minor=minor, patch=patch),
        tokens=list(tokens),
        logo_uri=logo_uri,
    )


__all__ = [
    "DEFAULT_NAME_TEMPLATE",
    "add_token_if_needed",
    "build_list",
    "merge_all",
    "merge_pair",
    "orient",
]
