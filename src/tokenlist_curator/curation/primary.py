"""Classification of a chain's anchor ("primary") tokens."""

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, Optional

from ..datalake.schemas import RawPair, RawToken


class PrimarySide(str, Enum):
    """Which side of a pair carries the primary token."""

    NONE = "none"
    FIRST = "first"
    SECOND = "second"


def is_primary(token: Optional[RawToken], primary_symbols: AbstractSet[str]) -> bool:
    if token is None:
        return False
    return (token.symbol or "").upper() in primary_symbols


def primary_side(pair: RawPair, primary_symbols: AbstractSet[str]) -> PrimarySide:
    # FIRST wins when both sides match; a valid policy never produces that.
    if is_primary(pair.token0, primary_symbols):
        return PrimarySide.FIRST
    if is_primary(pair.token1, primary_symbols):
        return PrimarySide.SECOND
    return PrimarySide.NONE


__all__ = ["PrimarySide", "is_primary", "primary_side"]
