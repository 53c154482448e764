"""Admission rules for candidate trading pairs."""

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, Callable, FrozenSet, Iterable, Optional

from ..datalake.schemas import RawPair, RawToken
from ..monitoring.logger import get_logger
from .identity import checksum_address
from .policy import ChainPolicy
from .primary import PrimarySide, primary_side

logger = get_logger(__name__)

LogoLookup = Callable[[str], bool]


class RejectionReason(str, Enum):
    INCOMPLETE = "incomplete"
    LOW_LIQUIDITY = "low_liquidity"
    UNSUPPORTED_FIRST = "unsupported_first"
    UNSUPPORTED_SECOND = "unsupported_second"
    NO_PRIMARY = "no_primary"


def normalize_allowlist(entries: Iterable[str]) -> FrozenSet[str]:
    """Lower-case allowlist entries so membership is case-insensitive."""

    return frozenset(str(entry).strip().lower() for entry in entries if str(entry).strip())


def is_token_supported(
    token: Optional[RawToken],
    allowlist: AbstractSet[str],
    logo_exists: LogoLookup,
) -> bool:
    if token is None:
        return False
    address = checksum_address(token.address)
    if not logo_exists(address):
        return False
    return address.lower() in allowlist


def evaluate_pair(
    pair: RawPair,
    policy: ChainPolicy,
    allowlist: AbstractSet[str],
    logo_exists: LogoLookup,
) -> Optional[RejectionReason]:
    """Return the first rule ``pair`` fails, or ``None`` when it is admissible.

    ``allowlist`` must already be lower-cased (see :func:`normalize_allowlist`).
    Checksumming an unparsable address raises ``MalformedTokenError``; callers
    treat that as a skipped pair rather than a rejection.
    """

    # Legacy guard: only a pair with nothing at all in it is incomplete.
    if not pair.id and not pair.reserve_usd and pair.token0 is None and pair.token1 is None:
        return RejectionReason.INCOMPLETE
    if pair.reserve_usd < policy.min_liquidity_usd:
        logger.debug(
            "pair with low liquidity: %s  %d", pair.describe(), round(pair.reserve_usd)
        )
        return RejectionReason.LOW_LIQUIDITY
    if not is_token_supported(pair.token0, allowlist, logo_exists):
        logger.info("pair with unsupported 1st coin: %s", pair.describe())
        return RejectionReason.UNSUPPORTED_FIRST
    if not is_token_supported(pair.token1, allowlist, logo_exists):
        logger.info("pair with unsupported 2nd coin: %s", pair.describe())
        return RejectionReason.UNSUPPORTED_SECOND
    if primary_side(pair, policy.primary_symbols) is PrimarySide.NONE:
        logger.info("pair with no primary coin: %s", pair.describe())
        return RejectionReason.NO_PRIMARY
    return None


def qualify(
    pair: RawPair,
    policy: ChainPolicy,
    allowlist: AbstractSet[str],
    logo_exists: LogoLookup,
) -> bool:
    return evaluate_pair(pair, policy, allowlist, logo_exists) is None


__all__ = [
    "LogoLookup",
    "RejectionReason",
    "evaluate_pair",
    "is_token_supported",
    "normalize_allowlist",
    "qualify",
]
