"""Shared constants for subgraph discovery and list generation."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# Fixed so regenerated lists only change when their tokens change.
DEFAULT_LIST_TIMESTAMP = "2020-10-03T12:37:57.000+00:00"

ASSETS_CDN_URL = "https://assets-cdn.trustwallet.com"

UNISWAP_V2_SUBGRAPH_URL = "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v2"
PANCAKESWAP_SUBGRAPH_URL = "https://api.bscgraph.org/subgraphs/name/wowswap"

# Top 400 pools by USD reserve; the same shape is served by Uniswap v2 forks.
TOP_PAIRS_QUERY = """query pairs {
  pairs(first: 400, orderBy: reserveUSD, orderDirection: desc) {
    id
    reserveUSD
    trackedReserveETH
    volumeUSD
    untrackedVolumeUSD
    __typename
    token0 {
      id
      symbol
      name
      decimals
      __typename
    }
    token1 {
      id
      symbol
      name
      decimals
      __typename
    }
  }
}
"""

__all__ = [
    "ASSETS_CDN_URL",
    "DEFAULT_LIST_TIMESTAMP",
    "PANCAKESWAP_SUBGRAPH_URL",
    "TOP_PAIRS_QUERY",
    "UNISWAP_V2_SUBGRAPH_URL",
    "utc_now",
]
