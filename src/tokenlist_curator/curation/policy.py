"""Per-chain listing policy derived from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, FrozenSet, Iterable

from ..config.settings import ChainConfig, TokenListConfig
from ..utils.constants import TOP_PAIRS_QUERY
from .identity import logo_uri


@dataclass(frozen=True, slots=True)
class ChainPolicy:
    """Everything that distinguishes one chain's curation run from another's."""

    chain_id: str
    display_name: str
    min_liquidity_usd: float
    primary_symbols: FrozenSet[str]
    asset_id_base: int
    token_standard: str
    logo_uri_builder: Callable[[str], str]
    subgraph_url: str = ""
    pairs_query: str = TOP_PAIRS_QUERY


def normalize_symbols(symbols: Iterable[str]) -> FrozenSet[str]:
    return frozenset(symbol.strip().upper() for symbol in symbols if symbol and symbol.strip())


def policy_from_config(chain_id: str, chain: ChainConfig, tokenlist: TokenListConfig) -> ChainPolicy:
    folder = chain.assets_folder or chain_id
    return ChainPolicy(
        chain_id=chain_id,
        display_name=chain.display_name,
        min_liquidity_usd=chain.min_liquidity_usd,
        primary_symbols=normalize_symbols(chain.primary_symbols),
        asset_id_base=chain.asset_id_base,
        token_standard=chain.token_standard,
        logo_uri_builder=partial(logo_uri, chain_folder=folder, cdn_url=str(tokenlist.assets_cdn_url)),
        subgraph_url=str(chain.subgraph_url),
        pairs_query=chain.pairs_query,
    )


__all__ = ["ChainPolicy", "normalize_symbols", "policy_from_config"]
