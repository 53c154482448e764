"""Per-chain token list update: fetch, qualify, orient, canonicalize, merge, persist."""

from __future__ import annotations

from functools import partial
from typing import AbstractSet, List, Optional, Sequence, Tuple

from ..config.settings import AppConfig, get_app_config
from ..datalake.schemas import RawPair, TokenList, UpdateReport
from ..datalake.storage import TokenListRepository, TokenListStore
from ..ingestion.subgraph import SubgraphClient
from ..monitoring.logger import correlation_scope, get_logger
from ..monitoring.metrics import METRICS
from ..utils.constants import utc_now
from .identity import canonicalize
from .merger import build_list, merge_pair, orient
from .policy import ChainPolicy, policy_from_config
from .primary import primary_side
from .qualifier import LogoLookup, evaluate_pair, normalize_allowlist

logger = get_logger(__name__)


def filter_pairs(
    pairs: Sequence[RawPair],
    policy: ChainPolicy,
    allowlist: AbstractSet[str],
    logo_exists: LogoLookup,
) -> List[RawPair]:
    """Return the admissible pairs; a pair that raises is logged and skipped."""

    admitted: List[RawPair] = []
    for pair in pairs:
        try:
            reason = evaluate_pair(pair, policy, allowlist, logo_exists)
            if reason is None:
                admitted.append(pair)
            else:
                METRICS.increment(f"pairs.rejected.{reason.value}")
        except Exception:  # noqa: BLE001
            METRICS.increment("pairs.malformed")
            logger.exception("Exception while checking pair %s", pair.id or pair.describe())
    return admitted


def merge_pairs(pairs: Sequence[RawPair], policy: ChainPolicy, token_list: TokenList) -> Tuple[List[str], int]:
    """Merge admitted pairs into ``token_list``.

    Returns the appended addresses and the number of pairs actually merged;
    a pair that fails canonicalization is logged and not counted.
    """

    added: List[str] = []
    merged = 0
    for pair in pairs:
        try:
            token0 = canonicalize(pair.token0, policy.asset_id_base, policy.token_standard, policy.logo_uri_builder)
            token1 = canonicalize(pair.token1, policy.asset_id_base, policy.token_standard, policy.logo_uri_builder)
            first, second = orient(token0, token1, primary_side(pair, policy.primary_symbols))
            added.extend(token.address for token in merge_pair(first, second, token_list))
            merged += 1
        except Exception:  # noqa: BLE001
            METRICS.increment("pairs.malformed")
            logger.exception("Exception while merging pair %s", pair.id or pair.describe())
    return added, merged


class TokenListUpdater:
    """Runs the list update for configured chains against one asset repository."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        *,
        client: Optional[SubgraphClient] = None,
        store: Optional[TokenListStore] = None,
        dry_run: bool = False,
    ) -> None:
        self._config = app_config or get_app_config()
        self._client = client or SubgraphClient(self._config.subgraph)
        self._store: TokenListStore = store or TokenListRepository(self._config.repository)
        self._dry_run = dry_run

    def policy_for(self, chain_id: str) -> ChainPolicy:
        return policy_from_config(chain_id, self._config.chain(chain_id), self._config.tokenlist)

    def retrieve_pairs(self, policy: ChainPolicy) -> Tuple[List[RawPair], int]:
        logger.info(
            "Retrieving pairs for %s, liquidity limit USD %d",
            policy.display_name,
            round(policy.min_liquidity_usd),
        )
        allowlist = normalize_allowlist(self._store.read_allowlist(policy.chain_id))
        pairs = self._client.fetch_trading_pairs(policy.subgraph_url, policy.pairs_query)
        admitted = filter_pairs(
            pairs,
            policy,
            allowlist,
            partial(self._store.logo_exists, policy.chain_id),
        )
        logger.info("Retrieved %d pairs, %d admitted", len(pairs), len(admitted))
        for pair in admitted:
            logger.info("pair: %s  USD %d", pair.describe(), round(pair.reserve_usd))
        return admitted, len(pairs)

    def update_token_list(self, chain_id: str) -> UpdateReport:
        chain_id = chain_id.lower()
        policy = self.policy_for(chain_id)
        with correlation_scope(chain_id):
            base = self._store.load_base_list(chain_id)
            logger.info("Tokenlist base, %d tokens", len(base.tokens))

            admitted, fetched = self.retrieve_pairs(policy)
            added, merged = merge_pairs(admitted, policy, base)
            logger.info("Tokenlist updated, %d tokens", len(base.tokens))

            list_config = self._config.tokenlist
            new_list = build_list(
                policy.display_name,
                base.tokens,
                list_config.timestamp,
                list_config.version_major,
                list_config.version_minor,
                list_config.version_patch,
                name_template=list_config.name_template,
                logo_uri=list_config.logo_uri,
            )
            written = False
            if self._dry_run:
                logger.info("Dry run, not writing token list for %s", chain_id)
            else:
                written = self._store.persist_list(chain_id, new_list)

            METRICS.increment("pairs.admitted", merged)
            METRICS.increment("tokens.added", len(added))
            METRICS.gauge(f"tokenlist.size.{chain_id}", len(new_list.tokens))
            report = UpdateReport(
                chain_id=chain_id,
                fetched=fetched,
                admitted=merged,
                skipped=fetched - merged,
                added=added,
                total=len(new_list.tokens),
                written=written,
                finished_at=utc_now(),
            )
            logger.info(
                "Chain %s: %d added, %d total, written=%s",
                chain_id,
                len(added),
                report.total,
                written,
                extra={"added": added},
            )
            return report


__all__ = ["TokenListUpdater", "filter_pairs", "merge_pairs"]
