"""GraphQL subgraph client returning candidate trading pairs."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import requests
from cachetools import TTLCache
from tenacity import RetryError, Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..config.settings import SubgraphConfig, get_app_config
from ..datalake.schemas import RawPair
from ..errors import MalformedTokenError, TransportError
from ..monitoring.logger import get_logger
from ..monitoring.metrics import METRICS


def _is_transient(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx are worth another attempt."""

    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError):
        status = getattr(getattr(exc, "response", None), "status_code", None)
        return status == 429 or (status is not None and status >= 500)
    return False


class SubgraphClient:
    """Posts a pairs query to a Uniswap-v2-style subgraph with retries."""

    def __init__(
        self,
        config: Optional[SubgraphConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config or get_app_config().subgraph
        self._session = session or requests.Session()
        self._cache: TTLCache[Tuple[str, str], List[Any]] = TTLCache(
            maxsize=16, ttl=self._config.cache_ttl_seconds
        )
        self._logger = get_logger(__name__)

    def _post(self, url: str, query: str) -> Any:
        body = {"operationName": "pairs", "variables": {}, "query": query}
        response = self._session.post(
            url,
            json=body,
            headers={"User-Agent": self._config.user_agent},
            timeout=self._config.http_timeout,
        )
        response.raise_for_status()
        return response.json()

    def _post_with_retry(self, url: str, query: str) -> Any:
        retrying = Retrying(
            wait=wait_exponential(
                multiplier=1,
                min=self._config.backoff_min_seconds,
                max=self._config.backoff_max_seconds,
            ),
            stop=stop_after_attempt(self._config.max_attempts),
            retry=retry_if_exception(_is_transient),
        )
        try:
            return retrying(self._post, url, query)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            raise TransportError(f"Subgraph {url} failed after {self._config.max_attempts} attempts: {cause}") from cause
        except (requests.RequestException, ValueError) as exc:
            raise TransportError(f"Subgraph {url} request failed: {exc}") from exc

    def fetch_raw_pairs(self, url: str, query: str) -> List[Any]:
        cache_key = (url, query)
        if cache_key in self._cache:
            return self._cache[cache_key]
        payload = self._post_with_retry(url, query)
        if not isinstance(payload, dict):
            raise TransportError(f"Subgraph {url} returned a non-object payload")
        errors = payload.get("errors")
        if errors:
            raise TransportError(f"Subgraph {url} returned errors: {errors}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise TransportError(f"Subgraph {url} returned no data object")
        pairs = data.get("pairs")
        if pairs is None:
            raise TransportError(f"Subgraph {url} returned no pairs")
        if not isinstance(pairs, list):
            raise TransportError(f"Subgraph {url} returned pairs of type {type(pairs).__name__}")
        self._cache[cache_key] = pairs
        return pairs

    def fetch_trading_pairs(self, url: str, query: str) -> List[RawPair]:
        """Fetch and validate candidate pairs, dropping malformed entries."""

        pairs: List[RawPair] = []
        for item in self.fetch_raw_pairs(url, query):
            try:
                pairs.append(RawPair.from_payload(item))
            except MalformedTokenError as exc:
                METRICS.increment("pairs.malformed")
                self._logger.warning("Skipping malformed pair from %s: %s", url, exc)
        METRICS.increment("pairs.fetched", len(pairs))
        return pairs


__all__ = ["SubgraphClient"]
