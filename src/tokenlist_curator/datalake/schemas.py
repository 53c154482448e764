"""Data models shared by ingestion, curation, and storage layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import MalformedTokenError


def _require_str(payload: Mapping[str, Any], key: str, default: Optional[str] = None) -> str:
    value = payload.get(key, default)
    if value is None:
        raise MalformedTokenError(f"missing '{key}'")
    if not isinstance(value, str):
        raise MalformedTokenError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True, slots=True)
class RawToken:
    """One side of a subgraph pair, exactly as the subgraph reported it."""

    address: str
    symbol: str
    name: str
    decimals_raw: Union[str, int]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawToken":
        if not isinstance(payload, Mapping):
            raise MalformedTokenError(f"token must be an object, got {type(payload).__name__}")
        decimals = payload.get("decimals")
        if isinstance(decimals, bool) or not isinstance(decimals, (str, int)):
            raise MalformedTokenError(f"unsupported decimals value {decimals!r}")
        return cls(
            address=_require_str(payload, "id"),
            symbol=_require_str(payload, "symbol", ""),
            name=_require_str(payload, "name", ""),
            decimals_raw=decimals,
        )


@dataclass(frozen=True, slots=True)
class RawPair:
    """A candidate liquidity pool returned by the subgraph."""

    id: str
    reserve_usd: float
    token0: Optional[RawToken]
    token1: Optional[RawToken]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawPair":
        if not isinstance(payload, Mapping):
            raise MalformedTokenError(f"pair must be an object, got {type(payload).__name__}")
        reserve = payload.get("reserveUSD")
        if reserve is None:
            reserve_usd = 0.0
        else:
            try:
                reserve_usd = float(reserve)
            except (TypeError, ValueError) as exc:
                raise MalformedTokenError(f"unparsable reserveUSD {reserve!r}") from exc
        token0 = payload.get("token0")
        token1 = payload.get("token1")
        return cls(
            id=str(payload.get("id") or ""),
            reserve_usd=reserve_usd,
            token0=RawToken.from_payload(token0) if token0 else None,
            token1=RawToken.from_payload(token1) if token1 else None,
        )

    def describe(self) -> str:
        first = self.token0.symbol if self.token0 else "?"
        second = self.token1.symbol if self.token1 else "?"
        return f"{first} -- {second}"


_TOKEN_KEYS = ("asset", "type", "address", "name", "symbol", "decimals", "logoURI", "tags")


@dataclass(eq=False, slots=True)
class CanonicalToken:
    """Normalized token list entry keyed by its checksummed address."""

    asset: str
    type: str
    address: str
    name: str
    symbol: str
    decimals: int
    logo_uri: str
    tags: List[str] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalToken):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CanonicalToken":
        try:
            return cls(
                asset=str(payload.get("asset", "")),
                type=str(payload.get("type", "")),
                address=str(payload["address"]),
                name=str(payload.get("name", "")),
                symbol=str(payload.get("symbol", "")),
                decimals=int(payload.get("decimals", 0)),
                logo_uri=str(payload.get("logoURI", "")),
                tags=[str(tag) for tag in payload.get("tags", []) or []],
                extras={
                    str(key): value
                    for key, value in payload.items()
                    if key not in _TOKEN_KEYS
                },
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedTokenError(f"invalid token list entry: {payload!r}") from exc

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "asset": self.asset,
            "type": self.type,
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "logoURI": self.logo_uri,
        }
        if self.tags:
            payload["tags"] = list(self.tags)
        payload.update(self.extras)
        return payload


@dataclass(frozen=True, slots=True)
class ListVersion:
    major: int = 0
    minor: int = 1
    patch: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"major": self.major, "minor": self.minor, "patch": self.patch}


@dataclass(slots=True)
class TokenList:
    """Versioned, timestamped envelope around an ordered token sequence."""

    name: str
    timestamp: str
    version: ListVersion = field(default_factory=ListVersion)
    tokens: List[CanonicalToken] = field(default_factory=list)
    logo_uri: str = ""

    def addresses(self) -> List[str]:
        return [token.address for token in self.tokens]

    def find(self, address: str) -> Optional[CanonicalToken]:
        wanted = address.lower()
        for token in self.tokens:
            if token.address.lower() == wanted:
                return token
        return None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TokenList":
        if not isinstance(payload, Mapping):
            raise MalformedTokenError("token list must be a JSON object")
        tokens = payload.get("tokens") or []
        if not isinstance(tokens, list):
            raise MalformedTokenError("token list 'tokens' must be an array")
        version = payload.get("version") or {}
        try:
            parsed_version = ListVersion(
                major=int(version.get("major", 0)),
                minor=int(version.get("minor", 1)),
                patch=int(version.get("patch", 0)),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise MalformedTokenError(f"invalid token list version: {version!r}") from exc
        return cls(
            name=str(payload.get("name", "")),
            timestamp=str(payload.get("timestamp", "")),
            version=parsed_version,
            tokens=[CanonicalToken.from_dict(item) for item in tokens],
            logo_uri=str(payload.get("logoURI", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name}
        if self.logo_uri:
            payload["logoURI"] = self.logo_uri
        payload["timestamp"] = self.timestamp
        payload["tokens"] = [token.to_dict() for token in self.tokens]
        payload["version"] = self.version.to_dict()
        return payload


@dataclass(slots=True)
class UpdateReport:
    """Outcome of one chain's list update."""

    chain_id: str
    fetched: int = 0
    admitted: int = 0
    skipped: int = 0
    added: List[str] = field(default_factory=list)
    total: int = 0
    written: bool = False
    finished_at: Optional[datetime] = None


__all__ = [
    "CanonicalToken",
    "ListVersion",
    "RawPair",
    "RawToken",
    "TokenList",
    "UpdateReport",
]
