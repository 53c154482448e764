from __future__ import annotations

import json
from pathlib import Path

import pytest

from tokenlist_curator.config.settings import RepositoryConfig
from tokenlist_curator.datalake.schemas import CanonicalToken, RawPair, TokenList
from tokenlist_curator.datalake.storage import TokenListRepository
from tokenlist_curator.errors import FilesystemError, MalformedTokenError

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

BASE_LIST = {
    "name": "Trust Wallet: Ethereum",
    "logoURI": "https://trustwallet.com/assets/images/favicon.png",
    "timestamp": "2020-10-03T12:37:57.000+00:00",
    "tokens": [
        {
            "asset": f"c60_t{WETH}",
            "type": "ERC20",
            "address": WETH,
            "name": "WETH",
            "symbol": "WETH",
            "decimals": 18,
            "logoURI": f"https://assets-cdn.trustwallet.com/blockchains/ethereum/assets/{WETH}/logo.png",
            "pairs": [{"base": "c60"}],
        }
    ],
    "version": {"major": 0, "minor": 1, "patch": 0},
}


def _repository(tmp_path: Path) -> TokenListRepository:
    return TokenListRepository(RepositoryConfig(root=tmp_path))


def _write_chain_file(tmp_path: Path, name: str, payload) -> Path:
    path = tmp_path / "blockchains" / "ethereum" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return path


def test_repository_paths_follow_asset_layout(tmp_path: Path) -> None:
    repo = _repository(tmp_path)
    chain = tmp_path / "blockchains" / "ethereum"
    assert repo.allowlist_path("ethereum") == chain / "allowlist.json"
    assert repo.logo_path("ethereum", WETH) == chain / "assets" / WETH / "logo.png"
    assert repo.base_list_path("ethereum") == chain / "tokenlist-base.json"
    assert repo.output_list_path("ethereum") == chain / "tokenlist.json"


def test_read_allowlist_and_logo_lookup(tmp_path: Path) -> None:
    repo = _repository(tmp_path)
    _write_chain_file(tmp_path, "allowlist.json", [WETH, 42, "0xabc"])
    logo = repo.logo_path("ethereum", WETH)
    logo.parent.mkdir(parents=True)
    logo.write_bytes(b"\x89PNG")

    assert repo.read_allowlist("ethereum") == [WETH, "0xabc"]
    assert repo.logo_exists("ethereum", WETH)
    assert not repo.logo_exists("ethereum", "0x" + "1" * 40)


def test_allowlist_must_be_an_array(tmp_path: Path) -> None:
    _write_chain_file(tmp_path, "allowlist.json", {"tokens": []})
    with pytest.raises(FilesystemError):
        _repository(tmp_path).read_allowlist("ethereum")


def test_missing_or_invalid_base_list_raises(tmp_path: Path) -> None:
    repo = _repository(tmp_path)
    with pytest.raises(FilesystemError):
        repo.load_base_list("ethereum")

    _write_chain_file(tmp_path, "tokenlist-base.json", "{not json")
    with pytest.raises(FilesystemError):
        repo.load_base_list("ethereum")

    _write_chain_file(tmp_path, "tokenlist-base.json", {"tokens": [{"name": "no address"}]})
    with pytest.raises(FilesystemError):
        repo.load_base_list("ethereum")


def test_base_list_round_trips_unknown_fields(tmp_path: Path) -> None:
    repo = _repository(tmp_path)
    _write_chain_file(tmp_path, "tokenlist-base.json", BASE_LIST)

    token_list = repo.load_base_list("ethereum")

    assert token_list.addresses() == [WETH]
    assert token_list.tokens[0].extras == {"pairs": [{"base": "c60"}]}
    assert token_list.to_dict() == BASE_LIST


def test_persist_list_skips_unchanged_content(tmp_path: Path) -> None:
    repo = _repository(tmp_path)
    token_list = TokenList.from_dict(BASE_LIST)

    assert repo.persist_list("ethereum", token_list) is True
    path = repo.output_list_path("ethereum")
    content = path.read_text()
    assert content.endswith("}\n")
    assert '\n    "name": "Trust Wallet: Ethereum"' in content
    assert json.loads(content) == BASE_LIST

    assert repo.persist_list("ethereum", token_list) is False
    assert path.read_text() == content
    assert [p.name for p in path.parent.iterdir()] == ["tokenlist.json"]


def test_raw_pair_from_payload() -> None:
    pair = RawPair.from_payload(
        {
            "id": "0xpair",
            "reserveUSD": "1234567.89",
            "token0": {"id": WETH.lower(), "symbol": "WETH", "name": "Wrapped Ether", "decimals": "18"},
            "token1": {"id": "0x" + "1" * 40, "symbol": "TKX", "name": "Token X", "decimals": 6},
        }
    )
    assert pair.reserve_usd == pytest.approx(1234567.89)
    assert pair.token0 is not None and pair.token0.decimals_raw == "18"
    assert pair.token1 is not None and pair.token1.decimals_raw == 6
    assert pair.describe() == "WETH -- TKX"

    partial = RawPair.from_payload({"id": "0xpair"})
    assert partial.token0 is None and partial.token1 is None
    assert partial.reserve_usd == 0.0


@pytest.mark.parametrize(
    "payload",
    [
        "not-a-dict",
        {"id": "0xpair", "reserveUSD": "lots"},
        {"id": "0xpair", "reserveUSD": "1", "token0": {"symbol": "NOID", "decimals": "18"}},
        {"id": "0xpair", "reserveUSD": "1", "token0": {"id": "0x1", "symbol": "T", "decimals": None}},
    ],
)
def test_raw_pair_rejects_malformed_payloads(payload) -> None:
    with pytest.raises(MalformedTokenError):
        RawPair.from_payload(payload)


def test_canonical_tokens_compare_by_address() -> None:
    first = CanonicalToken(asset="a", type="ERC20", address=WETH, name="One", symbol="A", decimals=18, logo_uri="x")
    second = CanonicalToken(asset="b", type="BEP20", address=WETH, name="Two", symbol="B", decimals=6, logo_uri="y")
    assert first == second
    assert len({first, second}) == 1
