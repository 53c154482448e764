"""Canonical token identity: checksummed addresses and derived asset metadata."""

from __future__ import annotations

from typing import Callable, Union

from web3 import Web3

from ..datalake.schemas import CanonicalToken, RawToken
from ..errors import MalformedTokenError


def checksum_address(address: str) -> str:
    """Return the EIP-55 mixed-case form of ``address``.

    The checksummed form is the key used for every equality and de-duplication
    check downstream, so it is computed once here and nowhere else.
    """

    candidate = (address or "").strip()
    if not Web3.is_address(candidate):
        raise MalformedTokenError(f"invalid address {address!r}")
    return Web3.to_checksum_address(candidate)


def parse_decimals(raw: Union[str, int]) -> int:
    if isinstance(raw, bool):
        raise MalformedTokenError(f"invalid decimals {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise MalformedTokenError(f"invalid decimals {raw!r}")
        value = int(text)
    if value < 0:
        raise MalformedTokenError(f"negative decimals {raw!r}")
    return value


def asset_id(asset_id_base: int, address: str = "") -> str:
    if not address:
        return f"c{asset_id_base}"
    return f"c{asset_id_base}_t{address}"


def logo_uri(address: str, chain_folder: str, cdn_url: str) -> str:
    return f"{cdn_url.rstrip('/')}/blockchains/{chain_folder}/assets/{address}/logo.png"


def canonicalize(
    token: RawToken,
    asset_id_base: int,
    token_standard: str,
    logo_uri_builder: Callable[[str], str],
) -> CanonicalToken:
    address = checksum_address(token.address)
    return CanonicalToken(
        asset=asset_id(asset_id_base, address),
        type=token_standard,
        address=address,
        name=token.name,
        symbol=token.symbol,
        decimals=parse_decimals(token.decimals_raw),
        logo_uri=logo_uri_builder(address),
        tags=[],
    )


__all__ = ["asset_id", "canonicalize", "checksum_address", "logo_uri", "parse_decimals"]
