"""Pair qualification and token list merge engine."""

from .engine import TokenListUpdater
from .identity import canonicalize, checksum_address
from .merger import build_list, merge_pair, orient
from .policy import ChainPolicy, policy_from_config
from .primary import PrimarySide, is_primary, primary_side
from .qualifier import RejectionReason, evaluate_pair, qualify

__all__ = [
    "ChainPolicy",
    "PrimarySide",
    "RejectionReason",
    "TokenListUpdater",
    "build_list",
    "canonicalize",
    "checksum_address",
    "evaluate_pair",
    "is_primary",
    "merge_pair",
    "orient",
    "policy_from_config",
    "primary_side",
    "qualify",
]
