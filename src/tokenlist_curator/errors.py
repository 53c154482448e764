"""Exception hierarchy shared by the curator modules."""

from __future__ import annotations


class CuratorError(RuntimeError):
    """Base class for all curator failures."""


class MalformedTokenError(CuratorError, ValueError):
    """Raised when a token or pair payload cannot be parsed into a usable value."""


class TransportError(CuratorError):
    """Raised when the subgraph cannot be queried or returns an unusable response."""


class FilesystemError(CuratorError):
    """Raised when a chain's registry files cannot be read or written."""


class UnknownChainError(CuratorError, KeyError):
    """Raised for chain ids that have no configuration."""

    def __str__(self) -> str:
        return f"Unknown chain '{self.args[0]}'" if self.args else "Unknown chain"


__all__ = [
    "CuratorError",
    "FilesystemError",
    "MalformedTokenError",
    "TransportError",
    "UnknownChainError",
]
