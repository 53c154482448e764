"""File-backed access to a chain's allowlist, logos, and token lists."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Protocol

from ..config.settings import RepositoryConfig, get_app_config
from ..errors import FilesystemError, MalformedTokenError
from ..monitoring.logger import get_logger
from .schemas import TokenList


class TokenListStore(Protocol):
    """Interface the updater needs from its storage backend."""

    def read_allowlist(self, chain_id: str) -> List[str]:
        ...

    def logo_exists(self, chain_id: str, address: str) -> bool:
        ...

    def load_base_list(self, chain_id: str) -> TokenList:
        ...

    def persist_list(self, chain_id: str, token_list: TokenList) -> bool:
        ...


class TokenListRepository:
    """Reads and writes the per-chain files of an asset repository checkout.

    Layout, relative to ``root``::

        blockchains/<chain>/allowlist.json
        blockchains/<chain>/assets/<checksummed address>/logo.png
        blockchains/<chain>/tokenlist-base.json
        blockchains/<chain>/tokenlist.json
    """

    def __init__(self, config: Optional[RepositoryConfig] = None, *, root: Optional[Path] = None) -> None:
        self._config = config or get_app_config().repository
        self._root = Path(root) if root is not None else Path(self._config.root)
        self._logger = get_logger(__name__)

    @property
    def root(self) -> Path:
        return self._root

    def chain_path(self, chain_id: str) -> Path:
        return self._root / self._config.blockchains_dir / chain_id

    def allowlist_path(self, chain_id: str) -> Path:
        return self.chain_path(chain_id) / self._config.allowlist_file

    def logo_path(self, chain_id: str, address: str) -> Path:
        return self.chain_path(chain_id) / self._config.assets_dir / address / self._config.logo_file

    def base_list_path(self, chain_id: str) -> Path:
        return self.chain_path(chain_id) / self._config.base_tokenlist_file

    def output_list_path(self, chain_id: str) -> Path:
        return self.chain_path(chain_id) / self._config.tokenlist_file

    def _read_json(self, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except OSError as exc:
            raise FilesystemError(f"Unable to read {path}: {exc}") from exc
        except ValueError as exc:
            raise FilesystemError(f"Invalid JSON in {path}: {exc}") from exc

    def read_allowlist(self, chain_id: str) -> List[str]:
        path = self.allowlist_path(chain_id)
        payload = self._read_json(path)
        if not isinstance(payload, list):
            raise FilesystemError(f"Allowlist {path} must be a JSON array")
        return [str(item) for item in payload if isinstance(item, str)]

    def logo_exists(self, chain_id: str, address: str) -> bool:
        return self.logo_path(chain_id, address).is_file()

    def load_base_list(self, chain_id: str) -> TokenList:
        path = self.base_list_path(chain_id)
        try:
            return TokenList.from_dict(self._read_json(path))
        except MalformedTokenError as exc:
            raise FilesystemError(f"Unusable token list {path}: {exc}") from exc

    def serialize(self, token_list: TokenList) -> str:
        return json.dumps(token_list.to_dict(), indent=self._config.json_indent, ensure_ascii=False) + "\n"

    def persist_list(self, chain_id: str, token_list: TokenList) -> bool:
        """Write ``token_list`` to the chain's output file.

        Returns ``False`` without touching the file when its content would not
        change, so repeated runs over unchanged inputs leave the file alone.
        """

        path = self.output_list_path(chain_id)
        content = self.serialize(token_list)
        try:
            if path.is_file() and path.read_text(encoding="utf-8") == content:
                self._logger.info("Token list %s unchanged", path)
                return False
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise FilesystemError(f"Unable to write {path}: {exc}") from exc
        self._logger.info("Token list written to %s, %d tokens", path, len(token_list.tokens))
        return True


__all__ = ["TokenListRepository", "TokenListStore"]
