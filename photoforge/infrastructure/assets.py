# infrastructure/assets.py
import base64
import binascii
import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import aiofiles

from photoforge.domain.errors import ConfigError, NotFoundError
from photoforge.infrastructure.downloader import Downloader

EMBED_ROOT = Path(__file__).resolve().parents[1] / "static"


class AssetSource:
    """Resolves asset URIs to bytes.

    Supported forms:
      http(s)://...       through the bounded downloader
      local:/a/b.png      file under the static root
      data:...;base64,..  inline payload
      a/b.png, /a/b.png   file embedded in the package (photoforge/static)
    """

    def __init__(self, downloader: Optional[Downloader], static_root: str, embed_root: Path = EMBED_ROOT):
        self.downloader = downloader
        self.static_root = Path(static_root)
        self.embed_root = Path(embed_root)

    async def get(self, uri: str, tag: str = "misc") -> bytes:
        if not uri:
            raise NotFoundError("empty asset uri", 404, uri=uri)

        if uri.startswith("data:"):
            return self._decode_data_uri(uri)

        scheme = urlparse(uri).scheme
        if scheme in ("http", "https"):
            if self.downloader is None:
                raise NotFoundError(f'no downloader configured for "{uri}"', 404, uri=uri)
            return await self.downloader.download(uri, tag)
        if scheme == "local":
            return await self._read_file(self.static_root, urlparse(uri).path, uri)
        if scheme:
            raise NotFoundError(f'unknown how to get "{uri}"', 404, uri=uri)
        return await self._read_file(self.embed_root, uri, uri)

    @staticmethod
    def _decode_data_uri(uri: str) -> bytes:
        try:
            _, encoded = uri.split(",", 1)
            return base64.b64decode(encoded + "===")
        except (ValueError, binascii.Error) as e:
            raise ConfigError(f"invalid data uri: {e}") from e

    @staticmethod
    async def _read_file(root: Path, rel: str, uri: str) -> bytes:
        path = (root / rel.lstrip("/")).resolve()
        if not path.is_relative_to(root.resolve()):
            raise NotFoundError(f'path escapes asset root "{uri}"', 404, uri=uri)
        if not os.path.isfile(path):
            raise NotFoundError(f'file not found "{uri}"', 404, uri=uri)
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
