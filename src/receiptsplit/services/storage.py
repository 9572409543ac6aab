from __future__ import annotations

import asyncio
import re
import secrets
import time
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

from receiptsplit.logging import get_logger
from receiptsplit.models import StoredImage

KEY_PREFIX = "receipts"
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class ImageStore(Protocol):
    async def store(self, data: bytes, content_type: str, filename: str = "upload.bin") -> StoredImage: ...

    async def fetch(self, ref: str) -> bytes: ...


def make_key(filename: str) -> str:
    safe = _UNSAFE.sub("_", Path(filename).name) or "upload.bin"
    return f"{KEY_PREFIX}/{int(time.time() * 1000)}-{secrets.token_hex(4)}-{safe}"


class LocalImageStorage:
    """Receipt images kept on the local filesystem under ``root``."""

    def __init__(self, root: Path, public_base_url: Optional[str] = None) -> None:
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._log = get_logger(__name__)

    async def store(self, data: bytes, content_type: str, filename: str = "upload.bin") -> StoredImage:
        key = make_key(filename)
        path = self._path(key)
        await asyncio.to_thread(self._write, path, data)
        self._log.info("storage.store", key=key, size=len(data), content_type=content_type)
        return StoredImage(key=key, url=self.url_for(key))

    async def fetch(self, ref: str) -> bytes:
        key = self.key_from_ref(ref)
        path = self._path(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        data = await asyncio.to_thread(path.read_bytes)
        self._log.info("storage.fetch", key=key, size=len(data))
        return data

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return self._path(key).as_uri()

    def key_from_ref(self, ref: str) -> str:
        if self.public_base_url and ref.startswith(self.public_base_url + "/"):
            return ref[len(self.public_base_url) + 1:]
        if ref.startswith("file://"):
            path = Path(unquote(urlparse(ref).path)).resolve()
            return path.relative_to(self.root).as_posix()
        return ref

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"key escapes storage root: {key}")
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
