"""
Byte sources and file fingerprints for editor imports.

Imports never hold a whole export in memory: local files and uploads are
consumed as async iterators of byte chunks. A file's identity is the SHA-256
of its first 10KB, so re-submitting the same export (by upload or by path)
maps to the same ledger entry.
"""
import asyncio
import hashlib
import time
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Optional

from gads_ingest.errors import EditorImportTooLargeError


def fingerprint(prefix: bytes, force: bool = False) -> str:
    """SHA-256 of a file prefix. `force` adds a timestamp so the duplicate check is bypassed."""
    digest = hashlib.sha256(prefix).hexdigest()
    if force:
        return f"{digest}_{int(time.time() * 1000)}"
    return digest


def read_file_prefix(path: Path, size: int) -> bytes:
    with open(path, "rb") as f:
        return f.read(size)


async def iter_file_chunks(path: Path, chunk_size: int) -> AsyncIterator[bytes]:
    """Read a local file in chunks without blocking the event loop."""
    f = await asyncio.to_thread(open, path, "rb")
    try:
        while True:
            chunk = await asyncio.to_thread(f.read, chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        f.close()


async def iter_upload_chunks(upload, chunk_size: int, max_bytes: Optional[int] = None) -> AsyncIterator[bytes]:
    """Stream an UploadFile, enforcing the maximum upload size as bytes arrive."""
    received = 0
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        received += len(chunk)
        if max_bytes is not None and received > max_bytes:
            raise EditorImportTooLargeError(
                f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB; "
                "use the stream import with a server-side file path for larger exports."
            )
        yield chunk


async def prepend(first: bytes, source: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Re-attach an already consumed prefix in front of a byte source."""
    if first:
        yield first
    async for chunk in source:
        yield chunk


class CountingSource:
    """Wraps a byte source and counts bytes handed out (drives progress %)."""

    def __init__(self, source: AsyncIterable[bytes]):
        self._source = source
        self.bytes_read = 0

    async def __aiter__(self):
        async for chunk in self._source:
            self.bytes_read += len(chunk)
            yield chunk
