"""
UTF-16 LE → text decoding for Google Ads Editor exports.

Editor writes its CSV exports as UTF-16 little-endian with a FF FE byte-order
mark. Files are read in arbitrary byte chunks, so a chunk can end in the
middle of a 2-byte code unit (or between the two halves of a surrogate pair).
The decoder keeps those bytes back and prepends them to the next chunk.
"""
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator

BOM_UTF16_LE = b"\xff\xfe"
ENCODING = "utf-16-le"


def _is_high_surrogate(unit: bytes) -> bool:
    return 0xD8 <= unit[1] <= 0xDB


@dataclass
class Utf16LeDecoder:
    """Chunk-boundary-safe UTF-16 LE decoder.

    State:
        carry: bytes held back from the previous chunk (an odd trailing byte,
            and/or a trailing high surrogate waiting for its low half)
        bom_checked: True once the stream start has been inspected for a BOM
    """
    carry: bytes = b""
    bom_checked: bool = False

    def feed(self, chunk: bytes) -> str:
        """Decode one chunk, returning all text that is complete so far."""
        buffer = self.carry + chunk
        self.carry = b""

        if not self.bom_checked:
            if len(buffer) < 2:
                self.carry = buffer
                return ""
            if buffer.startswith(BOM_UTF16_LE):
                buffer = buffer[2:]
            self.bom_checked = True

        complete = len(buffer) - (len(buffer) % 2)
        if complete >= 2 and _is_high_surrogate(buffer[complete - 2:complete]):
            complete -= 2

        self.carry = buffer[complete:]
        if not complete:
            return ""
        return buffer[:complete].decode(ENCODING, errors="replace")

    def finish(self) -> str:
        """Decode whatever is left at end of stream. Never raises."""
        leftover, self.carry = self.carry, b""
        if not self.bom_checked:
            self.bom_checked = True
            if leftover.startswith(BOM_UTF16_LE):
                leftover = leftover[2:]
        if not leftover:
            return ""
        return leftover.decode(ENCODING, errors="replace")


async def decode_chunks(source: AsyncIterable[bytes], decoder: Utf16LeDecoder = None) -> AsyncIterator[str]:
    """Adapt an async byte source into decoded text chunks."""
    decoder = decoder or Utf16LeDecoder()
    async for chunk in source:
        text = decoder.feed(chunk)
        if text:
            yield text
    tail = decoder.finish()
    if tail:
        yield tail
