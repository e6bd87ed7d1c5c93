"""
Lazy line splitting over decoded export text.

Lines end at LF or CRLF. Only the current partial line and the chunk being
split are held in memory, so a multi-GB export streams in constant space.
"""
from typing import AsyncIterable, AsyncIterator, List

COLUMN_SEPARATOR = "\t"


def _strip_terminator(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


async def iter_lines(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield logical lines in file order, skipping blank ones."""
    pending = ""
    async for chunk in chunks:
        pending += chunk
        start = 0
        while True:
            end = pending.find("\n", start)
            if end == -1:
                break
            line = _strip_terminator(pending[start:end])
            start = end + 1
            if line.strip():
                yield line
        pending = pending[start:]

    # No LF follows the final line, so a trailing CR is data
    if pending.strip():
        yield pending


def split_columns(line: str) -> List[str]:
    """Split a TSV line. Editor exports never quote or escape tabs."""
    return line.split(COLUMN_SEPARATOR)
