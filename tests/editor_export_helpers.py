"""
Builders for synthetic editor exports and an in-memory ledger for pipeline tests.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from gads_ingest.services.import_ledger import ImportLedger, ImportStats, LedgerCreateResult

HEADER = [
    "Account", "Account name", "Campaign", "Labels", "Campaign Type", "Budget",
    "Campaign Status", "Ad Group", "Max CPC", "Ad Group Status", "Keyword",
    "Match Type", "Quality score", "Status", "Ad type", "Final URL",
    "Headline 1", "Headline 2", "Headline 3", "Description 1", "Description 2",
]


def row(**cells) -> List[str]:
    """One data row in HEADER order; keyword args use header names with spaces as underscores."""
    values = {name.lower().replace(" ", "_"): "" for name in HEADER}
    for key, value in cells.items():
        assert key in values, key
        values[key] = value
    return list(values.values())


def export_text(rows: Iterable[Sequence[str]], header: Sequence[str] = HEADER, newline: str = "\r\n") -> str:
    lines = ["\t".join(header)] + ["\t".join(r) for r in rows]
    return newline.join(lines) + newline


def export_bytes(text: str, bom: bool = True) -> bytes:
    """Encode as Editor does: UTF-16 LE with a FF FE byte-order mark."""
    return ("\ufeff" + text if bom else text).encode("utf-16-le")


def chunked(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


async def byte_source(chunks: Iterable[bytes]):
    for chunk in chunks:
        yield chunk


async def collect(source) -> list:
    return [item async for item in source]


class RecordingLedger(ImportLedger):
    """ImportLedger that keeps everything in memory and records every call."""

    def __init__(self, existing: Optional[Dict[str, int]] = None, failing_kinds: Sequence[str] = ()):
        self.existing = dict(existing or {})
        self.failing_kinds = set(failing_kinds)
        self.calls: List[tuple] = []
        self.inserted: Dict[str, list] = {"campaigns": [], "ad_groups": [], "keywords": [], "ads": []}
        self.batch_sizes: Dict[str, List[int]] = {"campaigns": [], "ad_groups": [], "keywords": [], "ads": []}
        self.progress: List[int] = []
        self.status: Optional[str] = None
        self.error: Optional[str] = None
        self.final_stats: Optional[ImportStats] = None
        self.created: Optional[dict] = None

    async def create(self, account_id, account_name, file_name, file_hash) -> LedgerCreateResult:
        self.calls.append(("create", file_hash))
        if file_hash in self.existing:
            return LedgerCreateResult(id=self.existing[file_hash], already_exists=True)
        self.created = {
            "account_id": account_id,
            "account_name": account_name,
            "file_name": file_name,
            "file_hash": file_hash,
        }
        self.status = "processing"
        return LedgerCreateResult(id=1, already_exists=False)

    async def _insert(self, kind: str, records) -> int:
        self.calls.append(("insert", kind, len(records)))
        self.batch_sizes[kind].append(len(records))
        if kind in self.failing_kinds:
            raise RuntimeError(f"{kind} insert failed")
        self.inserted[kind].extend(records)
        return len(records)

    async def batch_insert_campaigns(self, records) -> int:
        return await self._insert("campaigns", records)

    async def batch_insert_ad_groups(self, records) -> int:
        return await self._insert("ad_groups", records)

    async def batch_insert_keywords(self, records) -> int:
        return await self._insert("keywords", records)

    async def batch_insert_ads(self, records) -> int:
        return await self._insert("ads", records)

    async def update_progress(self, import_id, progress, stats) -> None:
        self.calls.append(("progress", progress))
        self.progress.append(progress)

    async def complete(self, import_id, stats) -> None:
        self.calls.append(("complete",))
        self.status = "completed"
        self.final_stats = stats

    async def fail(self, import_id, error, stats=None) -> None:
        self.calls.append(("fail", error))
        self.status = "failed"
        self.error = error
        self.final_stats = stats

    @property
    def insert_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "insert"]
