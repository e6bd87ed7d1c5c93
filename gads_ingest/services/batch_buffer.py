"""
Per-kind batch buffers for ledger inserts.

Each record kind accumulates in its own buffer and is submitted as one
batch-insert call when its threshold is reached. A failed insert is logged
and counted, and the buffer moves on: the batch is lost (no retry), the
import keeps going, and the loss is reported when the import finishes.
"""
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Sequence

from gads_ingest.services.records import RecordKind
from gads_ingest.utils.logger import log

BatchSink = Callable[[Sequence], Awaitable[object]]


@dataclass
class BatchBuffer:
    """Append-only buffer for one record kind."""
    kind: RecordKind
    threshold: int
    sink: BatchSink
    pending: List = field(default_factory=list)
    flushed: int = 0
    flush_calls: int = 0
    failed_batches: int = 0
    lost_records: int = 0

    async def add(self, record) -> None:
        self.pending.append(record)
        if len(self.pending) >= self.threshold:
            await self.flush()

    async def flush(self) -> None:
        if not self.pending:
            return
        batch, self.pending = self.pending, []
        self.flush_calls += 1
        try:
            await self.sink(batch)
        except Exception as e:
            self.failed_batches += 1
            self.lost_records += len(batch)
            log.error(f"Editor import: {self.kind.value} batch of {len(batch)} failed to insert: {e}")
            return
        self.flushed += len(batch)


class BatchBufferSet:
    """One BatchBuffer per RecordKind, routed by record.kind."""

    def __init__(self, sinks: Dict[RecordKind, BatchSink], thresholds: Dict[RecordKind, int]):
        self._buffers = {
            kind: BatchBuffer(kind=kind, threshold=thresholds[kind], sink=sinks[kind])
            for kind in RecordKind
        }

    def __getitem__(self, kind: RecordKind) -> BatchBuffer:
        return self._buffers[kind]

    async def add(self, record) -> None:
        await self._buffers[record.kind].add(record)

    async def flush_all(self) -> None:
        """Force-flush every non-empty buffer (end of stream)."""
        for buffer in self._buffers.values():
            await buffer.flush()

    @property
    def failed_batches(self) -> int:
        return sum(b.failed_batches for b in self._buffers.values())

    @property
    def lost_records(self) -> int:
        return sum(b.lost_records for b in self._buffers.values())

    def failure_summary(self) -> str:
        parts = [
            f"{b.kind.value}: {b.failed_batches} batch(es), {b.lost_records} record(s)"
            for b in self._buffers.values() if b.failed_batches
        ]
        return "Batch inserts failed - " + "; ".join(parts)
