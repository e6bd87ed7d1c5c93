"""
Per-kind batch buffering and flush failure accounting.
"""
import asyncio

from gads_ingest.services.batch_buffer import BatchBuffer, BatchBufferSet
from gads_ingest.services.records import KeywordRecord, RecordKind, CampaignRecord


def _keyword(n: int) -> KeywordRecord:
    return KeywordRecord(import_id=1, account_id="a", campaign_name="C", ad_group_name="AG", keyword=f"kw {n}")


class _Sink:
    def __init__(self, fail_on_calls=()):
        self.batches = []
        self.fail_on_calls = set(fail_on_calls)

    async def __call__(self, batch):
        self.batches.append(len(batch))
        if len(self.batches) in self.fail_on_calls:
            raise RuntimeError("database unavailable")
        return len(batch)


def test_keyword_batches_of_1000():
    sink = _Sink()
    buffer = BatchBuffer(kind=RecordKind.KEYWORD, threshold=1000, sink=sink)

    async def run():
        for n in range(2500):
            await buffer.add(_keyword(n))
        await buffer.flush()

    asyncio.run(run())
    assert sink.batches == [1000, 1000, 500]
    assert buffer.flushed == 2500
    assert buffer.pending == []


def test_flush_of_empty_buffer_is_noop():
    sink = _Sink()
    buffer = BatchBuffer(kind=RecordKind.KEYWORD, threshold=10, sink=sink)
    asyncio.run(buffer.flush())
    assert sink.batches == []
    assert buffer.flush_calls == 0


def test_failed_batch_is_counted_and_buffer_continues():
    sink = _Sink(fail_on_calls={2})
    buffer = BatchBuffer(kind=RecordKind.KEYWORD, threshold=1000, sink=sink)

    async def run():
        for n in range(2500):
            await buffer.add(_keyword(n))
        await buffer.flush()

    asyncio.run(run())
    assert sink.batches == [1000, 1000, 500]
    assert buffer.flushed == 1500
    assert buffer.failed_batches == 1
    assert buffer.lost_records == 1000


def test_buffer_set_routes_by_kind():
    campaigns, keywords = _Sink(), _Sink()
    buffers = BatchBufferSet(
        sinks={
            RecordKind.CAMPAIGN: campaigns,
            RecordKind.AD_GROUP: _Sink(),
            RecordKind.KEYWORD: keywords,
            RecordKind.AD: _Sink(),
        },
        thresholds={RecordKind.CAMPAIGN: 2, RecordKind.AD_GROUP: 2, RecordKind.KEYWORD: 2, RecordKind.AD: 2},
    )

    async def run():
        await buffers.add(CampaignRecord(import_id=1, account_id="a", campaign_name="C"))
        for n in range(3):
            await buffers.add(_keyword(n))
        await buffers.flush_all()

    asyncio.run(run())
    assert campaigns.batches == [1]
    assert keywords.batches == [2, 1]
    assert buffers[RecordKind.KEYWORD].flushed == 3
    assert buffers.failed_batches == 0


def test_failure_summary_names_kind():
    buffers = BatchBufferSet(
        sinks={kind: _Sink(fail_on_calls={1}) for kind in RecordKind},
        thresholds={kind: 10 for kind in RecordKind},
    )

    async def run():
        await buffers.add(_keyword(1))
        await buffers.flush_all()

    asyncio.run(run())
    assert buffers.failed_batches == 1
    assert buffers.lost_records == 1
    assert "keywords: 1 batch(es), 1 record(s)" in buffers.failure_summary()
