"""
SqlImportLedger against an in-memory SQLite database.
"""
import asyncio

import pytest

from gads_ingest.errors import EditorImportError
from gads_ingest.models.editor_import import EditorAdGroup, EditorCampaign, EditorImport, EditorKeyword
from gads_ingest.services.import_ledger import ImportStats, SqlImportLedger
from gads_ingest.services.records import (
    AdGroupBids,
    AdGroupRecord,
    AdRecord,
    CampaignRecord,
    KeywordQuality,
    KeywordRecord,
)


def _create(ledger, file_hash="hash-1", account_id="123-456-7890"):
    return asyncio.run(ledger.create(account_id, "Acme AU", "export.csv", file_hash))


def _keyword(import_id, keyword, score=None, campaign="Brand"):
    return KeywordRecord(
        import_id=import_id, account_id="123-456-7890", campaign_name=campaign, ad_group_name="Shoes",
        keyword=keyword, quality=KeywordQuality(quality_score=score),
    )


def _populate(ledger, import_id):
    async def run():
        await ledger.batch_insert_campaigns([
            CampaignRecord(import_id=import_id, account_id="123-456-7890", campaign_name="Brand",
                           campaign_type="Search", labels=["A", "B"], budget=50.0),
            CampaignRecord(import_id=import_id, account_id="123-456-7890", campaign_name="Generic",
                           campaign_type="Search"),
            CampaignRecord(import_id=import_id, account_id="123-456-7890", campaign_name="PMax",
                           campaign_type="Performance Max"),
        ])
        await ledger.batch_insert_ad_groups([
            AdGroupRecord(import_id=import_id, account_id="123-456-7890", campaign_name="Brand",
                          ad_group_name="Shoes", bids=AdGroupBids(max_cpc=1.2)),
        ])
        await ledger.batch_insert_keywords([
            _keyword(import_id, "a", 2), _keyword(import_id, "b", 5), _keyword(import_id, "c", 6),
            _keyword(import_id, "d", 9), _keyword(import_id, "e"),
        ])
        await ledger.batch_insert_ads([
            AdRecord(import_id=import_id, account_id="123-456-7890", campaign_name="Brand",
                     ad_group_name="Shoes", ad_type="Responsive search ad", headlines=["Shoes", "Sale"]),
        ])
    asyncio.run(run())


# ────────────────────────────────────────────
# LIFECYCLE
# ────────────────────────────────────────────


def test_create_processing_entry(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)

    assert created.already_exists is False
    entry = ledger.get(created.id)
    assert entry.status == "processing"
    assert entry.progress == 0
    assert entry.file_hash == "hash-1"


def test_same_hash_reports_existing(db_session):
    ledger = SqlImportLedger(db_session)
    first = _create(ledger)
    asyncio.run(ledger.complete(first.id, ImportStats(total_rows=1)))

    second = _create(ledger)
    assert second.already_exists is True
    assert second.id == first.id
    assert db_session.query(EditorImport).count() == 1


def test_failed_entry_is_replaced_with_its_records(db_session):
    ledger = SqlImportLedger(db_session)
    first = _create(ledger)
    _populate(ledger, first.id)
    asyncio.run(ledger.fail(first.id, "boom"))

    second = _create(ledger)
    assert second.already_exists is False
    assert ledger.get(second.id).status == "processing"
    assert db_session.query(EditorImport).count() == 1
    assert db_session.query(EditorKeyword).count() == 0
    assert db_session.query(EditorCampaign).count() == 0


def test_complete_sets_progress_and_stats(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    stats = ImportStats(total_rows=10, processed_rows=9, campaigns=2, ad_groups=3, keywords=4, ads=1)

    asyncio.run(ledger.update_progress(created.id, 40, stats))
    assert ledger.get(created.id).progress == 40

    asyncio.run(ledger.complete(created.id, stats))
    entry = ledger.get(created.id)
    assert entry.status == "completed"
    assert entry.progress == 100
    assert entry.to_dict()["stats"]["keywords"] == 4


def test_terminal_entries_are_not_reopened(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    asyncio.run(ledger.complete(created.id, ImportStats()))

    asyncio.run(ledger.fail(created.id, "late failure"))
    asyncio.run(ledger.update_progress(created.id, 10, ImportStats()))

    entry = ledger.get(created.id)
    assert entry.status == "completed"
    assert entry.error is None
    assert entry.progress == 100


def test_fail_records_error_and_stats(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    asyncio.run(ledger.fail(created.id, "Batch inserts failed", ImportStats(lost_records=1000, failed_batches=1)))

    entry = ledger.get(created.id)
    assert entry.status == "failed"
    assert entry.error == "Batch inserts failed"
    assert entry.lost_records == 1000


def test_unknown_import_raises(db_session):
    ledger = SqlImportLedger(db_session)
    with pytest.raises(EditorImportError):
        asyncio.run(ledger.complete(999, ImportStats()))


# ────────────────────────────────────────────
# INSERTS & READS
# ────────────────────────────────────────────


def test_batch_inserts_flatten_records(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    _populate(ledger, created.id)

    brand = db_session.query(EditorCampaign).filter(EditorCampaign.campaign_name == "Brand").one()
    assert brand.labels == ["A", "B"]
    assert brand.budget == 50.0
    assert brand.status == "Enabled"

    ad_group = db_session.query(EditorAdGroup).one()
    assert ad_group.max_cpc == 1.2
    assert db_session.query(EditorKeyword).count() == 5


def test_empty_batch_is_noop(db_session):
    ledger = SqlImportLedger(db_session)
    assert asyncio.run(ledger.batch_insert_keywords([])) == 0


def test_summarize(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    _populate(ledger, created.id)

    summary = ledger.summarize(created.id)
    assert summary["quality_score_distribution"] == {
        "score_1_to_3": 1,
        "score_4_to_6": 2,
        "score_7_to_10": 1,
        "no_score": 1,
    }
    assert summary["campaign_types"] == [
        {"type": "Search", "count": 2},
        {"type": "Performance Max", "count": 1},
    ]
    assert ledger.summarize(999) is None


def test_list_recent_and_latest_for_account(db_session):
    ledger = SqlImportLedger(db_session)
    first = _create(ledger, "h1", account_id="111")
    second = _create(ledger, "h2", account_id="111")
    _create(ledger, "h3", account_id="222")

    assert [e.file_hash for e in ledger.list_recent(limit=2)] == ["h3", "h2"]
    assert ledger.latest_for_account("111").id == second.id
    assert ledger.latest_for_account("333") is None
    assert first.id != second.id


def test_delete_import_in_batches(db_session):
    ledger = SqlImportLedger(db_session)
    created = _create(ledger)
    _populate(ledger, created.id)

    deleted = ledger.delete_import(created.id, batch_size=2)
    # 3 campaigns + 1 ad group + 5 keywords + 1 ad + the entry
    assert deleted == 11
    assert ledger.get(created.id) is None
    assert db_session.query(EditorKeyword).count() == 0
    assert ledger.delete_import(created.id) is None


def test_concurrent_create_reports_existing(db_session, monkeypatch):
    """Entry committed by another worker between the lookup and the insert."""
    ledger = SqlImportLedger(db_session)
    winner = _create(ledger)

    class _StaleLookup:
        def filter(self, *criteria):
            return self

        def first(self):
            return None

    real_query = db_session.query
    lookups = []

    def query(*entities):
        if not lookups:
            lookups.append(entities)
            return _StaleLookup()
        return real_query(*entities)

    monkeypatch.setattr(db_session, "query", query)
    created = _create(ledger)
    monkeypatch.undo()

    assert created.already_exists is True
    assert created.id == winner.id
    assert db_session.query(EditorImport).count() == 1
    assert ledger.get(winner.id).status == "processing"
