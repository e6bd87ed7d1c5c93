"""
Import ledger for editor exports.

The pipeline only talks to the ImportLedger contract: create an entry for a
file fingerprint, batch-insert records, report progress, and finish the entry
as completed or failed. SqlImportLedger implements it on the SQLAlchemy models
and adds the read / delete operations used by the API.

Lifecycle: processing → completed | failed. Terminal entries are never moved
back to processing; a failed entry is replaced (with its partial records)
when the same file is submitted again.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gads_ingest.errors import EditorImportError
from gads_ingest.models.editor_import import (
    EditorImport,
    EditorCampaign,
    EditorAdGroup,
    EditorKeyword,
    EditorAd,
)
from gads_ingest.utils.logger import log

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

DELETE_BATCH_SIZE = 500


@dataclass
class ImportStats:
    """Running counters for one import. Entity counts are records actually persisted."""
    total_rows: int = 0
    processed_rows: int = 0
    campaigns: int = 0
    ad_groups: int = 0
    keywords: int = 0
    ads: int = 0
    failed_batches: int = 0
    lost_records: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class LedgerCreateResult:
    id: int
    already_exists: bool


class ImportLedger(ABC):
    """Persistence contract used by the import pipeline."""

    @abstractmethod
    async def create(self, account_id: str, account_name: str, file_name: str, file_hash: str) -> LedgerCreateResult:
        """Create a processing entry, or report the existing entry for this file hash."""

    @abstractmethod
    async def batch_insert_campaigns(self, records: Sequence) -> int:
        pass

    @abstractmethod
    async def batch_insert_ad_groups(self, records: Sequence) -> int:
        pass

    @abstractmethod
    async def batch_insert_keywords(self, records: Sequence) -> int:
        pass

    @abstractmethod
    async def batch_insert_ads(self, records: Sequence) -> int:
        pass

    @abstractmethod
    async def update_progress(self, import_id: int, progress: int, stats: ImportStats) -> None:
        pass

    @abstractmethod
    async def complete(self, import_id: int, stats: ImportStats) -> None:
        pass

    @abstractmethod
    async def fail(self, import_id: int, error: str, stats: Optional[ImportStats] = None) -> None:
        pass


class SqlImportLedger(ImportLedger):
    """ImportLedger backed by the gads_editor_* tables."""

    def __init__(self, db: Session):
        self.db = db

    # ── Pipeline contract ───────────────────────────────────────────

    async def create(self, account_id: str, account_name: str, file_name: str, file_hash: str) -> LedgerCreateResult:
        existing = self.db.query(EditorImport).filter(EditorImport.file_hash == file_hash).first()
        if existing:
            if existing.status != STATUS_FAILED:
                log.info(f"Editor import: {file_name} matches import {existing.id} [{existing.status}], skipping")
                return LedgerCreateResult(id=existing.id, already_exists=True)
            log.info(f"Editor import: replacing failed import {existing.id} for {file_name}")
            self.delete_import(existing.id)

        entry = EditorImport(
            account_id=account_id,
            account_name=account_name,
            file_name=file_name,
            file_hash=file_hash,
            imported_at=datetime.utcnow(),
            status=STATUS_PROCESSING,
            progress=0,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # Another worker created the entry for this hash since the lookup above
            self.db.rollback()
            existing = self.db.query(EditorImport).filter(EditorImport.file_hash == file_hash).first()
            if existing is None:
                raise
            log.info(f"Editor import: {file_name} created concurrently as import {existing.id}, skipping")
            return LedgerCreateResult(id=existing.id, already_exists=True)
        self.db.refresh(entry)
        return LedgerCreateResult(id=entry.id, already_exists=False)

    async def batch_insert_campaigns(self, records: Sequence) -> int:
        return self._insert(EditorCampaign, records)

    async def batch_insert_ad_groups(self, records: Sequence) -> int:
        return self._insert(EditorAdGroup, records)

    async def batch_insert_keywords(self, records: Sequence) -> int:
        return self._insert(EditorKeyword, records)

    async def batch_insert_ads(self, records: Sequence) -> int:
        return self._insert(EditorAd, records)

    async def update_progress(self, import_id: int, progress: int, stats: ImportStats) -> None:
        entry = self._require(import_id)
        if entry.status != STATUS_PROCESSING:
            log.warning(f"Editor import {import_id}: progress update ignored, status is {entry.status}")
            return
        entry.progress = max(0, min(100, int(progress)))
        self._apply_stats(entry, stats)
        self.db.commit()

    async def complete(self, import_id: int, stats: ImportStats) -> None:
        entry = self._require(import_id)
        if entry.status != STATUS_PROCESSING:
            log.warning(f"Editor import {import_id}: cannot complete, status is {entry.status}")
            return
        entry.status = STATUS_COMPLETED
        entry.progress = 100
        self._apply_stats(entry, stats)
        self.db.commit()

    async def fail(self, import_id: int, error: str, stats: Optional[ImportStats] = None) -> None:
        entry = self._require(import_id)
        if entry.status != STATUS_PROCESSING:
            log.warning(f"Editor import {import_id}: cannot mark failed, status is {entry.status}")
            return
        entry.status = STATUS_FAILED
        entry.error = error[:2000]
        if stats is not None:
            self._apply_stats(entry, stats)
        self.db.commit()

    # ── Reads ───────────────────────────────────────────────────────

    def get(self, import_id: int) -> Optional[EditorImport]:
        return self.db.query(EditorImport).filter(EditorImport.id == import_id).first()

    def list_recent(self, limit: int = 20) -> List[EditorImport]:
        return (
            self.db.query(EditorImport)
            .order_by(EditorImport.imported_at.desc(), EditorImport.id.desc())
            .limit(limit)
            .all()
        )

    def latest_for_account(self, account_id: str) -> Optional[EditorImport]:
        return (
            self.db.query(EditorImport)
            .filter(EditorImport.account_id == account_id)
            .order_by(EditorImport.imported_at.desc(), EditorImport.id.desc())
            .first()
        )

    def summarize(self, import_id: int) -> Optional[Dict]:
        """Ledger entry plus keyword quality-score distribution and campaign-type counts."""
        entry = self.get(import_id)
        if not entry:
            return None

        distribution = {"score_1_to_3": 0, "score_4_to_6": 0, "score_7_to_10": 0, "no_score": 0}
        scores = (
            self.db.query(EditorKeyword.quality_score, func.count(EditorKeyword.id))
            .filter(EditorKeyword.import_id == import_id)
            .group_by(EditorKeyword.quality_score)
            .all()
        )
        for score, count in scores:
            distribution[_quality_bucket(score)] += count

        campaign_types = (
            self.db.query(EditorCampaign.campaign_type, func.count(EditorCampaign.id))
            .filter(EditorCampaign.import_id == import_id)
            .group_by(EditorCampaign.campaign_type)
            .order_by(func.count(EditorCampaign.id).desc())
            .all()
        )

        summary = entry.to_dict()
        summary["quality_score_distribution"] = distribution
        summary["campaign_types"] = [
            {"type": campaign_type or "Unknown", "count": count} for campaign_type, count in campaign_types
        ]
        return summary

    # ── Maintenance ─────────────────────────────────────────────────

    def delete_import(self, import_id: int, batch_size: int = DELETE_BATCH_SIZE) -> Optional[int]:
        """Delete an entry and its records in bounded batches. Returns rows deleted, or None if unknown."""
        entry = self.get(import_id)
        if not entry:
            return None

        deleted = 0
        # Keywords first: by far the largest table
        for model in (EditorKeyword, EditorAd, EditorAdGroup, EditorCampaign):
            while True:
                ids = [
                    row_id for (row_id,) in
                    self.db.query(model.id).filter(model.import_id == import_id).limit(batch_size).all()
                ]
                if not ids:
                    break
                self.db.query(model).filter(model.id.in_(ids)).delete(synchronize_session=False)
                self.db.commit()
                deleted += len(ids)

        self.db.delete(entry)
        self.db.commit()
        log.info(f"Editor import {import_id}: deleted with {deleted} record(s)")
        return deleted + 1

    # ── Helpers ─────────────────────────────────────────────────────

    def _insert(self, model, records: Sequence) -> int:
        if not records:
            return 0
        try:
            self.db.bulk_insert_mappings(model, [record.to_row() for record in records])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return len(records)

    def _require(self, import_id: int) -> EditorImport:
        entry = self.get(import_id)
        if not entry:
            raise EditorImportError(f"Import {import_id} not found", import_id=import_id)
        return entry

    @staticmethod
    def _apply_stats(entry: EditorImport, stats: ImportStats) -> None:
        for name, value in stats.to_dict().items():
            setattr(entry, name, value)


def _quality_bucket(score: Optional[float]) -> str:
    if score is None:
        return "no_score"
    if score <= 3:
        return "score_1_to_3"
    if score <= 6:
        return "score_4_to_6"
    return "score_7_to_10"
