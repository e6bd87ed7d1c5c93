"""
Google Ads Editor Export Import Pipeline

Streams a UTF-16 LE, tab-separated Google Ads Editor export into the import
ledger:

    bytes → Utf16LeDecoder → iter_lines → ColumnMap (header line)
          → RecordExtractor (data lines) → BatchBufferSet → ImportLedger

One pipeline instance handles exactly one import, sequentially and in file
order, so the campaign / ad group dedup sets need no locking. Memory use is
bounded by the current line plus the pending batches, whatever the file size.

Flow is fingerprint → deduplicate → import → log: the ledger entry is keyed
by the fingerprint of the first 10KB of the file.
"""
import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterable, Dict, Optional

from gads_ingest.config import Settings, get_settings
from gads_ingest.errors import EditorImportError, EditorImportStructureError, EditorImportTimeoutError
from gads_ingest.services.batch_buffer import BatchBufferSet
from gads_ingest.services.byte_sources import CountingSource
from gads_ingest.services.header_mapper import ColumnMap
from gads_ingest.services.import_ledger import ImportLedger, ImportStats
from gads_ingest.services.line_reader import iter_lines, split_columns
from gads_ingest.services.record_extractor import RecordExtractor
from gads_ingest.services.records import RecordKind
from gads_ingest.services.utf16_decoder import Utf16LeDecoder, decode_chunks
from gads_ingest.utils.logger import log

# Columns without which rows cannot be classified at all
REQUIRED_COLUMNS = ("campaign", "ad_group", "keyword")

UNKNOWN_ACCOUNT_ID = "unknown"
UNKNOWN_ACCOUNT_NAME = "Unknown Account"

# Progress stays below 100 until the import is marked complete
MAX_RUNNING_PROGRESS = 95


@dataclass
class ImportResult:
    """Outcome of one pipeline run, as returned to the API / CLI."""
    import_id: Optional[int]
    already_exists: bool = False
    success: bool = True
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    file_name: Optional[str] = None
    stats: ImportStats = field(default_factory=ImportStats)
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "import_id": self.import_id,
            "already_exists": self.already_exists,
            "success": self.success,
            "account_id": self.account_id,
            "account_name": self.account_name,
            "file_name": self.file_name,
            "stats": self.stats.to_dict(),
            "error": self.error,
        }


class EditorImportPipeline:
    """Single-use streaming importer for one editor export."""

    def __init__(self, ledger: ImportLedger, settings: Settings = None):
        self.ledger = ledger
        self.settings = settings or get_settings()
        self.stats = ImportStats()
        self.import_id: Optional[int] = None
        self.account_id: Optional[str] = None
        self.account_name: Optional[str] = None
        self._column_map: Optional[ColumnMap] = None
        self._extractor: Optional[RecordExtractor] = None
        self._buffers = BatchBufferSet(
            sinks={
                RecordKind.CAMPAIGN: ledger.batch_insert_campaigns,
                RecordKind.AD_GROUP: ledger.batch_insert_ad_groups,
                RecordKind.KEYWORD: ledger.batch_insert_keywords,
                RecordKind.AD: ledger.batch_insert_ads,
            },
            thresholds={
                RecordKind.CAMPAIGN: self.settings.campaign_batch_size,
                RecordKind.AD_GROUP: self.settings.ad_group_batch_size,
                RecordKind.KEYWORD: self.settings.keyword_batch_size,
                RecordKind.AD: self.settings.ad_batch_size,
            },
        )
        self._finished = False
        self._started = False

    async def run(
        self,
        source: AsyncIterable[bytes],
        file_name: str,
        file_hash: str,
        total_bytes: Optional[int] = None,
    ) -> ImportResult:
        """Import one export.

        Args:
            source: Raw UTF-16 LE bytes in arbitrary chunks
            file_name: Original file name, stored on the ledger entry
            file_hash: Fingerprint of the file prefix (see byte_sources.fingerprint)
            total_bytes: File size when known; used for the progress percentage

        Returns:
            ImportResult. `already_exists` is set when the fingerprint matched an
            existing import; `success` is False when any batch insert was lost.

        Raises:
            EditorImportStructureError: header line lacks campaign / ad group / keyword columns
            EditorImportError: any other failure (the ledger entry is marked failed)
        """
        if self._started:
            raise EditorImportError("EditorImportPipeline instances are single-use")
        self._started = True

        counting = CountingSource(source)
        log.info(f"Editor import: starting {file_name}")

        try:
            async for line in iter_lines(decode_chunks(counting, Utf16LeDecoder())):
                self.stats.total_rows += 1
                columns = split_columns(line)

                if self._column_map is None:
                    self._read_header(columns)
                    continue

                if self.import_id is None:
                    created = await self._open_import(columns, file_name, file_hash)
                    if created.already_exists:
                        return self._duplicate_result(created.id, file_name)

                await self._process_row(columns)

                if self.stats.processed_rows % self.settings.progress_interval_rows == 0:
                    await self._report_progress(counting.bytes_read, total_bytes)

            if self._column_map is None:
                raise EditorImportStructureError(f"{file_name} is empty: no header line found")

            if self.import_id is None:
                # Header-only export: still record the attempt
                created = await self._open_import([], file_name, file_hash)
                if created.already_exists:
                    return self._duplicate_result(created.id, file_name)

            return await self._finish(file_name)

        except EditorImportError as e:
            await self._fail_open_import(str(e))
            e.import_id = e.import_id or self.import_id
            e.stats = e.stats or self.stats.to_dict()
            raise
        except Exception as e:
            log.error(f"Editor import: {file_name} failed after {self.stats.processed_rows} rows: {e}")
            await self._fail_open_import(str(e))
            raise EditorImportError(str(e), import_id=self.import_id, stats=self.stats.to_dict()) from e

    # ── Steps ───────────────────────────────────────────────────────

    def _read_header(self, headers) -> None:
        column_map = ColumnMap.from_headers(headers)
        missing = column_map.missing(REQUIRED_COLUMNS)
        if missing:
            raise EditorImportStructureError(
                f"Header is missing required column(s) {', '.join(missing)}; "
                "export the account from Google Ads Editor with campaign, ad group and keyword columns"
            )
        self._column_map = column_map
        log.info(
            f"Editor import: header parsed, {column_map.column_count} columns, "
            f"{len(column_map.headline_indices)} headline / {len(column_map.description_indices)} description columns"
        )

    async def _open_import(self, columns, file_name: str, file_hash: str):
        self.account_id = self._column_map.value(columns, "account") or UNKNOWN_ACCOUNT_ID
        self.account_name = self._column_map.value(columns, "account_name") or UNKNOWN_ACCOUNT_NAME
        log.info(f"Editor import: account {self.account_name} ({self.account_id})")

        created = await self.ledger.create(
            account_id=self.account_id,
            account_name=self.account_name,
            file_name=file_name,
            file_hash=file_hash,
        )
        if not created.already_exists:
            self.import_id = created.id
            self._extractor = RecordExtractor(
                column_map=self._column_map,
                import_id=created.id,
                account_id=self.account_id,
            )
        return created

    async def _process_row(self, columns) -> None:
        extracted = self._extractor.extract(columns)
        for record in extracted.records():
            await self._buffers.add(record)
            self._refresh_entity_counts()
        self.stats.processed_rows += 1

    async def _report_progress(self, bytes_read: int, total_bytes: Optional[int]) -> None:
        progress = 0
        if total_bytes:
            progress = min(MAX_RUNNING_PROGRESS, round(bytes_read * 100 / total_bytes))
        log.info(
            f"Editor import: progress {self.stats.processed_rows} rows - "
            f"C:{self.stats.campaigns} AG:{self.stats.ad_groups} KW:{self.stats.keywords} Ads:{self.stats.ads}"
        )
        await self.ledger.update_progress(self.import_id, progress, self.stats)

    async def _finish(self, file_name: str) -> ImportResult:
        await self._buffers.flush_all()
        self._refresh_entity_counts()

        result = ImportResult(
            import_id=self.import_id,
            account_id=self.account_id,
            account_name=self.account_name,
            file_name=file_name,
            stats=self.stats,
        )

        if self._buffers.failed_batches:
            result.success = False
            result.error = self._buffers.failure_summary()
            await self.ledger.fail(self.import_id, result.error, self.stats)
            log.error(f"Editor import: {file_name} finished with lost batches - {result.error}")
        else:
            await self.ledger.complete(self.import_id, self.stats)
            log.info(
                f"Editor import: {file_name} completed - {self.stats.total_rows} rows, "
                f"{self.stats.campaigns} campaigns, {self.stats.ad_groups} ad groups, "
                f"{self.stats.keywords} keywords, {self.stats.ads} ads"
            )
        self._finished = True
        return result

    # ── Helpers ─────────────────────────────────────────────────────

    def _refresh_entity_counts(self) -> None:
        buffers = self._buffers
        self.stats.campaigns = buffers[RecordKind.CAMPAIGN].flushed
        self.stats.ad_groups = buffers[RecordKind.AD_GROUP].flushed
        self.stats.keywords = buffers[RecordKind.KEYWORD].flushed
        self.stats.ads = buffers[RecordKind.AD].flushed
        self.stats.failed_batches = buffers.failed_batches
        self.stats.lost_records = buffers.lost_records

    def _duplicate_result(self, existing_id: int, file_name: str) -> ImportResult:
        log.info(f"Editor import: {file_name} already imported as {existing_id}")
        self._finished = True
        return ImportResult(
            import_id=existing_id,
            already_exists=True,
            account_id=self.account_id,
            account_name=self.account_name,
            file_name=file_name,
            stats=self.stats,
        )

    async def _fail_open_import(self, error: str) -> None:
        if self.import_id is None or self._finished:
            return
        self._finished = True
        self._refresh_entity_counts()
        try:
            await self.ledger.fail(self.import_id, error, self.stats)
        except Exception as e:
            log.error(f"Editor import {self.import_id}: could not mark import failed: {e}")


async def run_editor_import(
    ledger: ImportLedger,
    source: AsyncIterable[bytes],
    file_name: str,
    file_hash: str,
    total_bytes: Optional[int] = None,
    settings: Settings = None,
) -> ImportResult:
    """Run one import under the configured wall-clock execution budget.

    Exceeding the budget aborts the import with EditorImportTimeoutError; the
    ledger entry keeps its last progress snapshot.
    """
    settings = settings or get_settings()
    pipeline = EditorImportPipeline(ledger, settings)
    try:
        return await asyncio.wait_for(
            pipeline.run(source, file_name, file_hash, total_bytes),
            timeout=settings.execution_budget_seconds,
        )
    except asyncio.TimeoutError as e:
        log.error(
            f"Editor import: {file_name} exceeded {settings.execution_budget_seconds}s budget "
            f"after {pipeline.stats.processed_rows} rows"
        )
        raise EditorImportTimeoutError(
            f"Import exceeded the {settings.execution_budget_seconds:g}s execution budget",
            import_id=pipeline.import_id,
            stats=pipeline.stats.to_dict(),
        ) from e
