#!/usr/bin/env python3
"""
Editor Export Import Script

Imports a Google Ads Editor export (UTF-16, tab-separated) from the local
filesystem into the configured database and prints the result as JSON.

Usage:
    python scripts/import_editor_export.py exports/account-2026-01-13.csv
    python scripts/import_editor_export.py exports/account-2026-01-13.csv --force
"""
import sys
import json
import asyncio
import argparse
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gads_ingest.config import get_settings
from gads_ingest.errors import EditorImportError
from gads_ingest.models.base import SessionLocal, init_db
from gads_ingest.services.byte_sources import fingerprint, iter_file_chunks, read_file_prefix
from gads_ingest.services.editor_import_pipeline import run_editor_import
from gads_ingest.services.import_ledger import SqlImportLedger


async def import_file(path: Path, force: bool = False) -> dict:
    """Run one import against a fresh session; returns the response payload."""
    settings = get_settings()
    db = SessionLocal()
    try:
        head = read_file_prefix(path, settings.fingerprint_prefix_bytes)
        result = await run_editor_import(
            SqlImportLedger(db),
            iter_file_chunks(path, settings.read_chunk_size),
            file_name=path.name,
            file_hash=fingerprint(head, force=force),
            total_bytes=path.stat().st_size,
            settings=settings,
        )
        payload = {"success": result.success, "data": result.to_dict()}
        if not result.success:
            payload["error"] = result.error
        return payload
    except EditorImportError as e:
        return {"success": False, "error": str(e), "data": e.to_dict()}
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description='Import a Google Ads Editor export into the database')
    parser.add_argument('path', help='Editor export file (UTF-16 LE, tab-separated)')
    parser.add_argument('--force', action='store_true', help='Re-import even if this file was imported before')

    args = parser.parse_args()

    path = Path(args.path)
    if not path.is_file():
        print(f"File not found: {args.path}")
        sys.exit(1)

    init_db()
    payload = asyncio.run(import_file(path, force=args.force))
    print(json.dumps(payload, indent=2, default=str))
    if not payload["success"]:
        sys.exit(1)


if __name__ == '__main__':
    main()
