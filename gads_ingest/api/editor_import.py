"""
Google Ads Editor export import endpoints
"""
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gads_ingest.config import get_settings
from gads_ingest.errors import (
    EditorImportError,
    EditorImportStructureError,
    EditorImportTimeoutError,
    EditorImportTooLargeError,
)
from gads_ingest.models.base import get_db
from gads_ingest.services.byte_sources import (
    fingerprint,
    iter_file_chunks,
    iter_upload_chunks,
    prepend,
    read_file_prefix,
)
from gads_ingest.services.editor_import_pipeline import ImportResult, run_editor_import
from gads_ingest.services.import_ledger import SqlImportLedger
from gads_ingest.utils.logger import log

router = APIRouter(prefix="/gads/editor-import", tags=["gads-editor-import"])


class StreamImportRequest(BaseModel):
    file_path: Optional[str] = None
    force: bool = False


def _status_code(error: EditorImportError) -> int:
    if isinstance(error, EditorImportTooLargeError):
        return 413
    if isinstance(error, EditorImportStructureError):
        return 400
    if isinstance(error, EditorImportTimeoutError):
        return 504
    return 500


def _failure_response(error: EditorImportError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_code(error),
        content={"success": False, "error": str(error), "data": error.to_dict()},
    )


def _success_response(result: ImportResult):
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": result.error, "data": result.to_dict()},
        )
    return {"success": True, "data": result.to_dict()}


# ── Trigger surface ─────────────────────────────────────────────────


@router.post("")
async def upload_editor_export(
    file: UploadFile = File(...),
    force: bool = Query(False, description="Re-import even if this file was imported before"),
    db: Session = Depends(get_db),
):
    """
    Upload a Google Ads Editor export (UTF-16, tab-separated) and import it.

    The file is streamed in chunks; it is never loaded into memory as a whole.
    Use POST /gads/editor-import/stream for exports larger than the upload limit.
    """
    settings = get_settings()
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB",
        )

    file_name = file.filename or "editor-export.csv"
    log.info(f"Editor upload: {file_name} ({file.size if file.size is not None else '?'} bytes)")

    try:
        head = await file.read(settings.fingerprint_prefix_bytes)
        source = prepend(
            head,
            iter_upload_chunks(file, settings.read_chunk_size, settings.max_upload_bytes - len(head)),
        )
        result = await run_editor_import(
            SqlImportLedger(db),
            source,
            file_name=file_name,
            file_hash=fingerprint(head, force=force),
            total_bytes=file.size,
            settings=settings,
        )
    except EditorImportError as e:
        log.error(f"Editor upload error: {str(e)}")
        return _failure_response(e)

    return _success_response(result)


@router.post("/stream")
async def stream_editor_export(request: StreamImportRequest, db: Session = Depends(get_db)):
    """
    Import an editor export that already sits on the server filesystem.
    """
    if not request.file_path:
        raise HTTPException(status_code=400, detail="file_path is required")

    path = Path(request.file_path)
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"File not found: {request.file_path}")

    settings = get_settings()
    log.info(f"Editor stream import: {path}")
    try:
        head = read_file_prefix(path, settings.fingerprint_prefix_bytes)
        result = await run_editor_import(
            SqlImportLedger(db),
            iter_file_chunks(path, settings.read_chunk_size),
            file_name=path.name,
            file_hash=fingerprint(head, force=request.force),
            total_bytes=path.stat().st_size,
            settings=settings,
        )
    except EditorImportError as e:
        log.error(f"Editor stream import error: {str(e)}")
        return _failure_response(e)

    return _success_response(result)


# ── Ledger reads / maintenance ──────────────────────────────────────


@router.get("")
def get_editor_imports(
    import_id: Optional[int] = Query(None, description="Return a single import"),
    limit: int = Query(20, ge=1, le=200, description="Max entries"),
    db: Session = Depends(get_db),
):
    """
    Get one editor import, or the most recent imports.
    """
    ledger = SqlImportLedger(db)
    if import_id is not None:
        entry = ledger.get(import_id)
        if not entry:
            raise HTTPException(status_code=404, detail=f"Import {import_id} not found")
        return {"success": True, "data": entry.to_dict()}

    entries = ledger.list_recent(limit=limit)
    return {
        "success": True,
        "data": {
            "count": len(entries),
            "imports": [e.to_dict() for e in entries],
        },
    }


@router.get("/{import_id}/summary")
def get_editor_import_summary(import_id: int, db: Session = Depends(get_db)):
    """
    Import entry with keyword quality-score distribution and campaign-type counts.
    """
    summary = SqlImportLedger(db).summarize(import_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"Import {import_id} not found")
    return {"success": True, "data": summary}


@router.delete("/{import_id}")
def delete_editor_import(import_id: int, db: Session = Depends(get_db)):
    """
    Delete an import and every campaign, ad group, keyword and ad it produced.
    """
    deleted = SqlImportLedger(db).delete_import(import_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail=f"Import {import_id} not found")
    return {"success": True, "data": {"import_id": import_id, "rows_deleted": deleted}}
