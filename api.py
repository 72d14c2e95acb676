"""
api.py - FastAPI HTTP layer for the invoice consolidator.

Endpoints:
- GET  /health
- POST /consolidate             JSON summary + preview rows
- POST /consolidate/download    consolidated CSV or XLSX attachment
- POST /consolidate/removed     removed charge lines as CSV attachment

No consolidation logic lives here; every endpoint decodes the upload,
validates it and hands the records to consolidate_rows().
"""

from __future__ import annotations

from typing import Any, Literal

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import Settings, load_settings
from consolidate import consolidate_rows
from invoice_io import (
    consolidated_filename,
    export_csv,
    export_removed_csv,
    export_xlsx,
    load_invoice_csv,
)
from logging_config import get_logger, level_from_name, setup_logging
from models import ConsolidationResult
from report import format_summary_json
from validation import validate_records

logger = get_logger("consolidator-api")

settings: Settings = load_settings()

app = FastAPI(
    title="Shipping Invoice Consolidator API",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Allows local UI use from file:// or another local host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
UPLOAD_CHUNK_BYTES = 1024 * 1024


async def _read_upload(upload: UploadFile) -> bytes:
    """Read an UploadFile into memory, enforcing the configured size limit."""
    chunks: list[bytes] = []
    size = 0
    try:
        while True:
            chunk = await upload.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            size += len(chunk)
            if size > settings.max_upload_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"Upload exceeds {settings.max_upload_bytes // (1024 * 1024)}MB limit.",
                )
            chunks.append(chunk)
    finally:
        await upload.close()
    return b"".join(chunks)


async def _process_upload(file: UploadFile) -> tuple[ConsolidationResult, list[str]]:
    """Decode, validate and consolidate an uploaded invoice CSV."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="CSV file is required.")

    raw = await _read_upload(file)

    try:
        records = load_invoice_csv(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    validation = validate_records(records, large_file_threshold=settings.large_file_threshold)
    if not validation.valid:
        raise HTTPException(
            status_code=400,
            detail={"errors": validation.errors, "warnings": validation.warnings},
        )

    result = consolidate_rows(records)
    if result.stats.status == "error":
        raise HTTPException(
            status_code=500,
            detail=result.stats.error_message or "An error occurred during processing",
        )

    logger.info(
        "api_consolidate | file=%s | rows=%s | shipments=%s | warnings=%s",
        file.filename,
        result.stats.total_rows,
        result.stats.shipment_groups,
        len(validation.warnings),
    )
    return result, validation.warnings


def _attachment(content: bytes | str, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Service health check."""
    return {"status": "ok"}


@app.post("/consolidate")
async def consolidate_endpoint(file: UploadFile = File(...)) -> JSONResponse:
    """Consolidate an invoice CSV and return the summary plus preview rows."""
    try:
        result, warnings = await _process_upload(file)
    except HTTPException:
        raise
    except Exception as exc:
        logger.error(
            "api_consolidate_error | error_type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Unexpected server error while consolidating invoice.",
        ) from exc

    rows = result.consolidated if settings.debug else result.consolidated[: settings.preview_max_rows]
    payload: dict[str, Any] = {
        "filename": consolidated_filename(file.filename or ""),
        "summary": format_summary_json(result, warnings),
        "status": result.stats.status,
        "warnings": warnings,
        "stats": result.stats.model_dump(),
        "columns": result.columns,
        "rows": rows,
        "row_count": len(result.consolidated),
        "removed_count": len(result.removed_rows),
    }
    return JSONResponse(content=payload)


@app.post("/consolidate/download")
async def download_endpoint(
    file: UploadFile = File(...),
    fmt: Literal["csv", "xlsx"] = Query(default="csv", alias="format"),
) -> Response:
    """Return the consolidated invoice as a CSV or XLSX attachment."""
    result, _warnings = await _process_upload(file)

    if fmt == "xlsx":
        content: bytes | str = export_xlsx(result.consolidated, result.columns)
        return _attachment(content, consolidated_filename(file.filename or "", ".xlsx"), XLSX_MEDIA_TYPE)

    content = export_csv(result.consolidated, result.columns)
    return _attachment(content, consolidated_filename(file.filename or ""), CSV_MEDIA_TYPE)


@app.post("/consolidate/removed")
async def removed_endpoint(file: UploadFile = File(...)) -> Response:
    """Return the charge lines that were filtered out, as a CSV attachment."""
    result, _warnings = await _process_upload(file)
    filename = consolidated_filename(file.filename or "").replace("consolidated_", "removed_", 1)
    return _attachment(export_removed_csv(result.removed_rows), filename, CSV_MEDIA_TYPE)


if __name__ == "__main__":
    setup_logging(level=level_from_name(settings.log_level), json_format=settings.log_json)
    uvicorn.run("api:app", host=settings.host, port=settings.port, reload=False)
