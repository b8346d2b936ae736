from __future__ import annotations

import uuid
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from rxscan.config import MAX_UPLOAD_BYTES, OCR_DEFAULT_LANGUAGE
from rxscan.nlu.prescription import build_scan_result
from rxscan.nlu.schema import ScanResult
from rxscan.observability.logs import log_event
from rxscan.observability.metrics import (
    timer_start, timer_observe_ms, record_scan, record_medications, record_error
)
from rxscan.ocr.engine import (
    SUPPORTED_LANGUAGES, OcrEngine, OcrError, TesseractEngine, UnsupportedLanguageError, process_image
)
from rxscan.storage.client import StorageClient, StorageError

router = APIRouter(tags=["api"])


class ParseIn(BaseModel):
    text: str
    language: str = OCR_DEFAULT_LANGUAGE


class SaveIn(BaseModel):
    result: ScanResult
    title: Optional[str] = None
    source: Optional[str] = None


class LanguageOut(BaseModel):
    code: str
    name: str


@lru_cache(maxsize=1)
def get_ocr_engine() -> OcrEngine:
    return TesseractEngine()


def get_storage_client() -> Iterator[StorageClient]:
    client = StorageClient()
    try:
        yield client
    finally:
        client.close()


def _record_result(endpoint: str, result: ScanResult, request_id: str, t0: float) -> None:
    count = len(result.medications or [])
    record_medications(count)
    record_scan(endpoint, "medications" if count else "text_only")
    elapsed_ms = timer_observe_ms(t0, endpoint)
    log_event(
        "parse_response",
        request_id=request_id,
        endpoint=endpoint,
        language=result.language,
        medications=count,
        has_patient_info=result.patient_info is not None,
        elapsed_ms=round(elapsed_ms, 2),
    )


@router.get("/languages", response_model=list[LanguageOut])
def languages():
    return [LanguageOut(code=code, name=name) for code, name in SUPPORTED_LANGUAGES.items()]


@router.post("/parse", response_model=ScanResult, response_model_exclude_none=True)
def parse(payload: ParseIn):
    """Parse OCR text produced elsewhere (e.g. on-device)."""
    t0 = timer_start()
    request_id = str(uuid.uuid4())
    # length only, the text itself may hold patient details
    log_event("parse_request", request_id=request_id, endpoint="parse",
              language=payload.language, text_chars=len(payload.text))
    try:
        result = build_scan_result(payload.text, payload.language)
    except Exception as e:
        timer_observe_ms(t0, "parse")
        record_scan("parse", "error")
        record_error(type(e).__name__)
        log_event("scan_error", request_id=request_id, endpoint="parse", error_type=type(e).__name__)
        raise
    _record_result("parse", result, request_id, t0)
    return result


@router.post("/scan", response_model=ScanResult, response_model_exclude_none=True)
async def scan(
    file: UploadFile = File(...),
    language: str = Form(OCR_DEFAULT_LANGUAGE),
    engine: OcrEngine = Depends(get_ocr_engine),
):
    t0 = timer_start()
    request_id = str(uuid.uuid4())

    data = await file.read()
    log_event("parse_request", request_id=request_id, endpoint="scan",
              language=language, image_bytes=len(data), content_type=file.content_type)
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")

    try:
        result = await run_in_threadpool(process_image, engine, data, language)
    except UnsupportedLanguageError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except OcrError as e:
        timer_observe_ms(t0, "scan")
        record_scan("scan", "ocr_failed")
        cause = e.__cause__
        log_event("scan_ocr_failed", request_id=request_id, language=language,
                  error_type=type(cause).__name__ if cause else "OcrError")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        timer_observe_ms(t0, "scan")
        record_scan("scan", "error")
        record_error(type(e).__name__)
        log_event("scan_error", request_id=request_id, endpoint="scan", error_type=type(e).__name__)
        raise

    _record_result("scan", result, request_id, t0)
    return result


@router.post("/scan/save")
def save(payload: SaveIn, storage: StorageClient = Depends(get_storage_client)):
    """Persist an accepted (possibly user-edited) scan through the storage API."""
    t0 = timer_start()
    try:
        saved = storage.save_scan(payload.result, title=payload.title, source=payload.source)
    except StorageError as e:
        record_error(type(e).__name__)
        raise HTTPException(status_code=502, detail=str(e)) from e
    finally:
        timer_observe_ms(t0, "save")
    return saved
