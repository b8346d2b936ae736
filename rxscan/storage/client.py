from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from rxscan.config import STORAGE_API_URL, STORAGE_TIMEOUT, STORAGE_USER_ID
from rxscan.nlu.schema import MedicationEntry, ScanResult
from rxscan.observability.logs import log_event
from rxscan.observability.metrics import record_storage
from rxscan.ocr.engine import SUPPORTED_LANGUAGES


class StorageError(RuntimeError):
    """The prescription storage API rejected or did not answer a write."""


class StorageClient:
    """
    Thin client for the prescription REST backend.

    The user-id header is fixed at construction and sent on every request;
    build one client per user and pass it to whoever needs to write.
    """

    def __init__(
        self,
        base_url: str = STORAGE_API_URL,
        user_id: int = STORAGE_USER_ID,
        timeout: float = STORAGE_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.user_id = user_id
        self._http = httpx.Client(
            base_url=base_url,
            headers={"user-id": str(user_id)},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "StorageClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _post(self, resource: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        r: Optional[httpx.Response] = None
        try:
            r = self._http.post(path, json=payload)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            # ValueError: a 2xx answer whose body is not JSON
            record_storage(resource, "error")
            status = r.status_code if r is not None else None
            log_event("storage_error", resource=resource, error_type=type(e).__name__, status=status)
            raise StorageError(f"{resource} write failed: {type(e).__name__}") from e
        record_storage(resource, "ok")
        log_event("storage_write", resource=resource, status=r.status_code)
        return data

    def create_prescription(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("prescription", "/api/prescriptions", payload)

    def create_medication(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("medication", "/api/medications", payload)

    def save_scan(
        self,
        result: ScanResult,
        title: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store the prescription, then one medication row per parsed entry."""
        payload: Dict[str, Any] = {
            "userId": self.user_id,
            "title": title or f"Prescription from {date.today().isoformat()}",
            "translatedText": result.text,
            "language": _language_label(result.language),
        }
        if source:
            payload["source"] = source
        prescription = self.create_prescription(payload)

        saved: List[Dict[str, Any]] = []
        for med in result.medications or []:
            saved.append(self.create_medication(_medication_payload(med, self.user_id, prescription.get("id"))))
        return {"prescription": prescription, "medications": saved}


def _language_label(code: str) -> str:
    name = SUPPORTED_LANGUAGES.get(code)
    return name.lower() if name else code


def _medication_payload(med: MedicationEntry, user_id: int, prescription_id: Any) -> Dict[str, Any]:
    return {
        "userId": user_id,
        "prescriptionId": prescription_id,
        "name": med.name,
        "dosage": med.dosage,
        # parsed directions double as the schedule text until the user edits them
        "frequency": med.instructions,
        "medicationType": "tablet",
        "startDate": datetime.now(timezone.utc).isoformat(),
    }
