from typing import Optional

from .medications import extract_medication_candidates
from .merge import merge_candidates
from .patient_info import extract_patient_info
from .schema import ParsedPrescription, ScanResult


def parse_prescription_text(raw_text: Optional[str]) -> ParsedPrescription:
    """
    Best-effort structured extraction from raw OCR text.

    Pure and synchronous; never raises. Fields that were not found are left
    unset (None) rather than empty, so "no medications" and "no patient info"
    both show up as absent keys on the wire.
    """
    text = raw_text or ""
    meds = merge_candidates(extract_medication_candidates(text))
    return ParsedPrescription(
        patient_info=extract_patient_info(text),
        medications=meds or None,
    )


def build_scan_result(raw_text: Optional[str], language: str) -> ScanResult:
    """Parse result plus the OCR text and language passed through unchanged."""
    parsed = parse_prescription_text(raw_text)
    return ScanResult(
        patient_info=parsed.patient_info,
        medications=parsed.medications,
        text=raw_text or "",
        language=language,
    )
