import re
from typing import Optional, Sequence

from .schema import PatientInfo

_LABEL = r"\b(?:Patient\s+Name|Name|Patient)"
_AGE_UNIT = r"(?:yrs|years|Y)\b"

# Each tuple is tried in order; the first pattern with a non-empty capture wins.
NAME_PATTERNS: Sequence[re.Pattern] = (
    # "Name: John Doe\n" / "Patient: Jane Doe, 34 yrs"
    re.compile(_LABEL + r"\s*:?\s*([A-Za-z\s.]+?)(?=[\r\n,]|$)", re.I),
    # "Name: John Doe Age: 45"
    re.compile(_LABEL + r"\s*:?\s*([A-Za-z\s.]+?)(?=\s*\b(?:Age|Gender)\b)", re.I),
    # unlabeled "John Doe, 45 yrs" at the start of a line
    re.compile(r"^([A-Za-z \t.]{2,20})(?:\s*,\s*|\s+)\d{1,3}\s*" + _AGE_UNIT, re.I | re.M),
)

AGE_PATTERNS: Sequence[re.Pattern] = (
    re.compile(r"\b(?:Age|Years)\s*:?\s*(\d{1,3})(?!\d)\s*(?:years|yrs|Y)?", re.I),
    # mirrors the unlabeled name pattern; a leading name label is tolerated
    re.compile(
        r"^(?:" + _LABEL + r"\s*:?\s*)?[A-Za-z \t.]{2,20}(?:\s*,\s*|\s+)(\d{1,3})\s*" + _AGE_UNIT,
        re.I | re.M,
    ),
)

_DATE_TOKEN = r"(?<!\d)(\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})(?!\d)"

DATE_PATTERNS: Sequence[re.Pattern] = (
    re.compile(r"\bDate\s*:?\s*" + _DATE_TOKEN, re.I),
    # any date-shaped token; favours recall, may catch unrelated numbers
    re.compile(_DATE_TOKEN),
)


def first_match(patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            value = m.group(1).strip()
            if value:
                return value
    return None


def extract_patient_info(text: str) -> Optional[PatientInfo]:
    """
    Recover name, age and date independently from the whole text.
    Returns None when no field matched.
    """
    info = PatientInfo(
        name=first_match(NAME_PATTERNS, text),
        age=first_match(AGE_PATTERNS, text),
        date=first_match(DATE_PATTERNS, text),
    )
    return None if info.is_empty() else info
