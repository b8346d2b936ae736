import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .schema import MedicationEntry

MIN_LINE_CHARS = 5
MIN_NAME_CHARS = 2

# quantity + unit, e.g. "500mg", "2.5 ml"
QTY_RE = re.compile(r"\d+(?:\.\d+)?\s*(?:mcg|mg|ml|g)\b", re.I)

_DOSE = r"(?P<dosage>\d+(?:\.\d+)?\s*(?:mcg|mg|ml|g)\b)"
_FORM = r"(?:Tab\.?|Cap\.?|Tablet|Capsule)"
_FREQ = r"(?:once|twice|bd|tid|qid|daily|weekly|morning|night|evening|before|after|meal|food)"

# name starts on a word and is never a dosage-form word ("Tab Crocin" -> "Crocin")
_NAME_START = r"(?<![A-Za-z])(?!\s*" + _FORM + r"\s)"


@dataclass(frozen=True)
class MedPattern:
    """One prescription layout. Groups: name, and optionally dosage/instructions.

    A layout may have more than one regex shape; they are tried in order.
    """
    name: str
    regexes: Tuple[re.Pattern, ...]

    def match(self, line: str) -> Optional[MedicationEntry]:
        for regex in self.regexes:
            m = regex.search(line)
            if m:
                break
        else:
            return None
        groups: Dict[str, Optional[str]] = m.groupdict()
        return MedicationEntry(
            name=(groups.get("name") or "").strip(),
            dosage=(groups.get("dosage") or "").strip(),
            instructions=(groups.get("instructions") or "").strip(),
        )


# Priority order matters: the first pattern that matches a line wins.
MED_PATTERNS: Sequence[MedPattern] = (
    MedPattern("dash_separated", (
        # Amoxicillin 500mg - twice daily   /   • Paracetamol 500mg - 1 tab SOS
        re.compile(
            _NAME_START + r"(?P<name>[A-Za-z\s]+)\s+" + _DOSE + r"\s*[-–]\s*(?P<instructions>[^,.]*)",
            re.I,
        ),
        # Amoxicillin 500mg.   whole line only, so "2. Amoxicillin 500mg" is left alone
        re.compile(
            r"^(?!\s*" + _FORM + r"\s)\s*(?P<name>[A-Za-z\s]+)\s+" + _DOSE + r"[\s.,;]*$",
            re.I,
        ),
    )),
    # 1. Amoxicillin 500mg after food
    MedPattern("numbered", (re.compile(
        r"\d+\.\s*(?P<name>[A-Za-z\s]+)\s+" + _DOSE + r"\s*(?:[-–]\s*)?(?P<instructions>[^,.]+)",
        re.I,
    ),)),
    # Tab. Crocin 650mg - SOS
    MedPattern("form_prefixed", (re.compile(
        r"\b" + _FORM + r"\s+(?P<name>[A-Za-z\s]+)\s+" + _DOSE + r"\s*(?:[-–])?(?P<instructions>[^,.]*)",
        re.I,
    ),)),
    # Metformin - Tab 500mg twice daily after meals   /   Amlodipine 5mg once daily
    # Without a dash the instructions must open with a dose, and the name never
    # takes in a frequency word, so "Take twice daily" is not a medication.
    MedPattern("frequency_keyword", (re.compile(
        r"(?<![A-Za-z])(?P<name>(?:(?!\b" + _FREQ + r"\b)[A-Za-z\s])+)"
        r"(?:\s*[-–]\s*|\s+(?=(?:" + _FORM + r"\s+)?\d))"
        r"(?:" + _FORM + r"\s+)?(?:" + _DOSE + r")?[\s-]*"
        r"(?P<instructions>[^,.]*" + _FREQ + r"[^,.]*)",
        re.I,
    ),)),
    # 3. Pantoprazole   (name only, gaps filled later)
    MedPattern("numbered_name", (re.compile(r"\d+\.\s*(?P<name>[A-Za-z\s]{3,})", re.I),)),
)


def pattern_by_name(name: str) -> MedPattern:
    for p in MED_PATTERNS:
        if p.name == name:
            return p
    raise KeyError(name)


def enrich(entry: MedicationEntry) -> MedicationEntry:
    if not entry.instructions and entry.dosage:
        return entry.model_copy(update={"instructions": f"Take as directed - {entry.dosage}"})
    if not entry.dosage and entry.instructions:
        # dosage mentioned inside the free text; instructions are left as-is
        m = QTY_RE.search(entry.instructions)
        if m:
            return entry.model_copy(update={"dosage": m.group(0).strip()})
    return entry


def extract_from_line(line: str) -> Optional[MedicationEntry]:
    if len(line.strip()) < MIN_LINE_CHARS:
        return None
    for pattern in MED_PATTERNS:
        entry = pattern.match(line)
        if entry is None:
            continue
        # a bad name rejects the line outright, later patterns are not tried
        if len(entry.name) < MIN_NAME_CHARS:
            return None
        return enrich(entry)
    return None


def extract_medication_candidates(text: str) -> List[MedicationEntry]:
    """One candidate at most per line, in line order. Not deduplicated."""
    candidates: List[MedicationEntry] = []
    for line in text.split("\n"):
        entry = extract_from_line(line)
        if entry is not None:
            candidates.append(entry)
    return candidates
