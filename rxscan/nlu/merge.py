from typing import Iterable, List

from .schema import MedicationEntry


def information_score(entry: MedicationEntry) -> int:
    return len(entry.dosage) + len(entry.instructions)


def merge_candidates(candidates: Iterable[MedicationEntry]) -> List[MedicationEntry]:
    """
    Collapse candidates to one entry per case-insensitive name.

    First-seen order is kept. A later duplicate replaces the earlier entry in
    place only when it carries strictly more dosage + instructions text.
    """
    merged: List[MedicationEntry] = []
    for cand in candidates:
        key = cand.name.strip().lower()
        for i, existing in enumerate(merged):
            if existing.name.strip().lower() == key:
                if information_score(cand) > information_score(existing):
                    merged[i] = cand
                break
        else:
            merged.append(cand)
    return merged
