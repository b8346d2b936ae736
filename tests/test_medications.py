import pytest
from rxscan.nlu.medications import (
    MED_PATTERNS, extract_from_line, extract_medication_candidates, pattern_by_name
)
from rxscan.nlu.schema import MedicationEntry


def test_pattern_priority_order():
    assert [p.name for p in MED_PATTERNS] == [
        "dash_separated", "numbered", "form_prefixed", "frequency_keyword", "numbered_name",
    ]


@pytest.mark.parametrize("pattern,line,expected", [
    ("dash_separated", "Amoxicillin 500mg - twice daily after food",
     ("Amoxicillin", "500mg", "twice daily after food")),
    ("dash_separated", "Amoxicillin 500mg", ("Amoxicillin", "500mg", "")),
    ("dash_separated", "Amoxicillin 500mg.", ("Amoxicillin", "500mg", "")),
    ("dash_separated", "Cetirizine 10 mg – once at night", ("Cetirizine", "10 mg", "once at night")),
    ("dash_separated", "• Paracetamol 500mg - 1 tab SOS", ("Paracetamol", "500mg", "1 tab SOS")),
    ("dash_separated", "Rx: Amoxicillin 500mg - 1 cap", ("Amoxicillin", "500mg", "1 cap")),
    ("dash_separated", "Tab Crocin 650mg - SOS", ("Crocin", "650mg", "SOS")),
    ("numbered", "1. Amoxicillin 500mg - twice daily after food",
     ("Amoxicillin", "500mg", "twice daily after food")),
    ("numbered", "2. Azithromycin 250 mg once a day for 3 days",
     ("Azithromycin", "250 mg", "once a day for 3 days")),
    ("form_prefixed", "Tab. Crocin 650mg - SOS", ("Crocin", "650mg", "SOS")),
    ("form_prefixed", "Capsule Omeprazole 20mg before breakfast", ("Omeprazole", "20mg", "before breakfast")),
    ("frequency_keyword", "Ibuprofen - take 250 mg twice daily", ("Ibuprofen", "", "take 250 mg twice daily")),
    ("frequency_keyword", "Metformin - Tab 500mg twice daily after meals",
     ("Metformin", "500mg", "twice daily after meals")),
    ("frequency_keyword", "Amlodipine 5mg once daily", ("Amlodipine", "5mg", "once daily")),
    ("numbered_name", "3. Pantoprazole", ("Pantoprazole", "", "")),
])
def test_single_pattern(pattern, line, expected):
    entry = pattern_by_name(pattern).match(line)
    assert (entry.name, entry.dosage, entry.instructions) == expected


@pytest.mark.parametrize("pattern,line", [
    ("dash_separated", "2. Amoxicillin 500mg"),      # dosage-only form needs the whole line
    ("dash_separated", "Tab Crocin 650mg"),
    ("numbered", "2. Amoxicillin 500mg"),            # needs some instruction text
    ("frequency_keyword", "Follow up with reports"),
    ("frequency_keyword", "Metformin twice daily after meals"),
    ("frequency_keyword", "Take twice daily"),
    ("frequency_keyword", "Take twice daily - after food"),
])
def test_single_pattern_no_match(pattern, line):
    assert pattern_by_name(pattern).match(line) is None


def test_unknown_pattern_name():
    with pytest.raises(KeyError):
        pattern_by_name("nope")


def test_short_line_skipped():
    assert extract_from_line("Ab 1") is None


def test_dosage_only_gets_default_instructions():
    entry = extract_from_line("Amoxicillin 500mg")
    assert entry == MedicationEntry(
        name="Amoxicillin", dosage="500mg", instructions="Take as directed - 500mg"
    )


def test_dosage_recovered_from_instructions():
    entry = extract_from_line("Ibuprofen - take 250 mg twice daily")
    assert entry.dosage == "250 mg"
    assert entry.instructions == "take 250 mg twice daily"


@pytest.mark.parametrize("line", ["Tab. Crocin 650mg - SOS", "Tab Crocin 650mg - SOS"])
def test_form_word_is_not_part_of_the_name(line):
    entry = extract_from_line(line)
    assert (entry.name, entry.dosage, entry.instructions) == ("Crocin", "650mg", "SOS")


def test_trailing_punctuation_after_dosage():
    entry = extract_from_line("Amoxicillin 500mg.")
    assert entry == MedicationEntry(
        name="Amoxicillin", dosage="500mg", instructions="Take as directed - 500mg"
    )


@pytest.mark.parametrize("line", ["Metformin twice daily after meals", "Take twice daily"])
def test_direction_lines_are_not_medications(line):
    assert extract_from_line(line) is None


def test_prefixed_dash_lines_are_extracted():
    cands = extract_medication_candidates("• Paracetamol 500mg - 1 tab SOS\nRx: Amoxicillin 500mg - 1 cap\n")
    assert [(c.name, c.dosage, c.instructions) for c in cands] == [
        ("Paracetamol", "500mg", "1 tab SOS"),
        ("Amoxicillin", "500mg", "1 cap"),
    ]


def test_too_short_name_rejects_line():
    # the first matching pattern yields name "A"; no later pattern gets a chance
    assert extract_from_line("1. A 500mg - after food") is None


def test_non_latin_line_yields_nothing():
    assert extract_from_line("दिन में दो बार") is None


def test_candidates_keep_line_order_and_duplicates():
    text = (
        "Patient: Jane Doe, 34 yrs\n"
        "Date: 12/05/2023\n"
        "1. Amoxicillin 500mg - twice daily after food\n"
        "2. Amoxicillin 500mg\n"
    )
    cands = extract_medication_candidates(text)
    assert cands == [
        MedicationEntry(name="Amoxicillin", dosage="500mg", instructions="twice daily after food"),
        MedicationEntry(name="Amoxicillin", dosage="", instructions=""),
    ]


def test_crlf_line_endings():
    cands = extract_medication_candidates("Paracetamol 650mg - after food\r\nCetirizine 10mg\r\n")
    assert [(c.name, c.dosage) for c in cands] == [("Paracetamol", "650mg"), ("Cetirizine", "10mg")]
    assert cands[0].instructions == "after food"
    assert cands[1].instructions == "Take as directed - 10mg"
