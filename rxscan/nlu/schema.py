from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    # camelCase on the wire (patientInfo), snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatientInfo(_Wire):
    name: Optional[str] = None
    age: Optional[str] = None    # kept as the matched digits, e.g. "34"
    date: Optional[str] = None   # kept verbatim, e.g. "12/05/2023"

    def is_empty(self) -> bool:
        return self.name is None and self.age is None and self.date is None


class MedicationEntry(_Wire):
    name: str
    dosage: str = ""
    instructions: str = ""


class ParsedPrescription(_Wire):
    patient_info: Optional[PatientInfo] = None
    medications: Optional[List[MedicationEntry]] = None

    def to_wire(self) -> dict:
        """Dict in the external shape: camelCase keys, absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ScanResult(ParsedPrescription):
    text: str
    language: str
