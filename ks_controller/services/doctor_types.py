from dataclasses import dataclass, field
from typing import List


@dataclass
class DoctorCheckItem:
    label: str
    ok: bool
    required: bool
    detail: str = ""


@dataclass
class DoctorCheckGroup:
    title: str
    items: List[DoctorCheckItem]
    failures: int


@dataclass
class DoctorReport:
    groups: List[DoctorCheckGroup]
    info_messages: List[str]
    total_failures: int
    warnings: List[str] = field(default_factory=list)
