"""Service layer utilities for the CLI."""

from .doctor_service import DoctorService
from .doctor_types import DoctorCheckGroup, DoctorCheckItem, DoctorReport

__all__ = [
    "DoctorCheckGroup",
    "DoctorCheckItem",
    "DoctorReport",
    "DoctorService",
]
