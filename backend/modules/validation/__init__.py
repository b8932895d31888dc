"""
modules/validation package — data quality guards before any DB write.
"""
from modules.validation.schedule_validator import (
    ValidationResult,
    validate_new_visit,
    validate_visit_update,
    validate_place,
)

__all__ = [
    "ValidationResult",
    "validate_new_visit",
    "validate_visit_update",
    "validate_place",
]
