"""
modules/validation package — input contract checks before any planning stage.
"""
from tripweave.modules.validation.input_validator import (
    ValidationResult,
    validate_trip_input,
)

__all__ = [
    "ValidationResult",
    "validate_trip_input",
]
