"""Mini README: Input validation for forms and API payloads.

Exports the declarative ``Validator`` together with its rule and result
types. Validation is the only gate keeping malformed values out of the
stored collections; the analytics functions assume it has run.
"""

from .validator import (
    FieldResult,
    FieldRule,
    FormResult,
    Validator,
    constraint_errors,
    sanitize,
)

__all__ = [
    "FieldResult",
    "FieldRule",
    "FormResult",
    "Validator",
    "constraint_errors",
    "sanitize",
]
