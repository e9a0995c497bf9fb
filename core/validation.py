# =============================================================================
# core/validation.py - Property Input Validation
# =============================================================================
# Explicit format checks for property input. Each check yields a
# FieldViolation instead of raising, so callers see every problem at once.
#
# Usage:
#   violations = validate_property_input(payload)
#   if violations:
#       raise ValidationFailedError(violations)
# =============================================================================

import re
from typing import NamedTuple

from core.models.property import PropertyCreate

# [A-Z] and [0-9] are ASCII-only, unlike str.isupper() / \d
STATE_PATTERN = re.compile(r"[A-Z]{2}")
ZIP_CODE_PATTERN = re.compile(r"[0-9]{5}")

STATE_LENGTH = 2
ZIP_CODE_LENGTH = 5


class FieldViolation(NamedTuple):
    """One broken rule on one input field."""
    field: str
    rule: str
    message: str


def _is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def validate_property_input(payload: PropertyCreate) -> list[FieldViolation]:
    """
    Check every field of a property payload.

    Field names in the result use the wire names (zipCode, not zip_code).
    Length and pattern rules are checked independently, so a value like
    "az1" reports both.

    Args:
        payload: The unvalidated property input

    Returns:
        All violations found, in field order. Empty when the input is valid.
    """
    violations: list[FieldViolation] = []

    if _is_blank(payload.street):
        violations.append(FieldViolation("street", "required", "Street is required"))

    if _is_blank(payload.city):
        violations.append(FieldViolation("city", "required", "City is required"))

    if _is_blank(payload.state):
        violations.append(FieldViolation("state", "required", "State is required"))
    else:
        if len(payload.state) != STATE_LENGTH:
            violations.append(FieldViolation(
                "state", "length", "State must be a 2-letter abbreviation"
            ))
        if not STATE_PATTERN.fullmatch(payload.state):
            violations.append(FieldViolation(
                "state", "pattern", "State must be uppercase letters (e.g., AZ)"
            ))

    if _is_blank(payload.zip_code):
        violations.append(FieldViolation("zipCode", "required", "Zip code is required"))
    else:
        if len(payload.zip_code) != ZIP_CODE_LENGTH:
            violations.append(FieldViolation(
                "zipCode", "length", "Zip code must be 5 digits"
            ))
        if not ZIP_CODE_PATTERN.fullmatch(payload.zip_code):
            violations.append(FieldViolation(
                "zipCode", "pattern", "Zip code must contain only digits"
            ))

    return violations


def validate_property_id(property_id: str | None) -> list[FieldViolation]:
    """Check that a lookup id was supplied at all."""
    if _is_blank(property_id):
        return [FieldViolation("id", "required", "Property ID is required")]
    return []


def compose_address(payload: PropertyCreate) -> str:
    """
    Build the single-line address sent to the weather provider.

    Example: "15528 E Golden Eagle Blvd, Fountain Hills, AZ 85268"
    """
    return f"{payload.street}, {payload.city}, {payload.state} {payload.zip_code}"
