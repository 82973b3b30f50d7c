"""
Shape validator for the AI service's project payload.

Checks structure only, never whether the sketch compiles or the circuit
works. Returns (is_valid, errors) tuple.
"""
from typing import Any

REQUIRED_TEXT_FIELDS = ("project_name", "code", "circuit_diagram")


def validate_components(data: Any) -> list[str]:
    if not isinstance(data, list):
        return ["components must be a list"]
    if not data:
        return ["components is empty"]
    errors = []
    for i, item in enumerate(data[:100]):
        if not isinstance(item, dict):
            errors.append(f"components[{i}] is not a dict")
            continue
        if not item.get("name"):
            errors.append(f"components[{i}] missing name")
        qty = item.get("quantity", 1)
        if isinstance(qty, bool) or not isinstance(qty, (int, float)) or qty < 1:
            errors.append(f"components[{i}] invalid quantity: {qty}")
        elif isinstance(qty, float) and not qty.is_integer():
            errors.append(f"components[{i}] fractional quantity: {qty}")
    return errors


def validate_project(data: Any) -> tuple[bool, list[str]]:
    """Validate a generated project payload."""
    if not isinstance(data, dict):
        return False, ["Project must be a dict"]
    errors = []
    for key in REQUIRED_TEXT_FIELDS:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"Missing {key}")
    errors.extend(validate_components(data.get("components")))
    libs = data.get("libraries", [])
    if libs is not None and not isinstance(libs, list):
        errors.append("libraries must be a list")
    return len(errors) == 0, errors
