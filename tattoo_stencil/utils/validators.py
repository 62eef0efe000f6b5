"""Shared validation utilities for stencil parameters and settings"""

from typing import Optional, Any

from ..constants import StencilConstants
from ..errors import InvalidParameterError


def safe_int(value: Any, field: str, min_value: Optional[int] = None, max_value: Optional[int] = None, default: Optional[int] = None) -> int:
    """Parse and validate integer with optional bounds.

    Args:
        value: Value to parse
        field: Field name for error messages
        min_value: Minimum allowed value (clamps if exceeded)
        max_value: Maximum allowed value (clamps if exceeded)
        default: Default value if None (raises if not provided)

    Returns:
        Validated integer

    Raises:
        InvalidParameterError: If value cannot be parsed and no default provided
    """
    if value is None:
        if default is not None:
            return default
        raise InvalidParameterError(f"{field} is required")

    if isinstance(value, bool):
        raise InvalidParameterError(f"{field} must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{field} must be an integer") from exc

    if min_value is not None and parsed < min_value:
        parsed = min_value
    if max_value is not None and parsed > max_value:
        parsed = max_value
    return parsed


def safe_float(value: Any, field: str, min_value: Optional[float] = None, max_value: Optional[float] = None, default: Optional[float] = None) -> float:
    """Parse and validate float with optional bounds.

    Same clamping rules as safe_int.
    """
    if value is None:
        if default is not None:
            return default
        raise InvalidParameterError(f"{field} is required")

    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{field} must be a number") from exc

    if min_value is not None and parsed < min_value:
        parsed = min_value
    if max_value is not None and parsed > max_value:
        parsed = max_value
    return parsed


def parse_bool(value: Any, default: bool = False) -> bool:
    """Parse bool-like values from env vars and JSON payloads."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def normalize_rotation(value: Any) -> int:
    """Normalize a rotation to one of 0/90/180/270 degrees.

    Right-angle multiples are folded modulo 360 (-90 -> 270, 360 -> 0).
    Anything else is rejected.

    Raises:
        InvalidParameterError: If value is not a multiple of 90
    """
    degrees = safe_int(value, "rotation_degrees")
    normalized = degrees % 360
    if normalized not in StencilConstants.VALID_ROTATIONS:
        raise InvalidParameterError(
            f"rotation_degrees must be a multiple of 90 (got {degrees})"
        )
    return normalized


def require_positive(value: Any, field: str) -> float:
    """Parse a float that must be strictly greater than zero."""
    parsed = safe_float(value, field)
    if not parsed > 0:
        raise InvalidParameterError(f"{field} must be > 0 (got {parsed})")
    return parsed


def validate_paper_size(value: Any) -> str:
    """Return value if it names a known paper size."""
    if value not in StencilConstants.PAPER_SIZES:
        known = ", ".join(StencilConstants.PAPER_SIZES)
        raise InvalidParameterError(f"Unknown paper size: {value!r} (expected one of {known})")
    return value
