"""
Meshing Calculator - Validation Rules

Input guards shared by the calculator modules plus the message types used to
report diagnostic findings.

Guards raise InvalidParameterError naming the offending field; findings that
are not errors (a drifting animation, a too-close placement) are reported as
ValidationMessage entries instead.
"""

from dataclasses import dataclass
from enum import Enum
from math import isfinite
from typing import Optional, Union

from ..enums import PitchAxis
from ..errors import InvalidParameterError


class Severity(Enum):
    """Validation message severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationMessage:
    """A single validation finding"""
    severity: Severity
    code: str
    message: str
    suggestion: Optional[str] = None


def require_finite(value: float, field_name: str) -> float:
    """Reject None, NaN and infinities."""
    if value is None or isinstance(value, bool):
        raise InvalidParameterError(f"{field_name} must be a finite number, got {value!r}", field=field_name)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{field_name} must be a finite number, got {value!r}", field=field_name)
    if not isfinite(number):
        raise InvalidParameterError(f"{field_name} must be finite, got {number}", field=field_name)
    return number


def require_positive(value: float, field_name: str) -> float:
    """Reject anything that is not a positive finite number."""
    number = require_finite(value, field_name)
    if number <= 0:
        raise InvalidParameterError(f"{field_name} must be positive, got {number}", field=field_name)
    return number


def require_non_negative(value: float, field_name: str) -> float:
    number = require_finite(value, field_name)
    if number < 0:
        raise InvalidParameterError(f"{field_name} must not be negative, got {number}", field=field_name)
    return number


def require_positive_int(value: Union[int, float], field_name: str) -> int:
    """Teeth counts: positive and whole."""
    number = require_positive(value, field_name)
    if number != int(number):
        raise InvalidParameterError(f"{field_name} must be a whole number, got {number}", field=field_name)
    return int(number)


def parse_pitch_axis(value: Union[str, PitchAxis], field_name: str = "pitchAxis") -> PitchAxis:
    """Accept 'x'/'y' in any case, or a PitchAxis."""
    if isinstance(value, PitchAxis):
        return value
    if isinstance(value, str):
        try:
            return PitchAxis(value.strip().lower())
        except ValueError:
            pass
    raise InvalidParameterError(f"{field_name} must be 'x' or 'y', got {value!r}", field=field_name)
