"""
IntervalService - walidacja przedziałów czasu sesji pracy.

Odpowiada za:
- walidację pary (start, end) z formularza (tekst datetime-local lub TimePoint)
- test nakładania się dwóch przedziałów

Wszystkie funkcje są czyste - bez stanu, bez I/O.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Union

from caselog_app.utils.time_conversion import MAX_TIME_POINT, ParseError, from_local_input


TimeInput = Union[str, int, None]


# === Wyjątki domenowe ===

class MissingFieldError(Exception):
    """Brak wymaganego pola (start lub end)."""
    pass


class NonPositiveDurationError(Exception):
    """Koniec nie jest ściśle po początku (end <= start)."""
    pass


class Reason(str, Enum):
    """Powód odrzucenia przedziału (ValidationResult.reason)."""
    MISSING_FIELD = "MissingField"
    PARSE_ERROR = "ParseError"
    NON_POSITIVE_DURATION = "NonPositiveDuration"


_REASON_ERRORS = {
    Reason.MISSING_FIELD: MissingFieldError,
    Reason.PARSE_ERROR: ParseError,
    Reason.NON_POSITIVE_DURATION: NonPositiveDurationError,
}


@dataclass(frozen=True)
class Interval:
    """
    Zalogowana sesja pracy: półotwarty przedział [start, end) w nanosekundach.

    Niezmiennik: 0 <= start < end <= MAX_TIME_POINT.
    """
    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start <= MAX_TIME_POINT and 0 <= self.end <= MAX_TIME_POINT):
            raise ValueError(f"TimePoint poza zakresem 0..2**63-1: ({self.start}, {self.end})")
        if self.end <= self.start:
            raise NonPositiveDurationError(
                f"Koniec przedziału musi być po początku: ({self.start}, {self.end})"
            )

    @property
    def duration_nanos(self) -> int:
        return self.end - self.start


@dataclass
class ValidationResult:
    """Wynik validate_range: {valid, error, reason} + rozwiązany przedział."""
    valid: bool
    error: Optional[str] = None
    reason: Optional[Reason] = None
    interval: Optional[Interval] = field(default=None, compare=False)

    def to_dict(self):
        return {
            'valid': self.valid,
            'error': self.error,
            'reason': self.reason.value if self.reason else None,
        }

    def raise_for_error(self) -> Interval:
        """Zwraca przedział albo rzuca wyjątek odpowiadający reason."""
        if self.valid:
            return self.interval
        raise _REASON_ERRORS[self.reason](self.error)


def _is_missing(value: TimeInput) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _resolve(value: Union[str, int]) -> int:
    """Tekst datetime-local albo TimePoint -> TimePoint."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ParseError(f"Nieprawidłowa wartość czasu: {value!r}")
    resolved = value if isinstance(value, int) else from_local_input(value.strip())
    if resolved < 0:
        raise ParseError(f"Czas sprzed epoki Unix: {value!r}")
    if resolved > MAX_TIME_POINT:
        raise ParseError(f"Czas poza zakresem TimePoint: {value!r}")
    return resolved


def validate_range(start: TimeInput, end: TimeInput) -> ValidationResult:
    """
    Sprawdza czy (start, end) tworzą poprawną sesję pracy.

    Kolejność reguł:
    1. Brak start lub end (None / pusty tekst) -> MISSING_FIELD
       (nigdy nie podstawiamy "teraz")
    2. Nieprawidłowy tekst -> PARSE_ERROR
    3. end <= start -> NON_POSITIVE_DURATION
    4. W przeciwnym razie valid=True i rozwiązany Interval

    Args:
        start: Tekst YYYY-MM-DDTHH:MM lub TimePoint
        end: Tekst YYYY-MM-DDTHH:MM lub TimePoint

    Returns:
        ValidationResult
    """
    if _is_missing(start) or _is_missing(end):
        return ValidationResult(
            valid=False,
            error="Start and end times are required",
            reason=Reason.MISSING_FIELD,
        )

    try:
        start_ns = _resolve(start)
        end_ns = _resolve(end)
    except ParseError as e:
        return ValidationResult(valid=False, error=str(e), reason=Reason.PARSE_ERROR)

    if end_ns <= start_ns:
        return ValidationResult(
            valid=False,
            error="End time must be after start time",
            reason=Reason.NON_POSITIVE_DURATION,
        )

    return ValidationResult(valid=True, interval=Interval(start_ns, end_ns))


def ensure_valid_range(start: TimeInput, end: TimeInput) -> Interval:
    """
    Wariant validate_range rzucający wyjątek.

    Raises:
        MissingFieldError, ParseError, NonPositiveDurationError
    """
    return validate_range(start, end).raise_for_error()


def overlaps(a: Interval, b: Interval) -> bool:
    """
    Test przecięcia przedziałów półotwartych.

    Przedziały stykające się (a.end == b.start) NIE nakładają się.
    """
    return a.start < b.end and a.end > b.start


def find_overlapping(interval: Interval, others: Iterable[Interval]) -> List[Interval]:
    """Zwraca te przedziały z others, które nakładają się na interval."""
    return [other for other in others if overlaps(interval, other)]
