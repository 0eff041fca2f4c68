"""
Konwersje czasu: TimePoint (nanosekundy od epoki) <-> tekst datetime-local.

TimePoint to int - liczba nanosekund od 1970-01-01T00:00:00Z. Wszystkie
obliczenia na TimePointach są całkowitoliczbowe (bez floatów).

Granice precyzji:
- to_local_input() obcina nanosekundy do milisekund (dzielenie całkowite,
  NIE zaokrąglanie), a format tekstowy nie niesie sekund.
- from_local_input(to_local_input(t)) == t dla t wyrównanych do minuty.

Strefa lokalna to bieżąca strefa Django (settings.TIME_ZONE lub
timezone.activate()), chyba że wywołujący poda tz jawnie.

Wykorzystanie:
    t = from_local_input("2025-01-05T14:30")
    to_local_input(t)                      # "2025-01-05T14:30"
    format_display(t, "Asia/Kolkata")      # "Jan 5, 2025, 2:30 PM"
"""

from datetime import datetime, timedelta, timezone as dt_timezone, tzinfo
from math import floor
from typing import List, Optional, Tuple
import logging
import zoneinfo

from django.utils import dateformat, timezone

from caselog_app.utils.datetime_parsers import (
    DateTimeParser,
    LocalInputParser,
    LocalInputWithSecondsParser,
)

logger = logging.getLogger(__name__)

NANOS_PER_MILLISECOND = 1_000_000
EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
# Największy TimePoint (int64, ok. 2262-04-11); dalsze wartości nie mają reprezentacji
MAX_TIME_POINT = 2**63 - 1

DISPLAY_FORMAT = 'M j, Y, g:i A'


class ParseError(ValueError):
    """Nieprawidłowy tekst daty/czasu (lub nieznana strefa czasowa)."""
    pass


class LocalInputConverter:
    """
    Konwerter tekstu datetime-local na TimePoint (Chain of Responsibility).

    Próbuje parsery po kolei w kolejności z konstruktora, aż do pierwszego
    sukcesu. W odróżnieniu od "best effort" parsowania nigdy nie zwraca
    wartości domyślnej - brak dopasowania to zawsze ParseError.

    Attributes:
        parsers: Lista parserów w kolejności priorytetu
    """

    def __init__(self, parsers: List[DateTimeParser]):
        if not parsers:
            raise ValueError("LocalInputConverter wymaga przynajmniej jednego parsera")

        self.parsers = parsers

    def parse_local(self, value: str) -> datetime:
        """
        Sparsuj tekst na naiwny datetime w czasie lokalnym.

        Raises:
            ParseError: Pusta wartość lub żaden parser jej nie rozpoznał
        """
        if not value:
            raise ParseError("Pusta wartość daty i czasu")

        for parser in self.parsers:
            if parser.can_parse(value):
                parsed = parser.parse(value)
                if parsed:
                    logger.debug(
                        f"Sparsowano '{value}' używając {parser.__class__.__name__}"
                    )
                    return parsed
                logger.warning(
                    f"{parser.__class__.__name__} rozpoznał format '{value}' "
                    f"ale parsowanie się nie powiodło (nieprawidłowa data)"
                )

        raise ParseError(f"Nie można sparsować daty i czasu: {value!r}")

    def to_nanoseconds(self, value: str, tz: Optional[tzinfo] = None) -> int:
        """
        Konwertuj tekst datetime-local na TimePoint.

        Czas ścienny jest interpretowany w strefie tz (domyślnie bieżąca
        strefa Django), potem zamieniany na milisekundy od epoki
        i mnożony przez 1 000 000.
        """
        naive = self.parse_local(value)
        aware = timezone.make_aware(naive, tz or timezone.get_current_timezone())
        return datetime_to_nanoseconds(aware)


default_converter = LocalInputConverter([
    LocalInputParser(),
    LocalInputWithSecondsParser(),
])


def milliseconds_to_nanoseconds(milliseconds: int) -> int:
    """Milisekundy (np. Date.now() z przeglądarki) -> TimePoint."""
    return int(milliseconds) * NANOS_PER_MILLISECOND


def datetime_to_nanoseconds(value: datetime) -> int:
    """
    Aware datetime -> TimePoint, z precyzją do milisekundy.

    Liczone na timedelta (całkowitoliczbowo), bez timestamp() i floatów.
    """
    if timezone.is_naive(value):
        raise ValueError("datetime_to_nanoseconds wymaga datetime ze strefą czasową")

    delta = value - EPOCH
    milliseconds = (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
    return milliseconds * NANOS_PER_MILLISECOND


def nanoseconds_to_datetime(t: int, tz: Optional[tzinfo] = None) -> datetime:
    """
    TimePoint -> aware datetime w strefie tz (domyślnie bieżąca strefa Django).

    Reszta poniżej milisekundy jest obcinana.
    """
    milliseconds = t // NANOS_PER_MILLISECOND
    utc_value = EPOCH + timedelta(milliseconds=milliseconds)
    return timezone.localtime(utc_value, tz or timezone.get_current_timezone())


def to_local_input(t: int, tz: Optional[tzinfo] = None) -> str:
    """
    TimePoint -> tekst YYYY-MM-DDTHH:MM w czasie lokalnym (zero-padded).

    Args:
        t: nanosekundy od epoki
        tz: strefa (domyślnie bieżąca strefa Django)
    """
    local = nanoseconds_to_datetime(t, tz)
    return (
        f"{local.year:04d}-{local.month:02d}-{local.day:02d}"
        f"T{local.hour:02d}:{local.minute:02d}"
    )


def from_local_input(value: str, tz: Optional[tzinfo] = None) -> int:
    """
    Tekst YYYY-MM-DDTHH:MM (czas lokalny) -> TimePoint.

    Raises:
        ParseError: Pusty lub nieprawidłowy tekst
    """
    return default_converter.to_nanoseconds(value, tz)


def combine_date_and_time(date_text: str, time_text: str) -> str:
    """
    Skleja osobne pola formularza (data + godzina) w tekst datetime-local.

    Tryb ręczny formularza ma osobne pola YYYY-MM-DD i HH:MM.
    """
    if not date_text or not time_text:
        return ''
    return f"{date_text}T{time_text}"


def current_local_input(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    """Bieżąca chwila jako tekst datetime-local (wartość startowa formularza)."""
    now = now or timezone.now()
    return to_local_input(datetime_to_nanoseconds(now), tz)


def format_display(t: int, timezone_name: str) -> str:
    """
    Czytelny zapis TimePointu w nazwanej strefie, np. "Jan 5, 2025, 2:30 PM".

    Tylko do wyświetlania - wynik nie jest parsowany z powrotem.

    Raises:
        ParseError: Nieznana nazwa strefy czasowej
    """
    try:
        tz = zoneinfo.ZoneInfo(timezone_name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise ParseError(f"Nieznana strefa czasowa: {timezone_name!r}") from e

    return dateformat.format(nanoseconds_to_datetime(t, tz), DISPLAY_FORMAT)


def round_half_up(value: float, digits: int = 0):
    """
    Zaokrąglenie połówek w górę (2.5 -> 3, 0.25 -> 0.3 dla digits=1).

    W odróżnieniu od wbudowanego round(), które zaokrągla połówki do parzystej.
    """
    factor = 10 ** digits
    rounded = floor(value * factor + 0.5)
    if digits == 0:
        return rounded
    return rounded / factor


def split_minutes(minutes: float) -> Tuple[int, int]:
    """
    Minuty -> (pełne godziny, zaokrąglone minuty).

    Minuty nigdy nie wynoszą 60 - nadmiar przechodzi do godzin (59.6 -> (1, 0)).
    """
    return divmod(round_half_up(minutes), 60)


def format_duration(minutes: float) -> str:
    """
    Minuty -> "Xh Ym" lub "Ym" (gdy poniżej godziny).

    Przykłady: 125 -> "2h 5m", 45 -> "45m", 59.6 -> "1h 0m", 44.5 -> "45m"
    """
    hours, mins = split_minutes(minutes)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_elapsed_time(seconds: int) -> str:
    """Sekundy -> HH:MM:SS (licznik timera)."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def elapsed_seconds(started_at_ms: Optional[int], now_ms: int) -> int:
    """Pełne sekundy od startu timera; 0 gdy timer nie działa."""
    if not started_at_ms:
        return 0
    return max(0, (now_ms - started_at_ms) // 1000)
