"""
MetricsService - metryki pochodne dla dashboardów.

Odpowiada za:
- parsowanie okna zmiany ("HH:MM-HH:MM")
- sumowanie przepracowanych minut (bez przerw)
- utilization, postęp zmiany, pozostały czas
- podsumowania dzienne (personal stats) i per typ zadania (analytics)

Wszystkie funkcje są czyste: wynik zależy tylko od argumentów
(i ustawień Django dla wartości domyślnych).
"""

from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable, Iterable, List, Optional
import re

from django.conf import settings
from django.utils import timezone

from caselog_app.api.schemas import AnalyticsDTO, CaseRecord, PersonalStatsDTO
from caselog_app.enums import TaskType
from caselog_app.utils.time_conversion import (
    ParseError,
    datetime_to_nanoseconds,
    round_half_up,
    split_minutes,
)


SHIFT_PATTERN = re.compile(r'^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$')


@dataclass(frozen=True)
class ShiftWindow:
    """Okno zmiany (tylko godziny, bez daty, w obrębie jednego dnia)."""
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int

    def __post_init__(self):
        for hour in (self.start_hour, self.end_hour):
            if not 0 <= hour <= 23:
                raise ParseError(f"Nieprawidłowa godzina w oknie zmiany: {hour}")
        for minute in (self.start_minute, self.end_minute):
            if not 0 <= minute <= 59:
                raise ParseError(f"Nieprawidłowa minuta w oknie zmiany: {minute}")


@dataclass(frozen=True)
class RemainingTime:
    hours: int
    minutes: int

    def __str__(self):
        return f"{self.hours}h {self.minutes}m"


# === Okno zmiany ===

def parse_shift_window(text: Optional[str]) -> ShiftWindow:
    """
    Parsuje preferencje zmiany "HH:MM-HH:MM".

    Pusty tekst (brak profilu / brak preferencji) -> CASELOG_DEFAULT_SHIFT.

    Raises:
        ParseError: Nieprawidłowy format lub wartości spoza zakresu
    """
    if not text or not text.strip():
        text = settings.CASELOG_DEFAULT_SHIFT

    match = SHIFT_PATTERN.match(text)
    if not match:
        raise ParseError(f"Nieprawidłowy format okna zmiany (oczekiwano HH:MM-HH:MM): {text!r}")

    start_h, start_m, end_h, end_m = (int(group) for group in match.groups())
    return ShiftWindow(start_h, start_m, end_h, end_m)


def shift_minutes(window: ShiftWindow) -> int:
    """
    Długość zmiany w minutach: (endH*60+endM) - (startH*60+startM).

    Wynik NIE jest przycinany - wartość <= 0 oznacza, że procenty liczone
    względem zmiany są niezdefiniowane (decyduje wywołujący).
    """
    return (
        (window.end_hour * 60 + window.end_minute)
        - (window.start_hour * 60 + window.start_minute)
    )


# === Czas pracy ===

def is_break_task(task_type: str) -> bool:
    """Domyślny klasyfikator przerw (CASELOG_BREAK_TASK_TYPES)."""
    return task_type in settings.CASELOG_BREAK_TASK_TYPES


def case_duration_minutes(record: CaseRecord) -> float:
    """Czas trwania case'a w minutach (float, bez zaokrąglania)."""
    return (record.end_time - record.start_time) / 1e6 / 60000


def total_worked_minutes(
    records: Iterable[CaseRecord],
    break_classifier: Callable[[str], bool] = is_break_task,
) -> float:
    """
    Suma minut pracy z pominięciem przerw.

    Zaokrąglanie (jeśli w ogóle) robi dopiero warstwa wyświetlania.
    """
    return sum(
        case_duration_minutes(record)
        for record in records
        if not break_classifier(record.task_type)
    )


def utilization_percent(worked_minutes: float, shift_minutes_value: float) -> float:
    """
    worked / shift * 100, albo 0 gdy zmiana <= 0.

    Celowo BEZ przycinania do 100 - wartość > 100 sygnalizuje pracę
    równoległą (nakładające się case'y).
    """
    if shift_minutes_value <= 0:
        return 0
    return worked_minutes / shift_minutes_value * 100


def shift_progress_percent(worked_minutes: float, shift_minutes_value: float) -> float:
    """Postęp zmiany dla paska postępu - jak utilization, ale max 100."""
    return min(utilization_percent(worked_minutes, shift_minutes_value), 100)


def remaining_shift_time(worked_minutes: float, shift_minutes_value: float) -> RemainingTime:
    """
    Pozostały czas zmiany: max(0, shift - worked) jako pełne godziny
    i minuty zaokrąglone połówkami w górę (nigdy 60m).
    """
    remaining = max(0, shift_minutes_value - worked_minutes)
    hours, minutes = split_minutes(remaining)
    return RemainingTime(hours=hours, minutes=minutes)


def _hours_minutes(minutes: float) -> str:
    hours, mins = split_minutes(minutes)
    return f"{hours}h {mins}m"


# === Podsumowania ===

def start_of_local_day(now: Optional[datetime] = None) -> int:
    """TimePoint lokalnej północy dnia, w którym wypada now."""
    local_now = timezone.localtime(now or timezone.now())
    midnight = timezone.make_aware(
        datetime.combine(local_now.date(), time.min),
        local_now.tzinfo,
    )
    return datetime_to_nanoseconds(midnight)


def cases_started_since(records: Iterable[CaseRecord], since: int) -> List[CaseRecord]:
    """Case'y rozpoczęte w chwili since lub później."""
    return [record for record in records if record.start_time >= since]


def personal_stats(
    records: Iterable[CaseRecord],
    shift_text: Optional[str],
    now: Optional[datetime] = None,
) -> PersonalStatsDTO:
    """
    Dzisiejsze statystyki agenta.

    Pseudokod:
    1. today_cases = case'y rozpoczęte od lokalnej północy
    2. worked = total_worked_minutes(today_cases)
    3. shift = shift_minutes(parse_shift_window(shift_text))
    4. progress = round_half_up(min(worked/shift*100, 100)),
       utilization = round_half_up(.., 1)
    5. time_left = remaining_shift_time, work_time = "Xh Ym"
    """
    today_cases = cases_started_since(records, start_of_local_day(now))
    worked = total_worked_minutes(today_cases)
    shift = shift_minutes(parse_shift_window(shift_text))

    return PersonalStatsDTO(
        shift_progress=round_half_up(shift_progress_percent(worked, shift)),
        utilization=round_half_up(utilization_percent(worked, shift), 1),
        time_left=str(remaining_shift_time(worked, shift)),
        work_time=_hours_minutes(worked),
        worked_minutes=worked,
        shift_minutes=shift,
    )


def task_type_label(task_type: str) -> str:
    """Etykieta typu zadania; nieznany typ -> surowa wartość."""
    try:
        return TaskType(task_type).label
    except ValueError:
        return task_type


def analytics_summary(
    records: Iterable[CaseRecord],
    break_classifier: Callable[[str], bool] = is_break_task,
) -> AnalyticsDTO:
    """
    Minuty per typ zadania (osobno praca i przerwy), suma i średnia.

    Suma i średnia obejmują wszystkie case'y (także przerwy)
    i są zaokrąglane do pełnych minut.
    """
    records = list(records)
    work_by_type = {}
    break_by_type = {}
    total = 0.0

    for record in records:
        duration = case_duration_minutes(record)
        total += duration
        bucket = break_by_type if break_classifier(record.task_type) else work_by_type
        label = task_type_label(record.task_type)
        bucket[label] = bucket.get(label, 0) + duration

    return AnalyticsDTO(
        work_by_type=work_by_type,
        break_by_type=break_by_type,
        total_minutes=round_half_up(total),
        avg_duration=round_half_up(total / len(records)) if records else 0,
        case_count=len(records),
    )
