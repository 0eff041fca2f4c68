"""
CaseService - walidacja formularzy case'ów i przekazanie do zdalnego serwisu.

Odpowiada za:
- walidację pojedynczego wpisu (agent, przedział czasu, pola EMR)
- normalizację wpisu do CaseFields (TimePointy, None dla nieużywanych pól)
- create / edit / batch / timer - każda operacja to JEDNO wywołanie bramy,
  bez ponawiania (co najwyżej jeden zapis na akcję użytkownika)

Konflikty czasowe wykrywa zdalny serwis (ConflictError przechodzi dalej).
"""

from dataclasses import replace
from typing import List, Optional
import logging

from django.utils import timezone

from caselog_app.api.schemas import CaseEntryRequest, CaseFields, CaseRecord
from caselog_app.enums import (
    DESTINATION_REQUIRED_TYPES,
    AssistanceNeeded,
    CaseOrigin,
    CaseType,
    Department,
    EscalationTransferType,
    TaskType,
    TicketStatus,
)
from caselog_app.services.case_gateway import CaseGateway
from caselog_app.services.interval_service import Interval, MissingFieldError, validate_range
from caselog_app.services.metrics_service import is_break_task
from caselog_app.utils.time_conversion import datetime_to_nanoseconds, milliseconds_to_nanoseconds

logger = logging.getLogger(__name__)


# === Wyjątki domenowe ===

class EntryValidationError(Exception):
    """Wpis nie przeszedł walidacji. errors: lista komunikatów dla UI."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class BatchValidationError(EntryValidationError):
    """Co najmniej jeden wpis batcha jest niepoprawny (komunikaty z numerem wpisu)."""
    pass


# Pola EMR wymagane dla supportEMRTickets (pole, komunikat)
REQUIRED_EMR_FIELDS = [
    ('case_type', 'Case Type is required for EMR tickets'),
    ('assistance_needed', 'Assistance Needed is required for EMR tickets'),
    ('ticket_status', 'Ticket Status is required for EMR tickets'),
    ('escalation_transfer_type', 'Escalation/Transfer classification is required for EMR tickets'),
]

# Dozwolone wartości pól EMR
EMR_FIELD_CHOICES = {
    'case_origin': CaseOrigin,
    'case_type': CaseType,
    'assistance_needed': AssistanceNeeded,
    'ticket_status': TicketStatus,
    'escalation_transfer_type': EscalationTransferType,
    'escalation_transfer_destination': Department,
}


# Pola tekstowe wpisu (czasy walidowane osobno przez validate_range)
TEXT_FIELDS = [
    'agent_name',
    'task_type',
    'notes',
    'case_origin',
    'emr_case_number',
    'case_type',
    'assistance_needed',
    'ticket_status',
    'escalation_transfer_type',
    'escalation_transfer_destination',
]


def _is_emr(entry: CaseEntryRequest) -> bool:
    return entry.task_type == TaskType.SUPPORT_EMR_TICKETS


def _needs_destination(entry: CaseEntryRequest) -> bool:
    return entry.escalation_transfer_type in DESTINATION_REQUIRED_TYPES


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_entry(entry: CaseEntryRequest) -> List[str]:
    """
    Waliduje jeden wpis formularza.

    Zasady:
    - pola tekstowe to str albo None (inaczej tylko te błędy, bez dalszych reguł)
    - agent_name niepusty
    - task_type ze słownika TaskType
    - przedział czasu: validate_range (brak pola / zły format / end <= start)
    - dla supportEMRTickets: case_type, assistance_needed, ticket_status,
      escalation_transfer_type wymagane; destination wymagane gdy
      escalated lub transferred; wartości ze słowników

    Returns:
        Lista komunikatów błędów (pusta = wpis poprawny)
    """
    errors = []

    for field_name in TEXT_FIELDS:
        value = getattr(entry, field_name)
        if value is not None and not isinstance(value, str):
            errors.append(f'Invalid value for {field_name}: {value!r}')
    if errors:
        # Reszta reguł zakłada tekst
        return errors

    if not (entry.agent_name or '').strip():
        errors.append('Agent name is required')

    if entry.task_type not in TaskType.values:
        errors.append(f'Unknown task type: {entry.task_type}')

    validation = validate_range(entry.start_time, entry.end_time)
    if not validation.valid:
        errors.append(validation.error)

    if _is_emr(entry):
        for field_name, message in REQUIRED_EMR_FIELDS:
            if not _blank_to_none(getattr(entry, field_name)):
                errors.append(message)

        if _needs_destination(entry) and not _blank_to_none(entry.escalation_transfer_destination):
            errors.append('Escalation/Transfer destination is required')

        for field_name, choices in EMR_FIELD_CHOICES.items():
            value = _blank_to_none(getattr(entry, field_name))
            if value is not None and value not in choices.values:
                errors.append(f'Invalid value for {field_name}: {value}')

    return errors


def normalize_entry(entry: CaseEntryRequest, interval: Interval) -> CaseFields:
    """
    Zamienia poprawny wpis na CaseFields dla zdalnego serwisu.

    - pola EMR -> None dla zadań innych niż supportEMRTickets
    - destination -> None gdy typ nie jest escalated/transferred
    - puste stringi -> None
    """
    is_emr = _is_emr(entry)

    def emr_value(field_name: str) -> Optional[str]:
        return _blank_to_none(getattr(entry, field_name)) if is_emr else None

    destination = emr_value('escalation_transfer_destination')
    if not _needs_destination(entry):
        destination = None

    return CaseFields(
        agent_name=entry.agent_name.strip(),
        task_type=entry.task_type,
        start_time=interval.start,
        end_time=interval.end,
        notes=entry.notes or '',
        case_origin=emr_value('case_origin'),
        emr_case_number=emr_value('emr_case_number'),
        case_type=emr_value('case_type'),
        assistance_needed=emr_value('assistance_needed'),
        ticket_status=emr_value('ticket_status'),
        escalation_transfer_type=emr_value('escalation_transfer_type'),
        escalation_transfer_destination=destination,
    )


def _prepare(entry: CaseEntryRequest) -> CaseFields:
    errors = validate_entry(entry)
    if errors:
        logger.warning(f"Odrzucono wpis agenta '{entry.agent_name}': {errors}")
        raise EntryValidationError(errors)

    interval = validate_range(entry.start_time, entry.end_time).interval
    return normalize_entry(entry, interval)


def submit_case(gateway: CaseGateway, entry: CaseEntryRequest) -> CaseRecord:
    """
    Waliduje wpis i tworzy case w zdalnym serwisie.

    Raises:
        EntryValidationError: Wpis niepoprawny (nic nie zostało wysłane)
        ConflictError: Serwis wykrył nakładanie się z istniejącym case'em
    """
    case_fields = _prepare(entry)
    record = gateway.create_case(case_fields)
    logger.info(f"Zapisano case {record.id} dla {record.agent_name}")
    return record


def edit_case(gateway: CaseGateway, case_id: int, entry: CaseEntryRequest) -> CaseRecord:
    """
    Waliduje wpis i nadpisuje istniejący case.

    Raises:
        EntryValidationError, ConflictError, NotFoundError
    """
    case_fields = _prepare(entry)
    record = gateway.edit_case(case_id, case_fields)
    logger.info(f"Zaktualizowano case {case_id}")
    return record


def submit_batch(gateway: CaseGateway, entries: List[CaseEntryRequest]) -> List[CaseRecord]:
    """
    Waliduje wszystkie wpisy, a potem wysyła je JEDNYM wywołaniem.

    Pseudokod:
    1. Pusty batch -> BatchValidationError
    2. Dla każdego wpisu (numeracja od 1): validate_entry,
       błędy z prefiksem "Entry N: "
    3. Jakikolwiek błąd -> BatchValidationError (nic nie zostało wysłane)
    4. gateway.batch_create_cases(znormalizowane wpisy)

    Raises:
        BatchValidationError, ConflictError
    """
    if not entries:
        raise BatchValidationError(['Please fill in at least one complete entry'])

    errors = [
        f'Invalid value for {field_name}: {getattr(entry, field_name)!r}'
        for field_name in TEXT_FIELDS
        if getattr(entry, field_name) is not None and not isinstance(getattr(entry, field_name), str)
    ]
    if errors:
        # Reszta reguł zakłada tekst
        return errors

    prepared = []
    for number, entry in enumerate(entries, start=1):
        entry_errors = validate_entry(entry)
        if entry_errors:
            errors.extend(f'Entry {number}: {message}' for message in entry_errors)
            continue
        interval = validate_range(entry.start_time, entry.end_time).interval
        prepared.append(normalize_entry(entry, interval))

    if errors:
        logger.warning(f"Odrzucono batch {len(entries)} wpisów: {len(errors)} błędów")
        raise BatchValidationError(errors)

    records = gateway.batch_create_cases(prepared)
    logger.info(f"Zapisano batch {len(records)} case'ów")
    return records


def submit_timer_case(
    gateway: CaseGateway,
    entry: CaseEntryRequest,
    started_at_ms: Optional[int],
    now_ms: Optional[int] = None,
) -> CaseRecord:
    """
    Zapis case'a z timera (tryb automatyczny).

    Początek to chwila startu timera, koniec to chwila zapisu (now_ms,
    domyślnie teraz). Czas pracy (bez przerw) jest zgłaszany do statystyk
    wykorzystania.

    Raises:
        MissingFieldError: Timer nie został uruchomiony
        EntryValidationError, ConflictError
    """
    if not started_at_ms:
        raise MissingFieldError('Please start the timer first')

    if now_ms is None:
        now_ms = datetime_to_nanoseconds(timezone.now()) // 1_000_000

    timed_entry = replace(
        entry,
        start_time=milliseconds_to_nanoseconds(started_at_ms),
        end_time=milliseconds_to_nanoseconds(now_ms),
    )

    record = submit_case(gateway, timed_entry)
    if not is_break_task(record.task_type):
        gateway.update_utilization_stats(record.agent_name, (now_ms - started_at_ms) // 1000)
    return record
