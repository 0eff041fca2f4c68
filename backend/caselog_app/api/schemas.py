"""
Schematy DTO dla API CaseLog.

Używamy dataclasses dla prostoty (bez dodatkowych zależności).
Schematy dzielą się na Request (wejście), rekordy zdalnego serwisu case'ów
i Response (wyjście).
"""

from dataclasses import dataclass, asdict, field, fields
from typing import Optional, List, Union


# === Request Schemas (wejście z API) ===

@dataclass
class CaseEntryRequest:
    """
    Surowe pola formularza case'a (jeden wpis, także pozycja batcha).

    start_time/end_time: tekst YYYY-MM-DDTHH:MM albo TimePoint (ns).
    Pola EMR przychodzą jako "" gdy nie wybrano wartości.
    """
    agent_name: str
    task_type: str
    start_time: Union[str, int, None] = None
    end_time: Union[str, int, None] = None
    notes: str = ''
    case_origin: Optional[str] = None
    emr_case_number: Optional[str] = None
    case_type: Optional[str] = None
    assistance_needed: Optional[str] = None
    ticket_status: Optional[str] = None
    escalation_transfer_type: Optional[str] = None
    escalation_transfer_destination: Optional[str] = None


@dataclass
class ValidateRangeRequest:
    """Request dla POST /api/cases/validate-range."""
    start_time: Union[str, int, None] = None
    end_time: Union[str, int, None] = None


@dataclass
class SaveProfileRequest:
    """Request dla zapisania profilu (POST /api/profile)."""
    username: str
    shift_preferences: str = ''


# === Rekordy zdalnego serwisu case'ów ===

@dataclass
class CaseFields:
    """
    Znormalizowane pola case'a wysyłane do zdalnego serwisu.

    start_time/end_time to TimePointy (nanosekundy od epoki).
    Pola EMR są None gdy nie dotyczą.
    """
    agent_name: str
    task_type: str
    start_time: int
    end_time: int
    notes: str = ''
    case_origin: Optional[str] = None
    emr_case_number: Optional[str] = None
    case_type: Optional[str] = None
    assistance_needed: Optional[str] = None
    ticket_status: Optional[str] = None
    escalation_transfer_type: Optional[str] = None
    escalation_transfer_destination: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class CaseRecord(CaseFields):
    """Zapisany case (własność zdalnego serwisu) - CaseFields + id."""
    id: int = 0

    @classmethod
    def from_fields(cls, case_id: int, case_fields: CaseFields) -> 'CaseRecord':
        values = {f.name: getattr(case_fields, f.name) for f in fields(CaseFields)}
        return cls(id=case_id, **values)


@dataclass
class UserProfile:
    """Profil agenta (nazwa + preferencje zmiany "HH:MM-HH:MM")."""
    username: str
    shift_preferences: str

    def to_dict(self):
        return asdict(self)


@dataclass
class UtilizationStatsDTO:
    """Statystyki wykorzystania ze zdalnego serwisu (sekundy pracy)."""
    daily: Optional[int] = None
    weekly: Optional[int] = None

    def to_dict(self):
        return asdict(self)


# === Response Schemas (wyjście z API) ===

@dataclass
class CaseListItemDTO:
    """Case na liście - rekord + pola do wyświetlenia."""
    case: dict  # CaseRecord.to_dict(), TimePointy jako int
    task_type_label: str
    start_display: str
    end_display: str
    start_local_input: str
    end_local_input: str
    duration_display: str

    def to_dict(self):
        return asdict(self)


@dataclass
class PersonalStatsDTO:
    """Dzisiejsze statystyki agenta (kafelki dashboardu)."""
    shift_progress: int  # 0-100, przycięte
    utilization: float  # %, NIE przycięte do 100
    time_left: str  # "Xh Ym"
    work_time: str  # "Xh Ym"
    worked_minutes: float
    shift_minutes: int

    def to_dict(self):
        return asdict(self)


@dataclass
class AnalyticsDTO:
    """Podsumowanie czasu per typ zadania."""
    work_by_type: dict  # label -> minuty
    break_by_type: dict  # label -> minuty
    total_minutes: int
    avg_duration: int
    case_count: int

    def to_dict(self):
        return asdict(self)


@dataclass
class SubmitResultDTO:
    """Wynik zapisu case'a / batcha."""
    success: bool
    cases: List[dict] = field(default_factory=list)
    errors: Optional[List[str]] = None

    def to_dict(self):
        return asdict(self)


# === Helpery do parsowania ===

def parse_json_to_dataclass(data: dict, dataclass_type):
    """
    Parsuje dict (z json.loads) do dataclass.

    Args:
        data: Dict z danymi
        dataclass_type: Klasa dataclass docelowa

    Returns:
        Instancja dataclass

    Raises:
        ValueError: Jeśli brakuje wymaganych pól lub są nadmiarowe
    """
    if not isinstance(data, dict):
        raise ValueError("Nieprawidłowe dane wejściowe: oczekiwano obiektu JSON")
    try:
        return dataclass_type(**data)
    except TypeError as e:
        raise ValueError(f"Nieprawidłowe dane wejściowe: {e}")
