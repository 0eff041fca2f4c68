"""
Brama do zdalnego serwisu case'ów.

Zdalny serwis jest właścicielem danych (case'y, profile, statystyki)
i wykrywa konflikty czasowe. CaseGateway opisuje jego stałą powierzchnię
RPC; aktywna implementacja jest wybierana przez
settings.CASELOG_CASE_GATEWAY (ścieżka kropkowa).

InMemoryCaseGateway to lokalny odpowiednik serwisu dla developmentu
i testów - trzyma dane w pamięci procesu.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Dict, List, Optional, Tuple
import logging
import threading

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from caselog_app.api.schemas import CaseFields, CaseRecord, UserProfile, UtilizationStatsDTO
from caselog_app.services.interval_service import Interval, find_overlapping
from caselog_app.utils.time_conversion import (
    MAX_TIME_POINT,
    NANOS_PER_MILLISECOND,
    datetime_to_nanoseconds,
)

logger = logging.getLogger(__name__)

NANOS_PER_DAY = 86_400 * 1000 * NANOS_PER_MILLISECOND


# === Wyjątki zdalnego serwisu ===

class CaseServiceError(Exception):
    """Bazowy błąd zgłoszony przez zdalny serwis case'ów."""
    pass


class ConflictError(CaseServiceError):
    """Przedział nakłada się na istniejący case tego samego agenta."""
    pass


class NotFoundError(CaseServiceError):
    """Case o podanym id nie istnieje."""
    pass


class ServiceValidationError(CaseServiceError):
    """Serwis odrzucił dane case'a."""
    pass


class CaseGateway(ABC):
    """
    Stała powierzchnia RPC zdalnego serwisu case'ów.

    Operacje zapisu nie są ponawiane - każde wywołanie to co najwyżej
    jeden zapis po stronie serwisu.
    """

    @abstractmethod
    def create_case(self, case_fields: CaseFields) -> CaseRecord:
        """
        Raises:
            ConflictError, ServiceValidationError
        """
        pass

    @abstractmethod
    def edit_case(self, case_id: int, case_fields: CaseFields) -> CaseRecord:
        """
        Raises:
            ConflictError, NotFoundError, ServiceValidationError
        """
        pass

    @abstractmethod
    def batch_create_cases(self, cases: List[CaseFields]) -> List[CaseRecord]:
        """Jedno wywołanie dla całego batcha - wszystko albo nic."""
        pass

    @abstractmethod
    def list_cases(self) -> List[CaseRecord]:
        """Case'y w kolejności wstawiania (niekoniecznie posortowane po czasie)."""
        pass

    @abstractmethod
    def get_profile(self, owner: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def save_profile(self, owner: str, username: str, shift_preferences: str) -> UserProfile:
        pass

    @abstractmethod
    def get_utilization_stats(self, period: int) -> UtilizationStatsDTO:
        pass

    @abstractmethod
    def update_utilization_stats(self, agent_name: str, work_seconds: int) -> None:
        pass


class InMemoryCaseGateway(CaseGateway):
    """
    Lokalna implementacja serwisu case'ów w pamięci procesu.

    Honoruje kontrakt konfliktów: nowy lub edytowany case nie może
    nakładać się (overlaps) na inny case tego samego agenta. Batch jest
    sprawdzany także wewnętrznie i zapisywany atomowo.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cases: Dict[int, CaseRecord] = {}
        self._profiles: Dict[str, UserProfile] = {}
        self._work_log: List[Tuple[int, str, int]] = []  # (recorded_at, agent, seconds)
        self._next_id = 1

    # --- case'y ---

    def _check_fields(self, case_fields: CaseFields) -> Interval:
        if not case_fields.agent_name:
            raise ServiceValidationError("Agent name is required")
        if case_fields.start_time < 0:
            raise ServiceValidationError("Start time must not precede the Unix epoch")
        if case_fields.end_time > MAX_TIME_POINT:
            raise ServiceValidationError("End time is out of range")
        if case_fields.end_time <= case_fields.start_time:
            raise ServiceValidationError("End time must be after start time")
        return Interval(case_fields.start_time, case_fields.end_time)

    def _check_conflicts(self, case_fields: CaseFields, candidates: List[CaseFields]) -> None:
        interval = self._check_fields(case_fields)
        same_agent = [
            Interval(other.start_time, other.end_time)
            for other in candidates
            if other.agent_name == case_fields.agent_name
        ]
        if find_overlapping(interval, same_agent):
            logger.warning(
                f"Konflikt czasowy dla agenta {case_fields.agent_name}: "
                f"({case_fields.start_time}, {case_fields.end_time})"
            )
            raise ConflictError("Time conflict: case overlaps an existing case")

    def _store(self, case_fields: CaseFields) -> CaseRecord:
        record = CaseRecord.from_fields(self._next_id, case_fields)
        self._cases[record.id] = record
        self._next_id += 1
        return record

    def create_case(self, case_fields: CaseFields) -> CaseRecord:
        with self._lock:
            self._check_conflicts(case_fields, list(self._cases.values()))
            record = self._store(case_fields)

        logger.info(f"Utworzono case {record.id} ({record.task_type}) dla {record.agent_name}")
        return record

    def edit_case(self, case_id: int, case_fields: CaseFields) -> CaseRecord:
        with self._lock:
            if case_id not in self._cases:
                raise NotFoundError(f"Case not found: {case_id}")

            others = [c for c in self._cases.values() if c.id != case_id]
            self._check_conflicts(case_fields, others)

            record = CaseRecord.from_fields(case_id, case_fields)
            self._cases[case_id] = record

        logger.info(f"Zaktualizowano case {case_id}")
        return record

    def batch_create_cases(self, cases: List[CaseFields]) -> List[CaseRecord]:
        with self._lock:
            accepted: List[CaseFields] = list(self._cases.values())
            for case_fields in cases:
                self._check_conflicts(case_fields, accepted)
                accepted.append(case_fields)

            records = [self._store(case_fields) for case_fields in cases]

        logger.info(f"Utworzono batch {len(records)} case'ów")
        return records

    def list_cases(self) -> List[CaseRecord]:
        with self._lock:
            return list(self._cases.values())

    # --- profile ---

    def get_profile(self, owner: str) -> Optional[UserProfile]:
        with self._lock:
            return self._profiles.get(owner)

    def save_profile(self, owner: str, username: str, shift_preferences: str) -> UserProfile:
        profile = UserProfile(username=username, shift_preferences=shift_preferences)
        with self._lock:
            self._profiles[owner] = profile
        return profile

    # --- statystyki ---

    def update_utilization_stats(self, agent_name: str, work_seconds: int) -> None:
        recorded_at = datetime_to_nanoseconds(timezone.now())
        with self._lock:
            self._work_log.append((recorded_at, agent_name, work_seconds))

    def get_utilization_stats(self, period: int) -> UtilizationStatsDTO:
        """
        Sekundy pracy zgłoszone w dobie i tygodniu kończących się w chwili period.

        Okno bez żadnych zgłoszeń -> None (brak danych, nie zero).
        """
        with self._lock:
            log = list(self._work_log)

        def window_total(length_nanos: int) -> Optional[int]:
            entries = [
                seconds for recorded_at, _, seconds in log
                if period - length_nanos < recorded_at <= period
            ]
            return sum(entries) if entries else None

        return UtilizationStatsDTO(
            daily=window_total(NANOS_PER_DAY),
            weekly=window_total(7 * NANOS_PER_DAY),
        )


@lru_cache(maxsize=None)
def get_gateway() -> CaseGateway:
    """
    Zwraca (współdzieloną w procesie) instancję bramy z settings.CASELOG_CASE_GATEWAY.

    W testach: get_gateway.cache_clear() daje świeżą instancję.
    """
    gateway_class = import_string(settings.CASELOG_CASE_GATEWAY)
    logger.debug(f"Tworzę bramę serwisu case'ów: {gateway_class.__name__}")
    return gateway_class()
