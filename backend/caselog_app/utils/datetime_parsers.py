"""
Parsery tekstu datetime-local implementujące Strategy Pattern.

Każdy parser implementuje interfejs DateTimeParser i odpowiada za jeden
konkretny format tekstu wpisywanego w formularzach (pole datetime-local).
Parsery zwracają NAIWNY datetime - strefę czasową dokleja konwerter.

Wykorzystanie:
    parser = LocalInputParser()
    if parser.can_parse("2025-01-05T14:30"):
        dt = parser.parse("2025-01-05T14:30")  # datetime(2025, 1, 5, 14, 30)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
import re


class DateTimeParser(ABC):
    """
    Abstrakcyjna klasa bazowa dla parserów datetime (Strategy Pattern).

    Każdy parser musi implementować dwie metody:
    - can_parse: sprawdza czy parser rozpoznaje strukturę wartości
    - parse: parsuje wartość i zwraca naiwny datetime lub None
    """

    @abstractmethod
    def can_parse(self, value: str) -> bool:
        """
        Sprawdź czy parser może sparsować tę wartość.

        Args:
            value: Tekst z formularza

        Returns:
            True jeśli parser rozpoznaje ten format, False w przeciwnym razie
        """
        pass

    @abstractmethod
    def parse(self, value: str) -> Optional[datetime]:
        """
        Sparsuj wartość na naiwny datetime (czas lokalny, bez tzinfo).

        Returns:
            Obiekt datetime lub None jeśli wartości są nieprawidłowe
        """
        pass


class LocalInputParser(DateTimeParser):
    """
    Parser dla formatu pola datetime-local: YYYY-MM-DDTHH:MM.

    To jest format produkowany przez to_local_input() i najczęstszy
    format z formularzy, więc powinien być sprawdzany jako pierwszy.
    """

    PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$')
    FORMAT = '%Y-%m-%dT%H:%M'

    def can_parse(self, value: str) -> bool:
        if not value:
            return False
        return bool(self.PATTERN.match(value))

    def parse(self, value: str) -> Optional[datetime]:
        """
        Returns:
            datetime lub None (np. 2025-13-01T10:00 przejdzie can_parse ale nie parse)
        """
        try:
            return datetime.strptime(value, self.FORMAT)
        except ValueError:
            return None


class LocalInputWithSecondsParser(LocalInputParser):
    """
    Parser dla YYYY-MM-DDTHH:MM:SS.

    Niektóre przeglądarki dołączają sekundy do wartości datetime-local
    (atrybut step < 60).
    """

    PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}$')
    FORMAT = '%Y-%m-%dT%H:%M:%S'
