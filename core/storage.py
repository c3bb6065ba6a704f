"""
Модуль для работы с упорядоченным хранилищем записей.

Хранилище адресуется логическими идентификаторами таблиц и состоит из
упорядоченных отображений ключ -> байты и скалярных ячеек.
"""
import bisect
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import InputValidationError

# Логические идентификаторы таблиц
COUNTER_TABLE = 0
COURSE_TABLE = 2
LESSON_TABLE = 3
CERTIFICATE_TABLE = 4
USER_TABLE = 5

KEY_SIZE = 8
MAX_KEY = 2 ** 64 - 1


def encode_key(key: int) -> bytes:
    """
    Кодирует 64-битный беззнаковый ключ в big-endian байты.

    Порядок байтов совпадает с числовым порядком ключей.

    Args:
        key: Ключ записи

    Returns:
        bytes: 8 байт ключа

    Raises:
        InputValidationError: Если ключ вне диапазона u64
    """
    if not 0 <= key <= MAX_KEY:
        raise InputValidationError(f"Ключ вне диапазона u64: {key}", field="id")
    return key.to_bytes(KEY_SIZE, "big")


def decode_key(data: bytes) -> int:
    """Декодирует ключ из big-endian байтов."""
    return int.from_bytes(data, "big")


class OrderedMap(ABC):
    """Упорядоченное отображение байтовых ключей в байтовые значения."""

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Возвращает значение по ключу или None."""

    @abstractmethod
    def insert(self, key: bytes, value: bytes) -> Optional[bytes]:
        """Вставляет или заменяет значение, возвращает предыдущее."""

    @abstractmethod
    def remove(self, key: bytes) -> Optional[bytes]:
        """Удаляет значение, возвращает удаленное или None."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Перебирает пары по возрастанию ключа."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class Cell(ABC):
    """Скалярная ячейка с целым беззнаковым значением."""

    @abstractmethod
    def get(self) -> int:
        """Возвращает текущее значение."""

    @abstractmethod
    def set(self, value: int) -> int:
        """Записывает значение, возвращает предыдущее."""


class StorageBackend(ABC):
    """Долговременная среда хранения, разделенная на логические таблицы."""

    @abstractmethod
    def open_map(self, table_id: int) -> OrderedMap:
        """Открывает упорядоченное отображение таблицы."""

    @abstractmethod
    def open_cell(self, table_id: int, default: int = 0) -> Cell:
        """Открывает ячейку таблицы, инициализируя ее значением default."""

    def close(self) -> None:
        """Освобождает ресурсы среды хранения."""


class MemoryOrderedMap(OrderedMap):
    """Упорядоченное отображение в памяти процесса."""

    def __init__(self):
        self._data: Dict[bytes, bytes] = {}
        self._keys: List[bytes] = []

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def insert(self, key: bytes, value: bytes) -> Optional[bytes]:
        previous = self._data.get(key)
        if previous is None:
            bisect.insort(self._keys, key)
        self._data[key] = value
        return previous

    def remove(self, key: bytes) -> Optional[bytes]:
        previous = self._data.pop(key, None)
        if previous is not None:
            index = bisect.bisect_left(self._keys, key)
            del self._keys[index]
        return previous

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        # Снимок ключей: перебор допускает изменение отображения
        for key in list(self._keys):
            value = self._data.get(key)
            if value is not None:
                yield key, value

    def __len__(self) -> int:
        return len(self._data)


class MemoryCell(Cell):
    """Ячейка в памяти процесса."""

    def __init__(self, value: int = 0):
        self._value = value

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> int:
        previous = self._value
        self._value = value
        return previous


class MemoryBackend(StorageBackend):
    """Среда хранения в памяти, используется для тестов и временных запусков."""

    def __init__(self):
        self._maps: Dict[int, MemoryOrderedMap] = {}
        self._cells: Dict[int, MemoryCell] = {}

    def open_map(self, table_id: int) -> OrderedMap:
        if table_id not in self._maps:
            self._maps[table_id] = MemoryOrderedMap()
        return self._maps[table_id]

    def open_cell(self, table_id: int, default: int = 0) -> Cell:
        if table_id not in self._cells:
            self._cells[table_id] = MemoryCell(default)
        return self._cells[table_id]
