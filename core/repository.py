"""
Репозиторий сущностей поверх упорядоченного отображения.
"""

from typing import Generic, Iterator, Optional, Tuple, Type, TypeVar

from .models import StoredRecord
from .storage import OrderedMap, decode_key, encode_key

V = TypeVar("V", bound=StoredRecord)


class Repository(Generic[V]):
    """Репозиторий записей одного вида сущностей."""

    def __init__(self, ordered_map: OrderedMap, model: Type[V]):
        """
        Инициализация репозитория.

        Args:
            ordered_map: Отображение логической таблицы
            model: Pydantic модель хранимой сущности
        """
        self.ordered_map = ordered_map
        self.model = model

    @property
    def kind(self):
        return self.model.kind

    def get(self, entity_id: int) -> Optional[V]:
        """
        Получает запись по ID.

        Args:
            entity_id: ID сущности

        Returns:
            Optional[V]: Запись или None
        """
        data = self.ordered_map.get(encode_key(entity_id))
        if data is None:
            return None
        return self.model.from_bytes(data)

    def put(self, entity_id: int, value: V) -> Optional[V]:
        """
        Вставляет или заменяет запись.

        Args:
            entity_id: ID сущности
            value: Новая запись

        Returns:
            Optional[V]: Предыдущая запись или None
        """
        previous = self.ordered_map.insert(encode_key(entity_id), value.to_bytes())
        if previous is None:
            return None
        return self.model.from_bytes(previous)

    def delete(self, entity_id: int) -> Optional[V]:
        """
        Удаляет запись.

        Args:
            entity_id: ID сущности

        Returns:
            Optional[V]: Удаленная запись или None, если записи не было
        """
        previous = self.ordered_map.remove(encode_key(entity_id))
        if previous is None:
            return None
        return self.model.from_bytes(previous)

    def iterate(self) -> Iterator[Tuple[int, V]]:
        """Перебирает записи по возрастанию ID."""
        for key, data in self.ordered_map.items():
            yield decode_key(key), self.model.from_bytes(data)

    def __contains__(self, entity_id: int) -> bool:
        return self.ordered_map.get(encode_key(entity_id)) is not None

    def __len__(self) -> int:
        return len(self.ordered_map)
