"""
Тесты для генератора идентификаторов
"""
import pytest

from core.database import DatabaseManager
from core.exceptions import AllocatorExhaustedError
from core.generator import IdentityAllocator
from core.storage import MAX_KEY, MemoryCell
from core.store import EntityStore


class TestIdentityAllocator:
    """Тесты для класса IdentityAllocator"""

    @pytest.fixture
    def allocator(self):
        """Фикстура для генератора"""
        return IdentityAllocator(MemoryCell(0))

    def test_starts_from_zero(self, allocator):
        """Тест первого выданного ID"""
        assert allocator.next_id() == 0
        assert allocator.next_id() == 1

    def test_strictly_increasing(self, allocator):
        """Тест строгого возрастания"""
        ids = [allocator.next_id() for _ in range(100)]

        assert ids == sorted(set(ids))
        assert len(ids) == 100

    def test_peek_does_not_consume(self, allocator):
        """Тест просмотра следующего ID"""
        assert allocator.peek() == 0
        assert allocator.peek() == 0
        assert allocator.next_id() == 0
        assert allocator.peek() == 1

    def test_last_id_before_exhaustion(self):
        """Тест выдачи последнего доступного ID"""
        allocator = IdentityAllocator(MemoryCell(MAX_KEY - 1))

        assert allocator.next_id() == MAX_KEY - 1

        with pytest.raises(AllocatorExhaustedError):
            allocator.next_id()

    def test_exhaustion_keeps_counter(self):
        """Тест исчерпания счетчика без изменения ячейки"""
        cell = MemoryCell(MAX_KEY)
        allocator = IdentityAllocator(cell)

        with pytest.raises(AllocatorExhaustedError) as exc_info:
            allocator.next_id()

        assert exc_info.value.last_value == MAX_KEY
        assert cell.get() == MAX_KEY

    def test_sequence_survives_reopen(self, database_url):
        """Тест продолжения последовательности после перезапуска"""
        manager = DatabaseManager(database_url, echo=False)
        store = EntityStore.from_database(manager)
        issued = [store.allocator.next_id() for _ in range(3)]
        store.close()

        reopened_manager = DatabaseManager(database_url, echo=False)
        reopened = EntityStore.from_database(reopened_manager)
        try:
            assert issued == [0, 1, 2]
            assert reopened.allocator.next_id() == 3
        finally:
            reopened.close()
