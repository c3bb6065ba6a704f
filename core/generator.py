"""
Генератор уникальных идентификаторов сущностей.
"""

import logging

from .exceptions import AllocatorExhaustedError
from .storage import MAX_KEY, Cell

logger = logging.getLogger(__name__)


class IdentityAllocator:
    """
    Генератор монотонно возрастающих ID, общий для всех видов сущностей.

    Ячейка хранит следующий выдаваемый ID, поэтому последовательность
    продолжается после перезапуска процесса.
    """

    def __init__(self, counter: Cell):
        """
        Args:
            counter: Ячейка счетчика в той же среде хранения, что и записи
        """
        self.counter = counter

    def next_id(self) -> int:
        """
        Выдает следующий ID.

        Returns:
            int: ID, строго больший всех ранее выданных

        Raises:
            AllocatorExhaustedError: Если пространство u64 исчерпано
        """
        current = self.counter.get()
        if current >= MAX_KEY:
            logger.critical(f"Счетчик идентификаторов исчерпан: {current}")
            raise AllocatorExhaustedError(current)

        self.counter.set(current + 1)
        logger.debug(f"Выдан ID {current}")
        return current

    def peek(self) -> int:
        """Возвращает следующий ID, не расходуя его."""
        return self.counter.get()
