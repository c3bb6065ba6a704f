"""
Хранилище сущностей платформы: четыре репозитория, генератор ID и единица работы.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import EntityKind, PartialFailureError
from .generator import IdentityAllocator
from .models import Certificate, Course, Lesson, StoredRecord, User
from .repository import Repository
from .storage import (
    CERTIFICATE_TABLE, COUNTER_TABLE, COURSE_TABLE, LESSON_TABLE, USER_TABLE,
    MemoryBackend, StorageBackend
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Журнал записей одной операции, затрагивающей несколько репозиториев.

    Каждая запись сохраняет предыдущее значение, чтобы при ошибке
    вернуть репозитории в исходное состояние.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self._journal: List[Tuple[Repository, int, Optional[StoredRecord]]] = []

    @property
    def applied_writes(self) -> int:
        """Количество примененных и не откаченных записей."""
        return len(self._journal)

    def put(self, repository: Repository, entity_id: int, value: StoredRecord) -> Optional[StoredRecord]:
        """Записывает значение в репозиторий с фиксацией в журнале."""
        previous = repository.put(entity_id, value)
        self._journal.append((repository, entity_id, previous))
        return previous

    def delete(self, repository: Repository, entity_id: int) -> Optional[StoredRecord]:
        """Удаляет значение из репозитория с фиксацией в журнале."""
        previous = repository.delete(entity_id)
        if previous is not None:
            self._journal.append((repository, entity_id, previous))
        return previous

    def rollback(self) -> None:
        """Откатывает записи в обратном порядке."""
        while self._journal:
            repository, entity_id, previous = self._journal[-1]
            if previous is None:
                repository.delete(entity_id)
            else:
                repository.put(entity_id, previous)
            self._journal.pop()


class EntityStore:
    """Хранилище, владеющее репозиториями всех сущностей и генератором ID."""

    def __init__(self, backend: StorageBackend):
        """
        Инициализация хранилища.

        Args:
            backend: Среда хранения
        """
        self.backend = backend
        self.allocator = IdentityAllocator(backend.open_cell(COUNTER_TABLE, 0))
        self.courses: Repository[Course] = Repository(backend.open_map(COURSE_TABLE), Course)
        self.lessons: Repository[Lesson] = Repository(backend.open_map(LESSON_TABLE), Lesson)
        self.certificates: Repository[Certificate] = Repository(backend.open_map(CERTIFICATE_TABLE), Certificate)
        self.users: Repository[User] = Repository(backend.open_map(USER_TABLE), User)

    @classmethod
    def in_memory(cls) -> "EntityStore":
        """Создает хранилище в памяти процесса."""
        return cls(MemoryBackend())

    @classmethod
    def from_database(cls, db_manager=None) -> "EntityStore":
        """
        Создает хранилище поверх базы данных.

        Args:
            db_manager: Менеджер БД, по умолчанию из настроек
        """
        from .database import DatabaseBackend, get_db_manager

        return cls(DatabaseBackend(db_manager or get_db_manager()))

    def repository(self, kind: EntityKind) -> Repository:
        """Возвращает репозиторий по виду сущности."""
        repositories: Dict[EntityKind, Repository] = {
            EntityKind.COURSE: self.courses,
            EntityKind.LESSON: self.lessons,
            EntityKind.CERTIFICATE: self.certificates,
            EntityKind.USER: self.users,
        }
        return repositories[kind]

    @contextmanager
    def unit_of_work(self, operation: str) -> Iterator[UnitOfWork]:
        """
        Выполняет блок как единицу работы.

        При ошибке внутри блока записи откатываются и исходная ошибка
        пробрасывается дальше. Если откат не удался, выбрасывается
        PartialFailureError.

        Args:
            operation: Название операции для журнала и ошибок
        """
        uow = UnitOfWork(operation)
        try:
            yield uow
        except Exception as e:
            if uow.applied_writes:
                logger.warning(f"Откат операции {operation}: {uow.applied_writes} записей, причина: {e}")
                try:
                    uow.rollback()
                except Exception as rollback_error:
                    logger.error(f"Откат операции {operation} не удался: {rollback_error}")
                    raise PartialFailureError(operation, uow.applied_writes, e) from rollback_error
            raise

    def close(self) -> None:
        """Закрывает среду хранения."""
        self.backend.close()


def create_store(settings=None) -> EntityStore:
    """
    Создает хранилище по настройкам приложения.

    Args:
        settings: Настройки, по умолчанию из переменных окружения

    Returns:
        EntityStore: Хранилище сущностей
    """
    if settings is None:
        from config.settings import get_settings
        settings = get_settings()

    if settings.storage_backend == "memory":
        logger.info("Используется хранилище в памяти")
        return EntityStore.in_memory()

    from .database import DatabaseManager

    logger.info("Используется хранилище в базе данных")
    return EntityStore.from_database(DatabaseManager(settings.database_url, settings.debug))
