"""
Общие фикстуры для тестов
"""
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from core.database import DatabaseManager
from core.models import CoursePayload, LessonPayload
from core.service import PlatformService
from core.store import EntityStore

CREATOR = "creator-principal"
STRANGER = "stranger-principal"


class FixedClock:
    """Часы, сдвигающиеся на секунду при каждом вызове"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock():
    """Детерминированный источник времени"""
    return FixedClock()


@pytest.fixture
def store():
    """Хранилище в памяти"""
    return EntityStore.in_memory()


@pytest.fixture
def service(store, clock):
    """Сервис поверх хранилища в памяти"""
    return PlatformService(store, clock)


@pytest.fixture
def course(service):
    """Курс, созданный CREATOR"""
    return service.add_course(CREATOR, CoursePayload(title="Algebra I", description="Введение в алгебру"))


@pytest.fixture
def lesson_payload():
    """Образец данных урока"""
    return LessonPayload(title="Lesson 1", content="Переменные и выражения")


@pytest.fixture
def temp_data_dir():
    """Временная директория для файлов БД"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def database_url(temp_data_dir):
    """URL файловой SQLite БД во временной директории"""
    return f"sqlite:///{temp_data_dir / 'platform.db'}"


@pytest.fixture
def db_manager(database_url):
    """Менеджер файловой SQLite БД"""
    manager = DatabaseManager(database_url, echo=False)
    manager.create_tables()
    yield manager
    manager.dispose()
