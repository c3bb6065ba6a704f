"""
Тесты для единицы работы и отката составных операций
"""
import pytest

from core.exceptions import (
    EntityKind, NotFoundError, PartialFailureError, StorageError
)
from core.models import CoursePayload, LessonPayload, User
from core.repository import Repository
from core.service import PlatformService
from core.storage import COURSE_TABLE, LESSON_TABLE, MemoryBackend, MemoryOrderedMap
from core.store import EntityStore, UnitOfWork

from conftest import CREATOR


class FlakyOrderedMap(MemoryOrderedMap):
    """Отображение в памяти с управляемыми сбоями"""

    def __init__(self):
        super().__init__()
        self.fail_insert = False
        self.fail_remove_on = None
        self.vanish_after_gets = None
        self.removes = 0
        self.gets = 0

    def get(self, key):
        self.gets += 1
        if self.vanish_after_gets is not None and self.gets > self.vanish_after_gets:
            return None
        return super().get(key)

    def insert(self, key, value):
        if self.fail_insert:
            raise StorageError("Сбой записи")
        return super().insert(key, value)

    def remove(self, key):
        self.removes += 1
        if self.fail_remove_on is not None and self.removes >= self.fail_remove_on:
            raise StorageError("Сбой удаления")
        return super().remove(key)


class FlakyBackend(MemoryBackend):
    """Среда хранения, выдающая FlakyOrderedMap"""

    def open_map(self, table_id):
        if table_id not in self._maps:
            self._maps[table_id] = FlakyOrderedMap()
        return self._maps[table_id]


@pytest.fixture
def backend():
    return FlakyBackend()


@pytest.fixture
def flaky_service(backend, clock):
    """Сервис поверх среды хранения со сбоями"""
    return PlatformService(EntityStore(backend), clock)


@pytest.fixture
def flaky_course(flaky_service):
    return flaky_service.add_course(CREATOR, CoursePayload(title="Algebra I", description="d"))


class TestAddLessonRollback:
    """Тесты отката добавления урока"""

    def test_course_vanishes_before_link(self, flaky_service, flaky_course, backend):
        """Курс исчез между проверкой прав и связыванием урока"""
        courses = backend.open_map(COURSE_TABLE)
        courses.gets = 0
        courses.vanish_after_gets = 1

        with pytest.raises(NotFoundError) as exc_info:
            flaky_service.add_lesson(CREATOR, flaky_course.id, LessonPayload(title="l", content="c"))

        assert exc_info.value.kind == EntityKind.COURSE
        assert len(flaky_service.store.lessons) == 0

    def test_course_write_failure(self, flaky_service, flaky_course, backend):
        """Сбой записи курса откатывает запись урока"""
        backend.open_map(COURSE_TABLE).fail_insert = True

        with pytest.raises(StorageError):
            flaky_service.add_lesson(CREATOR, flaky_course.id, LessonPayload(title="l", content="c"))

        assert len(flaky_service.store.lessons) == 0
        assert flaky_service.get_course(flaky_course.id).lessons == []

    def test_rollback_failure(self, flaky_service, flaky_course, backend):
        """Сбой отката приводит к PartialFailureError"""
        backend.open_map(COURSE_TABLE).fail_insert = True
        backend.open_map(LESSON_TABLE).fail_remove_on = 1

        with pytest.raises(PartialFailureError) as exc_info:
            flaky_service.add_lesson(CREATOR, flaky_course.id, LessonPayload(title="l", content="c"))

        error = exc_info.value
        assert error.operation == "add_lesson"
        assert error.applied_writes == 1
        assert isinstance(error.cause, StorageError)
        assert error.to_dict()["code"] == "PARTIAL_FAILURE"


class TestCascadeRollback:
    """Тесты отката каскадного удаления курса"""

    def test_failure_restores_everything(self, flaky_service, flaky_course, backend):
        """Сбой на втором уроке восстанавливает курс и первый урок"""
        for i in range(3):
            flaky_service.add_lesson(
                CREATOR, flaky_course.id, LessonPayload(title=f"Lesson {i}", content="c")
            )
        lesson_ids = flaky_service.get_course(flaky_course.id).lessons
        backend.open_map(LESSON_TABLE).fail_remove_on = 2

        with pytest.raises(StorageError):
            flaky_service.delete_course(CREATOR, flaky_course.id)

        assert flaky_service.get_course(flaky_course.id).lessons == lesson_ids
        for lesson_id in lesson_ids:
            assert flaky_service.get_lesson(lesson_id).course_id == flaky_course.id


class TestUnitOfWork:
    """Тесты журнала записей"""

    @pytest.fixture
    def users(self):
        return Repository(MemoryOrderedMap(), User)

    def test_rollback_restores_previous_values(self, users):
        """Откат возвращает замененные и удаленные записи"""
        stored = User(id=1, username="alice", public_key="a")
        other = User(id=2, username="bob", public_key="b")
        users.put(1, stored)
        users.put(2, other)

        uow = UnitOfWork("test")
        uow.put(users, 1, User(id=1, username="alice", public_key="new"))
        uow.delete(users, 2)
        uow.put(users, 3, User(id=3, username="carol", public_key="c"))
        assert uow.applied_writes == 3

        uow.rollback()

        assert uow.applied_writes == 0
        assert users.get(1) == stored
        assert users.get(2) == other
        assert users.get(3) is None

    def test_delete_of_missing_is_not_journaled(self, users):
        """Удаление отсутствующей записи не попадает в журнал"""
        uow = UnitOfWork("test")

        assert uow.delete(users, 5) is None
        assert uow.applied_writes == 0

    def test_error_without_writes_passes_through(self, store):
        """Ошибка до первой записи пробрасывается без отката"""
        with pytest.raises(NotFoundError):
            with store.unit_of_work("noop"):
                raise NotFoundError(EntityKind.USER, 1)

    def test_success_keeps_writes(self, store):
        """Успешный блок сохраняет записи"""
        user = User(id=0, username="alice", public_key="a")

        with store.unit_of_work("register") as uow:
            uow.put(store.users, 0, user)

        assert store.users.get(0) == user
