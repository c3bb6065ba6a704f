"""
Поддержание связи курс -> уроки и каскадное удаление уроков курса.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .exceptions import EntityKind, NotFoundError
from .models import Course, Lesson
from .store import EntityStore, UnitOfWork

logger = logging.getLogger(__name__)


class RelationshipMaintainer:
    """Согласует список уроков курса с записями уроков."""

    def __init__(self, store: EntityStore, clock: Callable[[], datetime]):
        """
        Args:
            store: Хранилище сущностей
            clock: Источник текущего времени
        """
        self.store = store
        self.clock = clock

    def attach_lesson(self, uow: UnitOfWork, lesson: Lesson) -> Course:
        """
        Сохраняет новый урок и добавляет его ID в список уроков курса.

        Args:
            uow: Единица работы операции
            lesson: Новый урок

        Returns:
            Course: Обновленный курс

        Raises:
            NotFoundError: Если курс-владелец не найден при повторном чтении
        """
        uow.put(self.store.lessons, lesson.id, lesson)

        course = self._reload_course(lesson.course_id)
        lessons = list(course.lessons)
        if lesson.id not in lessons:
            lessons.append(lesson.id)

        updated_course = course.model_copy(update={"lessons": lessons, "updated_at": self.clock()})
        uow.put(self.store.courses, course.id, updated_course)
        return updated_course

    def detach_lesson(self, uow: UnitOfWork, lesson_id: int) -> Optional[Lesson]:
        """
        Удаляет урок и убирает его ID из списка уроков курса.

        Args:
            uow: Единица работы операции
            lesson_id: ID урока

        Returns:
            Optional[Lesson]: Удаленный урок или None, если урока не было
        """
        lesson = uow.delete(self.store.lessons, lesson_id)
        if lesson is None:
            return None

        course = self._reload_course(lesson.course_id)
        lessons = [item for item in course.lessons if item != lesson_id]
        updated_course = course.model_copy(update={"lessons": lessons, "updated_at": self.clock()})
        uow.put(self.store.courses, course.id, updated_course)
        return lesson

    def cascade_course_delete(self, uow: UnitOfWork, course: Course) -> List[int]:
        """
        Удаляет все уроки курса, затем сам курс.

        Список уроков фиксируется в момент начала каскада. Права проверяются
        вызывающей операцией один раз, до каскада.

        Args:
            uow: Единица работы операции
            course: Удаляемый курс

        Returns:
            List[int]: ID удаленных уроков
        """
        removed = []
        for lesson_id in list(course.lessons):
            lesson = self.store.lessons.get(lesson_id)
            if lesson is None or lesson.course_id != course.id:
                logger.warning(f"Урок {lesson_id} из списка курса {course.id} отсутствует, пропускаем")
                continue

            self.detach_lesson(uow, lesson_id)
            removed.append(lesson_id)

        uow.delete(self.store.courses, course.id)
        return removed

    def _reload_course(self, course_id: int) -> Course:
        course = self.store.courses.get(course_id)
        if course is None:
            raise NotFoundError(EntityKind.COURSE, course_id)
        return course
