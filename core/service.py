"""
Основная бизнес-логика платформы: операции над курсами, уроками,
сертификатами и пользователями.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

from .exceptions import EntityKind, NotFoundError
from .guard import authorize_mutation
from .models import (
    Certificate, Course, CoursePayload, Lesson, LessonPayload, StoredRecord, User, UserPayload
)
from .relations import RelationshipMaintainer
from .store import EntityStore, create_store
from .validators import build_payload, validate_caller, validate_identifier

# Настройка логирования
logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Возвращает текущее время в UTC."""
    return datetime.now(timezone.utc)


class PlatformService:
    """Сервис операций образовательной платформы."""

    def __init__(self, store: EntityStore, clock: Callable[[], datetime] = utc_now):
        """
        Инициализация сервиса.

        Args:
            store: Хранилище сущностей
            clock: Источник текущего времени
        """
        self.store = store
        self.clock = clock
        self.relations = RelationshipMaintainer(store, clock)

    # Курсы

    def get_course(self, course_id: int) -> Course:
        """
        Получает курс по ID.

        Raises:
            NotFoundError: Если курс не найден
        """
        return self._require(EntityKind.COURSE, course_id)

    def add_course(self, caller: str, payload: Union[CoursePayload, dict]) -> Course:
        """
        Создает новый курс. Вызывающий становится создателем курса.

        Args:
            caller: Идентификатор вызывающего
            payload: Название и описание курса

        Returns:
            Course: Созданный курс
        """
        caller = validate_caller(caller)
        payload = build_payload(CoursePayload, payload)
        logger.info(f"Создание курса '{payload.title}' пользователем {caller}")

        course = Course(
            id=self.store.allocator.next_id(),
            creator_principal=caller,
            title=payload.title,
            description=payload.description,
            lessons=[],
            created_at=self.clock(),
            updated_at=None,
        )
        self.store.courses.put(course.id, course)

        logger.info(f"Курс {course.id} успешно создан")
        return course

    def update_course(self, caller: str, course_id: int, payload: Union[CoursePayload, dict]) -> Course:
        """
        Изменяет название и описание курса.

        Raises:
            NotFoundError: Если курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        payload = build_payload(CoursePayload, payload)
        logger.info(f"Изменение курса {course_id} пользователем {caller}")

        course = self._require(EntityKind.COURSE, course_id)
        authorize_mutation(course, caller)

        updated_course = course.model_copy(update={
            "title": payload.title,
            "description": payload.description,
            "updated_at": self.clock(),
        })
        self.store.courses.put(course.id, updated_course)

        logger.info(f"Курс {course_id} успешно изменен")
        return updated_course

    def delete_course(self, caller: str, course_id: int) -> None:
        """
        Удаляет курс вместе со всеми его уроками.

        Raises:
            NotFoundError: Если курс не найден
            NotCreatorError: Если вызывающий не создатель курса
            PartialFailureError: Если каскад прерван и откат не удался
        """
        caller = validate_caller(caller)
        logger.info(f"Удаление курса {course_id} пользователем {caller}")

        course = self._require(EntityKind.COURSE, course_id)
        authorize_mutation(course, caller)

        with self.store.unit_of_work("delete_course") as uow:
            removed = self.relations.cascade_course_delete(uow, course)

        logger.info(f"Курс {course_id} удален вместе с уроками: {removed}")

    def list_course_lessons(self, course_id: int) -> List[Lesson]:
        """
        Возвращает уроки курса в порядке добавления.

        Raises:
            NotFoundError: Если курс не найден
        """
        course = self._require(EntityKind.COURSE, course_id)

        lessons = []
        for lesson_id in course.lessons:
            lesson = self.store.lessons.get(lesson_id)
            if lesson is None:
                logger.warning(f"Урок {lesson_id} из списка курса {course_id} не найден")
                continue
            lessons.append(lesson)
        return lessons

    # Уроки

    def get_lesson(self, lesson_id: int) -> Lesson:
        """
        Получает урок по ID.

        Raises:
            NotFoundError: Если урок не найден
        """
        return self._require(EntityKind.LESSON, lesson_id)

    def add_lesson(self, caller: str, course_id: int, payload: Union[LessonPayload, dict]) -> None:
        """
        Добавляет урок в курс.

        Args:
            caller: Идентификатор вызывающего
            course_id: ID курса
            payload: Название и содержимое урока

        Raises:
            NotFoundError: Если курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        payload = build_payload(LessonPayload, payload)
        logger.info(f"Добавление урока '{payload.title}' в курс {course_id} пользователем {caller}")

        course = self._require(EntityKind.COURSE, course_id)
        authorize_mutation(course, caller)

        lesson = Lesson(
            id=self.store.allocator.next_id(),
            course_id=course.id,
            title=payload.title,
            content=payload.content,
            created_at=self.clock(),
            updated_at=None,
        )

        with self.store.unit_of_work("add_lesson") as uow:
            self.relations.attach_lesson(uow, lesson)

        logger.info(f"Урок {lesson.id} добавлен в курс {course_id}")

    def update_lesson(self, caller: str, lesson_id: int, payload: Union[LessonPayload, dict]) -> Lesson:
        """
        Изменяет название и содержимое урока.

        Raises:
            NotFoundError: Если урок или его курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        payload = build_payload(LessonPayload, payload)
        logger.info(f"Изменение урока {lesson_id} пользователем {caller}")

        lesson = self._require(EntityKind.LESSON, lesson_id)
        course = self._require(EntityKind.COURSE, lesson.course_id)
        authorize_mutation(course, caller)

        updated_lesson = lesson.model_copy(update={
            "title": payload.title,
            "content": payload.content,
            "updated_at": self.clock(),
        })
        self.store.lessons.put(lesson.id, updated_lesson)

        logger.info(f"Урок {lesson_id} успешно изменен")
        return updated_lesson

    def delete_lesson(self, caller: str, lesson_id: int) -> None:
        """
        Удаляет урок и убирает его из списка уроков курса.

        Raises:
            NotFoundError: Если урок или его курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        logger.info(f"Удаление урока {lesson_id} пользователем {caller}")

        lesson = self._require(EntityKind.LESSON, lesson_id)
        course = self._require(EntityKind.COURSE, lesson.course_id)
        authorize_mutation(course, caller)

        with self.store.unit_of_work("delete_lesson") as uow:
            self.relations.detach_lesson(uow, lesson_id)

        logger.info(f"Урок {lesson_id} удален из курса {course.id}")

    # Сертификаты

    def get_certificate(self, certificate_id: int) -> Certificate:
        """
        Получает сертификат по ID.

        Raises:
            NotFoundError: Если сертификат не найден
        """
        return self._require(EntityKind.CERTIFICATE, certificate_id)

    def issue_certificate(self, caller: str, user_id: int, course_id: int) -> Certificate:
        """
        Выдает сертификат пользователю от имени создателя курса.

        Критерии прохождения курса не проверяются, существование
        пользователя тоже.

        Raises:
            NotFoundError: Если курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        user_id = validate_identifier(user_id, "user_id")
        logger.info(f"Выдача сертификата пользователю {user_id} по курсу {course_id} от {caller}")

        course = self._require(EntityKind.COURSE, course_id)
        authorize_mutation(course, caller)

        certificate = Certificate(
            id=self.store.allocator.next_id(),
            course_id=course.id,
            user_id=user_id,
            issue_date=self.clock(),
        )
        self.store.certificates.put(certificate.id, certificate)

        logger.info(f"Сертификат {certificate.id} выдан пользователю {user_id}")
        return certificate

    def verify_certificate(self, user_id: int, certificate_id: int) -> bool:
        """
        Проверяет, что сертификат выдан указанному пользователю.

        Returns:
            bool: True если сертификат принадлежит пользователю

        Raises:
            NotFoundError: Если сертификат не найден
        """
        user_id = validate_identifier(user_id, "user_id")
        certificate = self._require(EntityKind.CERTIFICATE, certificate_id)

        result = certificate.user_id == user_id
        logger.info(f"Проверка сертификата {certificate_id} для пользователя {user_id}: {result}")
        return result

    def delete_certificate(self, caller: str, certificate_id: int) -> None:
        """
        Удаляет сертификат. Разрешено только создателю курса, по которому
        выдан сертификат.

        Raises:
            NotFoundError: Если сертификат или его курс не найден
            NotCreatorError: Если вызывающий не создатель курса
        """
        caller = validate_caller(caller)
        logger.info(f"Удаление сертификата {certificate_id} пользователем {caller}")

        certificate = self._require(EntityKind.CERTIFICATE, certificate_id)
        course = self._require(EntityKind.COURSE, certificate.course_id)
        authorize_mutation(course, caller)

        self.store.certificates.delete(certificate_id)
        logger.info(f"Сертификат {certificate_id} удален")

    # Пользователи

    def get_user(self, user_id: int) -> User:
        """
        Получает пользователя по ID.

        Raises:
            NotFoundError: Если пользователь не найден
        """
        return self._require(EntityKind.USER, user_id)

    def register_user(self, username: str, public_key: str) -> User:
        """
        Регистрирует пользователя. Уникальность имени и ключа не проверяется.

        Returns:
            User: Созданный пользователь
        """
        payload = build_payload(UserPayload, {"username": username, "public_key": public_key})
        logger.info(f"Регистрация пользователя {payload.username}")

        user = User(
            id=self.store.allocator.next_id(),
            username=payload.username,
            public_key=payload.public_key,
        )
        self.store.users.put(user.id, user)

        logger.info(f"Пользователь {user.id} зарегистрирован")
        return user

    def delete_user(self, user_id: int) -> None:
        """
        Удаляет пользователя. Выданные ему сертификаты остаются.

        Raises:
            NotFoundError: Если пользователь не найден
        """
        logger.info(f"Удаление пользователя {user_id}")

        self._require(EntityKind.USER, user_id)
        self.store.users.delete(user_id)

        logger.info(f"Пользователь {user_id} удален")

    # Статистика

    def get_statistics(self) -> Dict:
        """
        Получает статистику хранилища.

        Returns:
            Dict: Количество записей каждого вида и следующий ID
        """
        logger.info("Получение статистики хранилища")

        return {
            "courses": len(self.store.courses),
            "lessons": len(self.store.lessons),
            "certificates": len(self.store.certificates),
            "users": len(self.store.users),
            "next_id": self.store.allocator.peek(),
            "last_updated": self.clock().isoformat(),
        }

    def _require(self, kind: EntityKind, entity_id: int) -> StoredRecord:
        """
        Получает запись или выбрасывает NotFoundError.

        Args:
            kind: Вид сущности
            entity_id: ID сущности
        """
        entity_id = validate_identifier(entity_id, f"{kind.value}_id")
        record: Optional[StoredRecord] = self.store.repository(kind).get(entity_id)
        if record is None:
            logger.info(f"Сущность {kind.value} с id={entity_id} не найдена")
            raise NotFoundError(kind, entity_id)
        return record


def get_platform_service(settings=None) -> PlatformService:
    """
    Создает сервис платформы поверх хранилища из настроек.

    Args:
        settings: Настройки, по умолчанию из переменных окружения
    """
    return PlatformService(create_store(settings))
