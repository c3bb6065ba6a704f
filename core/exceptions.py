"""
Кастомные исключения для хранилища образовательной платформы.
"""

from enum import Enum
from typing import Optional


class EntityKind(str, Enum):
    """Виды сущностей, хранимых платформой."""
    COURSE = "course"
    LESSON = "lesson"
    CERTIFICATE = "certificate"
    USER = "user"


class PlatformError(Exception):
    """Базовое исключение для всех ошибок платформы."""

    code = "PLATFORM_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Конвертирует ошибку в словарь для вывода."""
        return {"code": self.code, "message": self.message}


class NotFoundError(PlatformError):
    """Сущность с указанным ID не найдена."""

    code = "NOT_FOUND"

    def __init__(self, kind: EntityKind, entity_id: int):
        super().__init__(f"Сущность {kind.value} с id={entity_id} не найдена")
        self.kind = kind
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"kind": self.kind.value, "id": self.entity_id})
        return data


class NotCreatorError(PlatformError):
    """Вызывающий не является создателем курса."""

    code = "NOT_CREATOR"

    def __init__(self, course_id: int, caller: str):
        super().__init__(f"Пользователь {caller!r} не является создателем курса id={course_id}")
        self.course_id = course_id
        self.caller = caller

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"course_id": self.course_id, "caller": self.caller})
        return data


class InputValidationError(PlatformError):
    """Ошибка валидации входных данных."""

    code = "INPUT_VALIDATION_FAILED"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class PartialFailureError(PlatformError):
    """Операция применена частично, откат не удался."""

    code = "PARTIAL_FAILURE"

    def __init__(self, operation: str, applied_writes: int, cause: BaseException):
        super().__init__(
            f"Операция {operation} применена частично ({applied_writes} записей), откат не удался: {cause}"
        )
        self.operation = operation
        self.applied_writes = applied_writes
        self.cause = cause

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"operation": self.operation, "applied_writes": self.applied_writes})
        return data


class AllocatorExhaustedError(PlatformError):
    """Исчерпано 64-битное пространство идентификаторов."""

    code = "ALLOCATOR_EXHAUSTED"

    def __init__(self, last_value: int):
        super().__init__(f"Счетчик идентификаторов исчерпан: {last_value}")
        self.last_value = last_value


class StorageError(PlatformError):
    """Ошибка работы с хранилищем."""

    code = "STORAGE_ERROR"
