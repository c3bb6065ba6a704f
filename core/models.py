"""
Pydantic модели сущностей платформы и их бинарное представление.
"""

from datetime import datetime
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import EntityKind


class StoredRecord(BaseModel):
    """Базовая модель записи, хранимой в репозитории."""

    # Неизвестные поля игнорируются: старый код читает записи новых версий
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: ClassVar[EntityKind]

    id: int = Field(..., ge=0, description="Уникальный идентификатор")

    def to_bytes(self) -> bytes:
        """Кодирует запись в байты для хранилища."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes):
        """Декодирует запись из байтов хранилища."""
        return cls.model_validate_json(data)


class Course(StoredRecord):
    """Модель курса."""

    kind: ClassVar[EntityKind] = EntityKind.COURSE

    creator_principal: str = Field(..., description="Идентификатор создателя курса")
    title: str = Field(..., description="Название курса")
    description: str = Field(..., description="Описание курса")
    lessons: List[int] = Field(default_factory=list, description="ID уроков курса в порядке добавления")
    created_at: datetime = Field(..., description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата последнего изменения")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 0,
                "creator_principal": "2vxsx-fae",
                "title": "Algebra I",
                "description": "Введение в алгебру",
                "lessons": [1, 2],
                "created_at": "2024-01-01T10:00:00+00:00",
                "updated_at": None
            }
        }
    )


class Lesson(StoredRecord):
    """Модель урока."""

    kind: ClassVar[EntityKind] = EntityKind.LESSON

    course_id: int = Field(..., ge=0, description="ID курса-владельца")
    title: str = Field(..., description="Название урока")
    content: str = Field(..., description="Содержимое урока")
    created_at: datetime = Field(..., description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата последнего изменения")


class Certificate(StoredRecord):
    """Модель сертификата о прохождении курса."""

    kind: ClassVar[EntityKind] = EntityKind.CERTIFICATE

    course_id: int = Field(..., ge=0, description="ID курса")
    user_id: int = Field(..., ge=0, description="ID пользователя")
    issue_date: datetime = Field(..., description="Дата выдачи")


class User(StoredRecord):
    """Модель пользователя."""

    kind: ClassVar[EntityKind] = EntityKind.USER

    username: str = Field(..., description="Имя пользователя")
    public_key: str = Field(..., description="Публичный ключ пользователя")


class CoursePayload(BaseModel):
    """Модель запроса на создание или изменение курса."""

    model_config = ConfigDict(strict=True)

    title: str = Field(..., description="Название курса")
    description: str = Field(..., description="Описание курса")


class LessonPayload(BaseModel):
    """Модель запроса на создание или изменение урока."""

    model_config = ConfigDict(strict=True)

    title: str = Field(..., description="Название урока")
    content: str = Field(..., description="Содержимое урока")


class UserPayload(BaseModel):
    """Модель запроса на регистрацию пользователя."""

    model_config = ConfigDict(strict=True)

    username: str = Field(..., description="Имя пользователя")
    public_key: str = Field(..., description="Публичный ключ пользователя")
