"""
Модуль валидации входных данных операций платформы.
"""

from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import InputValidationError
from .storage import MAX_KEY

P = TypeVar("P", bound=BaseModel)


def validate_identifier(value: Any, field: str = "id") -> int:
    """
    Валидация идентификатора сущности.

    Args:
        value: Значение идентификатора
        field: Имя параметра для сообщения об ошибке

    Returns:
        int: Идентификатор

    Raises:
        InputValidationError: Если значение не является целым u64
    """
    # bool является подклассом int, но идентификатором не является
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputValidationError(f"Идентификатор {field} должен быть целым числом: {value!r}", field=field)

    if not 0 <= value <= MAX_KEY:
        raise InputValidationError(f"Идентификатор {field} вне диапазона u64: {value}", field=field)

    return value


def validate_caller(caller: Any) -> str:
    """
    Валидация идентификатора вызывающего.

    Raises:
        InputValidationError: Если идентификатор не строка или пуст
    """
    if not isinstance(caller, str) or not caller:
        raise InputValidationError(f"Некорректный идентификатор вызывающего: {caller!r}", field="caller")
    return caller


def build_payload(model: Type[P], data: Dict[str, Any]) -> P:
    """
    Создает модель запроса из словаря.

    Args:
        model: Класс модели запроса
        data: Данные запроса

    Returns:
        Модель запроса

    Raises:
        InputValidationError: При ошибке валидации pydantic
    """
    if isinstance(data, model):
        return data

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else None
        raise InputValidationError(f"Некорректные данные запроса: {e}", field=field) from e
