"""
Проверка прав на изменение курса и его уроков.
"""

import logging

from .exceptions import NotCreatorError
from .models import Course

logger = logging.getLogger(__name__)


def is_course_creator(course: Course, caller: str) -> bool:
    """Проверяет, является ли вызывающий создателем курса."""
    return course.creator_principal == caller


def authorize_mutation(course: Course, caller: str) -> None:
    """
    Разрешает изменение курса или его уроков только создателю курса.

    Args:
        course: Курс, изменение которого запрошено
        caller: Идентификатор вызывающего

    Raises:
        NotCreatorError: Если вызывающий не является создателем курса
    """
    if not is_course_creator(course, caller):
        logger.warning(f"Отказ в доступе: {caller!r} не является создателем курса {course.id}")
        raise NotCreatorError(course.id, caller)
